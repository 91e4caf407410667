import unittest


class TestTargetValidator(unittest.TestCase):
    def test_generated_targets_are_valid(self) -> None:
        from agentmux.kernel.target import format_target, is_valid_target

        for session in ("strategy", "multi_agent", "team-2", "A"):
            for window in (1, 0, 12, "strategy-team", "w_1"):
                for pane in (0, 1, 9, 42):
                    target = format_target(session, pane, window=window)
                    self.assertTrue(is_valid_target(target), target)

    def test_validator_is_total(self) -> None:
        from agentmux.kernel.target import is_valid_target

        for bad in ("", "strategy", "strategy:1", "s:1.1\n", "s:1.1\nx", "\ns:1.1", "s:1.x", "st ra:1.1",
                    "戦略:1.1", "s:1.١", "s:win.", ":1.1", None, 12, b"s:1.1"):
            self.assertFalse(is_valid_target(bad), repr(bad))

    def test_legacy_window_name_form_is_valid(self) -> None:
        from agentmux.kernel.target import is_valid_target

        self.assertTrue(is_valid_target("strategy:strategy-team.1"))
        self.assertTrue(is_valid_target("president:0.0"))

    def test_validate_mapping_collects_every_error_in_order(self) -> None:
        from agentmux.kernel.target import validate_mapping

        result = validate_mapping(
            {
                "ceo": "strategy:1.1",
                "": "strategy:1.2",
                "cfo": "",
                "cmo": "strategy-1.3",
                "pm": 7,
            }
        )
        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 4)
        self.assertIn("agent name", result.errors[0])
        self.assertIn("cfo", result.errors[1])
        self.assertIn("cmo", result.errors[2])
        self.assertIn("pm", result.errors[3])

    def test_empty_mapping_is_valid(self) -> None:
        from agentmux.kernel.target import validate_mapping

        result = validate_mapping({})
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])

    def test_parse_target(self) -> None:
        from agentmux.kernel.target import parse_target

        p = parse_target("strategy:1.3")
        self.assertEqual((p.session, p.window, p.pane), ("strategy", "1", 3))
        p = parse_target("strategy:strategy-team.2")
        self.assertEqual((p.session, p.window, p.pane), ("strategy", "strategy-team", 2))
        p = parse_target("solo:4")
        self.assertEqual((p.session, p.window, p.pane), ("solo", "0", 4))
        self.assertIsNone(parse_target("nocolon"))
        self.assertIsNone(parse_target("s:1.x"))


if __name__ == "__main__":
    unittest.main()
