import unittest


class TestAliasResolver(unittest.TestCase):
    def _agents(self):
        from agentmux.contracts.v1 import AgentSpec

        return {
            "product_manager": AgentSpec(session="analysis", pane=0, aliases=["pm", "x"]),
            "data_analyst": AgentSpec(session="analysis", pane=1, aliases=["analyst", "pm"]),
            "x": AgentSpec(session="analysis", pane=2),
        }

    def test_canonical_name_resolves_to_itself(self) -> None:
        from agentmux.kernel.aliases import resolve_alias

        self.assertEqual(resolve_alias(self._agents(), "data_analyst"), "data_analyst")

    def test_exact_name_beats_alias_of_other_agent(self) -> None:
        from agentmux.kernel.aliases import resolve_alias

        self.assertEqual(resolve_alias(self._agents(), "x"), "x")

    def test_alias_resolves_to_first_owner(self) -> None:
        from agentmux.kernel.aliases import resolve_alias

        self.assertEqual(resolve_alias(self._agents(), "pm"), "product_manager")
        self.assertEqual(resolve_alias(self._agents(), "analyst"), "data_analyst")

    def test_unknown_name_is_none(self) -> None:
        from agentmux.kernel.aliases import resolve_alias

        self.assertIsNone(resolve_alias(self._agents(), "ceo"))
        self.assertIsNone(resolve_alias({}, "ceo"))

    def test_plain_dict_specs(self) -> None:
        from agentmux.kernel.aliases import get_agent_spec, resolve_alias

        agents = {"boss1": {"session": "multiagent", "pane": 0, "aliases": ["boss"]}, "worker1": {"aliases": None}}
        self.assertEqual(resolve_alias(agents, "boss"), "boss1")
        self.assertEqual(get_agent_spec(agents, "boss")["pane"], 0)
        self.assertIsNone(get_agent_spec(agents, "nobody"))


if __name__ == "__main__":
    unittest.main()
