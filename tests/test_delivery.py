import json
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock


def _ok(argv, **_kw):
    return subprocess.CompletedProcess(argv, 0, "", "")


class TestSendLog(unittest.TestCase):
    def test_long_message_is_truncated_with_full_length(self) -> None:
        from agentmux.kernel.sendlog import SEND_LOG, append_delivery, daily_log_name

        with tempfile.TemporaryDirectory() as td:
            logs = Path(td) / "logs"
            entry = append_delivery(logs, agent="ceo", target="strategy:1.1", message="x" * 250)

            self.assertEqual(entry.length, 250)
            self.assertEqual(len(entry.message), 203)
            self.assertTrue(entry.message.endswith("..."))

            line = (logs / SEND_LOG).read_text(encoding="utf-8").strip()
            doc = json.loads(line)
            self.assertEqual(set(doc.keys()), {"timestamp", "agent", "target", "message", "length"})
            self.assertTrue(doc["timestamp"].endswith("Z"))
            self.assertEqual((logs / daily_log_name(entry.timestamp)).read_text(encoding="utf-8").strip(), line)

    def test_short_message_is_kept_verbatim(self) -> None:
        from agentmux.contracts.v1 import DeliveryLogEntry

        entry = DeliveryLogEntry.for_message(agent="a", target="s:1.1", message="x" * 200)
        self.assertEqual(entry.message, "x" * 200)
        self.assertEqual(entry.length, 200)

    def test_daily_file_is_named_by_utc_date(self) -> None:
        from agentmux.kernel.sendlog import daily_log_name

        self.assertEqual(daily_log_name("2024-05-01T23:30:00Z"), "send_2024-05-01.jsonl")
        self.assertEqual(daily_log_name("2024-05-01T23:30:00-02:00"), "send_2024-05-02.jsonl")

    def test_stats_and_recent(self) -> None:
        from agentmux.kernel.sendlog import append_delivery, log_stats, recent_deliveries

        with tempfile.TemporaryDirectory() as td:
            logs = Path(td)
            self.assertEqual(log_stats(logs), {"message_count": 0, "last_message": None})
            for i in range(3):
                append_delivery(logs, agent=f"a{i}", target="s:1.1", message=str(i))
            stats = log_stats(logs)
            self.assertEqual(stats["message_count"], 3)
            self.assertTrue(stats["last_message"])
            self.assertEqual([d["agent"] for d in recent_deliveries(logs, 2)], ["a1", "a2"])


class TestDeliverMessage(unittest.TestCase):
    def _project(self, td: str):
        from agentmux.kernel.config import get_scenario_config, initialize_config
        from agentmux.kernel.context import ProjectContext
        from agentmux.kernel.mapping import generate_mapping

        ctx = ProjectContext(root=Path(td))
        initialize_config(ctx, scenario="business-strategy")
        generate_mapping(get_scenario_config(ctx, "business-strategy"), ctx.mapping_store)
        return ProjectContext(root=Path(td))

    def test_alias_delivery_walks_every_state_and_logs(self) -> None:
        from agentmux.kernel.delivery import deliver_message
        from agentmux.kernel.dispatch import DeliveryState
        from agentmux.kernel.sendlog import recent_deliveries

        with tempfile.TemporaryDirectory() as td:
            ctx = self._project(td)
            with mock.patch("agentmux.runners.tmux.subprocess.run", side_effect=_ok) as run, mock.patch(
                "agentmux.kernel.dispatch.time.sleep"
            ):
                d = deliver_message(ctx, "pm", "Draft the roadmap")

            self.assertEqual(
                d.history,
                [
                    DeliveryState.RESOLVING,
                    DeliveryState.INTERRUPTING,
                    DeliveryState.TYPING,
                    DeliveryState.SUBMITTING,
                    DeliveryState.SETTLING,
                    DeliveryState.DELIVERED,
                ],
            )
            self.assertEqual(d.state, DeliveryState.DELIVERED)
            self.assertTrue(d.aliased)
            self.assertEqual(d.to_dict()["agent"], "product_manager")
            self.assertEqual(run.call_args_list[0].args[0][3], "analysis:1.1")

            logged = recent_deliveries(ctx.logs_dir, 5)
            self.assertEqual(len(logged), 1)
            self.assertEqual(logged[0]["agent"], "product_manager")
            self.assertEqual(logged[0]["target"], "analysis:1.1")

    def test_unknown_agent_fails_without_tmux_or_log(self) -> None:
        from agentmux.errors import NotFoundError
        from agentmux.kernel.delivery import deliver_message
        from agentmux.kernel.sendlog import SEND_LOG

        with tempfile.TemporaryDirectory() as td:
            ctx = self._project(td)
            with mock.patch("agentmux.runners.tmux.subprocess.run", side_effect=_ok) as run:
                with self.assertRaises(NotFoundError) as cm:
                    deliver_message(ctx, "president", "hello")
            self.assertEqual(run.call_count, 0)
            self.assertFalse((ctx.logs_dir / SEND_LOG).exists())
            details = cm.exception.to_dict()["details"]
            self.assertIn("ceo", details["known_agents"])
            self.assertEqual(details["aliases"]["product_manager"], ["pm"])

    def test_dispatch_failure_is_not_logged(self) -> None:
        from agentmux.errors import DispatchError
        from agentmux.kernel.sendlog import SEND_LOG

        from agentmux.kernel import delivery as delivery_mod

        def failing(argv, **_kw):
            return subprocess.CompletedProcess(argv, 1, "", "no server running")

        with tempfile.TemporaryDirectory() as td:
            ctx = self._project(td)
            states = []
            real_enter = delivery_mod.Delivery.enter

            def spy(self, state):
                states.append(state)
                real_enter(self, state)

            with mock.patch("agentmux.runners.tmux.subprocess.run", side_effect=failing), mock.patch(
                "agentmux.kernel.dispatch.time.sleep"
            ), mock.patch.object(delivery_mod.Delivery, "enter", spy):
                with self.assertRaises(DispatchError):
                    delivery_mod.deliver_message(ctx, "ceo", "hello")
            self.assertEqual(states[-1].value, "failed")
            self.assertFalse((ctx.logs_dir / SEND_LOG).exists())


if __name__ == "__main__":
    unittest.main()
