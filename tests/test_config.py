import json
import os
import tempfile
import unittest
from pathlib import Path

import yaml


class TestProjectConfig(unittest.TestCase):
    def test_init_writes_yaml_and_directories(self) -> None:
        from agentmux.kernel.config import initialize_config, load_config
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ProjectContext(root=Path(td))
            initialize_config(ctx, scenario="hello-world", project_name="demo")
            for d in (ctx.tmp_dir, ctx.logs_dir, ctx.scenarios_dir):
                self.assertTrue(d.is_dir())

            doc = yaml.safe_load(ctx.config_path.read_text(encoding="utf-8"))
            self.assertEqual(doc["currentScenario"], "hello-world")
            self.assertEqual(doc["settings"]["messageWaitTime"], 0.5)
            self.assertTrue(doc["settings"]["autoStartAgents"])

            cfg = load_config(ProjectContext(root=Path(td)))
            self.assertEqual(cfg.project_name, "demo")
            self.assertEqual(sorted(cfg.scenarios), ["business-strategy", "hello-world"])

    def test_init_refuses_to_overwrite_without_force(self) -> None:
        from agentmux.errors import ConfigError
        from agentmux.kernel.config import initialize_config
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ProjectContext(root=Path(td))
            initialize_config(ctx)
            with self.assertRaises(ConfigError):
                initialize_config(ctx)
            initialize_config(ctx, scenario="hello-world", force=True)
            with self.assertRaises(ConfigError):
                initialize_config(ctx, scenario="nope", force=True)

    def test_missing_and_malformed_config(self) -> None:
        from agentmux.errors import ConfigError
        from agentmux.kernel.config import load_config
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                load_config(ProjectContext(root=Path(td)))

            Path(td, "agentmux.yaml").write_text("version: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(ProjectContext(root=Path(td)))

            Path(td, "agentmux.yaml").write_text("version: '2.0.0'\n", encoding="utf-8")
            with self.assertRaises(ConfigError) as cm:
                load_config(ProjectContext(root=Path(td)))
            self.assertIn("scenarios", str(cm.exception))

    def test_legacy_json_config_is_read(self) -> None:
        from agentmux.kernel.config import current_scenario_config, default_config_doc, load_config
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            doc = default_config_doc(scenario="hello-world")
            doc["settings"] = {"autoStartClaude": False, "messageWaitTime": "2"}
            Path(td, "agentmux.json").write_text(json.dumps(doc), encoding="utf-8")

            ctx = ProjectContext(root=Path(td))
            cfg = load_config(ctx)
            self.assertEqual(cfg.path, ctx.config_path)
            self.assertFalse(cfg.settings.auto_start_agents)
            self.assertEqual(cfg.settings.message_wait_time, 2.0)
            self.assertEqual(current_scenario_config(ctx).agents["boss1"].aliases, ["boss"])

    def test_set_current_scenario(self) -> None:
        from agentmux.errors import ConfigError
        from agentmux.kernel.config import initialize_config, load_config, set_current_scenario
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ProjectContext(root=Path(td))
            initialize_config(ctx)
            set_current_scenario(ctx, "hello-world")
            self.assertEqual(ctx.current_scenario_path.read_text(encoding="utf-8"), "hello-world")
            self.assertEqual(load_config(ProjectContext(root=Path(td))).current_scenario, "hello-world")
            with self.assertRaises(ConfigError):
                set_current_scenario(ctx, "missing")

    def test_validate_config_reports_dangling_sessions(self) -> None:
        from agentmux.kernel.config import initialize_config, load_config, save_config, validate_config
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ProjectContext(root=Path(td))
            initialize_config(ctx)
            self.assertEqual(validate_config(ctx), {"valid": True, "errors": []})

            cfg = load_config(ctx)
            cfg.scenarios["hello-world"]["agents"]["ghost"] = {"session": "nowhere", "pane": 0}
            save_config(ctx, cfg)
            report = validate_config(ctx)
            self.assertFalse(report["valid"])
            self.assertEqual(len(report["errors"]), 1)
            self.assertIn("nowhere", report["errors"][0])

    def test_list_scenarios_detailed(self) -> None:
        from agentmux.kernel.config import initialize_config, list_scenarios
        from agentmux.kernel.context import ProjectContext

        with tempfile.TemporaryDirectory() as td:
            ctx = ProjectContext(root=Path(td))
            initialize_config(ctx)
            items = {i["id"]: i for i in list_scenarios(ctx, detailed=True)}
            self.assertTrue(items["business-strategy"]["current"])
            self.assertEqual(items["business-strategy"]["agent_count"], 6)
            self.assertEqual(items["hello-world"]["session_count"], 2)

    def test_project_root_from_environment(self) -> None:
        from agentmux.kernel.context import ProjectContext

        old = os.environ.get("AGENTMUX_PROJECT")
        try:
            with tempfile.TemporaryDirectory() as td:
                os.environ["AGENTMUX_PROJECT"] = td
                self.assertEqual(ProjectContext.from_path().root, Path(td).resolve())
                self.assertEqual(ProjectContext.from_path(td).root, Path(td).resolve())
        finally:
            if old is None:
                os.environ.pop("AGENTMUX_PROJECT", None)
            else:
                os.environ["AGENTMUX_PROJECT"] = old


class TestSettings(unittest.TestCase):
    def test_loose_values_are_coerced(self) -> None:
        from agentmux.contracts.v1 import ProjectSettings

        s = ProjectSettings.model_validate({"autoStartAgents": "no", "colorOutput": "1", "messageWaitTime": "bad"})
        self.assertFalse(s.auto_start_agents)
        self.assertTrue(s.color_output)
        self.assertEqual(s.message_wait_time, 0.5)
        self.assertEqual(ProjectSettings().agent_command, "claude")


if __name__ == "__main__":
    unittest.main()
