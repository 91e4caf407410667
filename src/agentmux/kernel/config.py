"""Project configuration (`agentmux.yaml`).

The document is kept as a plain dict so unknown keys survive a load/save
round trip; typed views are built on demand.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1 import ProjectSettings, ScenarioConfig
from ..errors import ConfigError, StorageError
from ..util.fs import atomic_write_text
from ..util.time import utc_now_iso
from .context import ProjectContext
from .scenarios import available_external_scenarios, has_external_scenario, load_scenario_from_files, scenario_from_doc

logger = logging.getLogger("agentmux.config")

CONFIG_VERSION = "2.0.0"
DEFAULT_SCENARIO = "business-strategy"


@dataclass
class ProjectConfig:
    path: Path
    doc: Dict[str, Any]

    @property
    def version(self) -> str:
        return str(self.doc.get("version") or "")

    @property
    def project_name(self) -> str:
        return str(self.doc.get("projectName") or "")

    @property
    def current_scenario(self) -> str:
        return str(self.doc.get("currentScenario") or "").strip()

    @property
    def scenarios(self) -> Dict[str, Any]:
        d = self.doc.setdefault("scenarios", {})
        return d if isinstance(d, dict) else {}

    @property
    def settings(self) -> ProjectSettings:
        raw = self.doc.get("settings")
        try:
            return ProjectSettings.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as e:
            raise ConfigError(f"invalid settings in {self.path}: {e}") from e


def _check_required(doc: Any, path: Path) -> Dict[str, Any]:
    if not isinstance(doc, dict):
        raise ConfigError(f"Invalid configuration file {path}: expected a mapping")
    if not doc.get("version"):
        raise ConfigError(f"Invalid configuration file {path}: missing version")
    if not isinstance(doc.get("scenarios"), dict):
        raise ConfigError(f"Invalid configuration file {path}: missing scenarios")
    return doc


def load_config(ctx: ProjectContext, *, reload: bool = False) -> ProjectConfig:
    if ctx.config is not None and not reload:
        return ctx.config

    if ctx.config_path.exists():
        try:
            doc = yaml.safe_load(ctx.config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {ctx.config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Unreadable configuration {ctx.config_path}: {e}") from e
        cfg = ProjectConfig(path=ctx.config_path, doc=_check_required(doc, ctx.config_path))
    elif ctx.legacy_config_path.exists():
        logger.warning("using legacy JSON config %s", ctx.legacy_config_path)
        try:
            doc = json.loads(ctx.legacy_config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Invalid configuration {ctx.legacy_config_path}: {e}") from e
        # saved back as YAML on the next write
        cfg = ProjectConfig(path=ctx.config_path, doc=_check_required(doc, ctx.legacy_config_path))
    else:
        raise ConfigError(f"Configuration file not found in {ctx.root}. Run: agentmux init")

    ctx.config = cfg
    return cfg


def save_config(ctx: ProjectContext, cfg: ProjectConfig) -> None:
    cfg.doc["lastUpdated"] = utc_now_iso()
    text = yaml.safe_dump(cfg.doc, allow_unicode=True, sort_keys=False, indent=2, width=120)
    try:
        atomic_write_text(cfg.path, text)
    except OSError as e:
        raise StorageError(f"failed to save configuration {cfg.path}: {e}") from e
    ctx.config = cfg


def default_config_doc(*, scenario: str = DEFAULT_SCENARIO, project_name: str = "") -> Dict[str, Any]:
    now = utc_now_iso()
    return {
        "version": CONFIG_VERSION,
        "currentScenario": scenario,
        "projectName": project_name,
        "scenarios": {
            "hello-world": {
                "name": "Hello World Demo",
                "description": "Basic multi-agent messaging demo",
                "tmux_sessions": {
                    "president": {
                        "window_name": "president",
                        "panes": [{"role": "president", "color": "magenta"}],
                    },
                    "multiagent": {
                        "window_name": "multiagent-team",
                        "panes": [
                            {"role": "boss1", "color": "red"},
                            {"role": "worker1", "color": "blue"},
                            {"role": "worker2", "color": "blue"},
                            {"role": "worker3", "color": "blue"},
                        ],
                    },
                },
                "agents": {
                    "president": {"role": "Overall lead", "session": "president", "pane": 0},
                    "boss1": {"role": "Team lead", "session": "multiagent", "pane": 0, "aliases": ["boss"]},
                    "worker1": {"role": "Worker 1", "session": "multiagent", "pane": 1},
                    "worker2": {"role": "Worker 2", "session": "multiagent", "pane": 2},
                    "worker3": {"role": "Worker 3", "session": "multiagent", "pane": 3},
                },
            },
            "business-strategy": {
                "name": "Business Strategy Discussion",
                "description": "Executive team discussing business strategy",
                "tmux_sessions": {
                    "strategy": {
                        "window_name": "strategy-team",
                        "panes": [
                            {"role": "ceo", "color": "magenta"},
                            {"role": "cto", "color": "red"},
                            {"role": "cfo", "color": "green"},
                            {"role": "cmo", "color": "yellow"},
                        ],
                    },
                    "analysis": {
                        "window_name": "analysis-team",
                        "panes": [
                            {"role": "product_manager", "color": "blue"},
                            {"role": "data_analyst", "color": "cyan"},
                        ],
                    },
                },
                "agents": {
                    "ceo": {"role": "Chief Executive Officer", "session": "strategy", "pane": 0},
                    "cto": {"role": "Chief Technology Officer", "session": "strategy", "pane": 1},
                    "cfo": {"role": "Chief Financial Officer", "session": "strategy", "pane": 2},
                    "cmo": {"role": "Chief Marketing Officer", "session": "strategy", "pane": 3},
                    "product_manager": {
                        "role": "Product Manager",
                        "session": "analysis",
                        "pane": 0,
                        "aliases": ["pm"],
                    },
                    "data_analyst": {
                        "role": "Data Analyst",
                        "session": "analysis",
                        "pane": 1,
                        "aliases": ["analyst"],
                    },
                },
            },
        },
        "settings": ProjectSettings().model_dump(by_alias=True),
        "createdAt": now,
        "lastUpdated": now,
    }


def initialize_config(
    ctx: ProjectContext,
    *,
    scenario: str = DEFAULT_SCENARIO,
    project_name: str = "",
    force: bool = False,
) -> ProjectConfig:
    if ctx.config_path.exists() and not force:
        raise ConfigError(f"{ctx.config_path} already exists (use --force to overwrite)")
    doc = default_config_doc(scenario=scenario, project_name=project_name or ctx.root.name)
    if scenario not in doc["scenarios"]:
        raise ConfigError(f"Invalid scenario: {scenario}")
    cfg = ProjectConfig(path=ctx.config_path, doc=doc)
    for d in (ctx.tmp_dir, ctx.logs_dir, ctx.scenarios_dir):
        d.mkdir(parents=True, exist_ok=True)
    save_config(ctx, cfg)
    return cfg


def scenario_names(ctx: ProjectContext) -> List[str]:
    cfg = load_config(ctx)
    names = list(cfg.scenarios.keys())
    for name in available_external_scenarios(ctx.scenarios_dir):
        if name not in names:
            names.append(name)
    return names


def get_scenario_config(ctx: ProjectContext, name: str) -> ScenarioConfig:
    """External files win over the inline entry of the same name."""
    cfg = load_config(ctx)
    if has_external_scenario(ctx.scenarios_dir, name):
        return load_scenario_from_files(ctx.scenarios_dir, name)
    raw = cfg.scenarios.get(name)
    if raw is None:
        raise ConfigError(f"Scenario not found: {name}")
    return scenario_from_doc(raw, name=name)


def current_scenario_config(ctx: ProjectContext) -> Optional[ScenarioConfig]:
    name = load_config(ctx).current_scenario
    if not name:
        return None
    return get_scenario_config(ctx, name)


def set_current_scenario(ctx: ProjectContext, name: str) -> None:
    cfg = load_config(ctx)
    if name not in scenario_names(ctx):
        raise ConfigError(f"Invalid scenario: {name}")
    cfg.doc["currentScenario"] = name
    save_config(ctx, cfg)
    try:
        atomic_write_text(ctx.current_scenario_path, name)
    except OSError as e:
        raise StorageError(f"failed to write {ctx.current_scenario_path}: {e}") from e


def list_scenarios(ctx: ProjectContext, *, detailed: bool = False) -> List[Dict[str, Any]]:
    cfg = load_config(ctx)
    out: List[Dict[str, Any]] = []
    for name in scenario_names(ctx):
        item: Dict[str, Any] = {"id": name, "current": name == cfg.current_scenario}
        try:
            sc = get_scenario_config(ctx, name)
        except ConfigError as e:
            item["error"] = str(e)
            out.append(item)
            continue
        item["name"] = sc.name
        item["description"] = sc.description
        if detailed:
            item["agent_count"] = len(sc.agents)
            item["session_count"] = len(sc.tmux_sessions)
            item["agents"] = list(sc.agents.keys())
        out.append(item)
    return out


def validate_config(ctx: ProjectContext) -> Dict[str, Any]:
    try:
        cfg = load_config(ctx, reload=True)
    except ConfigError as e:
        return {"valid": False, "errors": [str(e)]}

    errors: List[str] = []
    if "settings" not in cfg.doc:
        errors.append("Missing settings")
    for name, raw in cfg.scenarios.items():
        if not isinstance(raw, dict):
            errors.append(f"Scenario {name}: expected a mapping")
            continue
        if raw.get("type") == "external":
            continue
        if not raw.get("name"):
            errors.append(f"Scenario {name}: missing name")
        if not raw.get("tmux_sessions"):
            errors.append(f"Scenario {name}: missing tmux_sessions")
        if not raw.get("agents"):
            errors.append(f"Scenario {name}: missing agents")
        try:
            sc = scenario_from_doc(raw, name=name)
        except ConfigError as e:
            errors.append(str(e))
            continue
        errors.extend(f"Scenario {name}: {msg}" for msg in sc.session_errors())
    return {"valid": not errors, "errors": errors}
