"""Scenario documents: inline (in agentmux.yaml) or external per-scenario files.

External layout::

    scenarios/<name>/scenario.yaml   name, description, tags, initial_message, ...
    scenarios/<name>/agents.yaml     agent name -> agent spec
    scenarios/<name>/layout.yaml     tmux_sessions (+ layout_descriptions)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1 import ScenarioConfig
from ..errors import ConfigError

logger = logging.getLogger("agentmux.scenarios")

EXTERNAL_FILES = ("scenario.yaml", "agents.yaml", "layout.yaml")


@dataclass
class ScenarioValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    config: Optional[ScenarioConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def scenario_from_doc(doc: Any, *, name: str = "") -> ScenarioConfig:
    if not isinstance(doc, Mapping):
        raise ConfigError(f"scenario {name or '?'}: expected a mapping, got {type(doc).__name__}")
    try:
        return ScenarioConfig.model_validate(dict(doc))
    except ValidationError as e:
        label = name or str(doc.get("name") or "?")
        raise ConfigError(f"invalid scenario {label}: {e}") from e


def _load_yaml_file(path: Path, description: str) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Missing {description} file: {path}")
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {description} file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Unreadable {description} file {path}: {e}") from e
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigError(f"Invalid {description} file {path}: expected a mapping")
    return doc


def scenario_dir(scenarios_root: Path, name: str) -> Path:
    return scenarios_root / name


def has_external_scenario(scenarios_root: Path, name: str) -> bool:
    d = scenario_dir(scenarios_root, name)
    return d.is_dir() and all((d / f).exists() for f in EXTERNAL_FILES)


def load_scenario_from_files(scenarios_root: Path, name: str) -> ScenarioConfig:
    d = scenario_dir(scenarios_root, name)
    if not d.is_dir():
        raise ConfigError(f"Scenario directory not found: {d}")

    meta = _load_yaml_file(d / "scenario.yaml", "scenario metadata")
    agents = _load_yaml_file(d / "agents.yaml", "agents configuration")
    layout = _load_yaml_file(d / "layout.yaml", "layout configuration")

    for agent_name, agent_doc in agents.items():
        if not isinstance(agent_doc, dict):
            continue
        rel = agent_doc.get("instruction_file")
        if not isinstance(rel, str) or not rel.strip():
            continue
        path = d / rel
        if not path.exists():
            continue
        try:
            agent_doc["instructions"] = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("could not load instructions for %s: %s", agent_name, e, extra={"agent": agent_name})

    doc = {
        "name": meta.get("name") or name,
        "description": meta.get("description") or "",
        "version": str(meta.get("version") or "1.0.0"),
        "author": meta.get("author") or "Unknown",
        "tags": meta.get("tags") or [],
        "initial_message": meta.get("initial_message") or "",
        "agents": agents,
        "tmux_sessions": layout.get("tmux_sessions"),
    }
    return scenario_from_doc(doc, name=name)


def available_external_scenarios(scenarios_root: Path) -> List[str]:
    if not scenarios_root.is_dir():
        return []
    return sorted(p.name for p in scenarios_root.iterdir() if has_external_scenario(scenarios_root, p.name))


def validate_external_scenario(scenarios_root: Path, name: str) -> ScenarioValidation:
    try:
        config = load_scenario_from_files(scenarios_root, name)
    except ConfigError as e:
        return ScenarioValidation(valid=False, errors=[str(e)])

    errors: List[str] = []
    warnings: List[str] = []
    if not config.name:
        errors.append("Missing scenario name")
    if not config.tmux_sessions:
        errors.append("Missing tmux_sessions configuration")
    if not config.agents:
        errors.append("Missing agents configuration")
    errors.extend(config.session_errors())

    d = scenario_dir(scenarios_root, name)
    for agent_name, spec in config.agents.items():
        if not spec.instruction_file:
            warnings.append(f"No instruction file specified for agent: {agent_name}")
        elif not (d / spec.instruction_file).exists():
            warnings.append(f"Instruction file not found for {agent_name}: {spec.instruction_file}")

    return ScenarioValidation(valid=not errors, errors=errors, warnings=warnings, config=config)
