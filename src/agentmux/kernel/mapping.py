"""Agent name -> pane target mapping: generation and dual-format persistence.

The JSON file is authoritative for reads. The shell script is kept for
scripts that want `source tmp/agent_mapping.sh; get_agent_target ceo`.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping

from ..contracts.v1 import ScenarioConfig
from ..errors import ConfigError, StorageError
from ..util.fs import atomic_write_json, atomic_write_text, remove_if_exists
from .dispatch import escape_text
from .scenarios import scenario_from_doc
from .target import format_target, parse_target

logger = logging.getLogger("agentmux.mapping")

JSON_NAME = "agent_mapping.json"
SHELL_NAME = "agent_mapping.sh"

# `"<agent>") echo "<target>" ;;` with backslash escapes allowed in both halves
_CASE_ARM_RE = re.compile(r'^\s*"((?:[^"\\]|\\.)+)"\)\s*echo\s*"((?:[^"\\]|\\.)*)"')
_UNESCAPE_RE = re.compile(r"\\(.)")

_SHELL_TEMPLATE = """#!/bin/bash
# Auto-generated agent mapping for tmux targets

get_agent_target() {{
    case "$1" in
{arms}
        *) echo "" ;;
    esac
}}

# Export function for sourcing
export -f get_agent_target 2>/dev/null || true
"""


def render_shell_mapping(mapping: Mapping[str, str]) -> str:
    arms = [f'        "{escape_text(agent)}") echo "{escape_text(target)}" ;;' for agent, target in mapping.items()]
    return _SHELL_TEMPLATE.format(arms="\n".join(arms))


def parse_shell_mapping(text: str) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for line in (text or "").splitlines():
        m = _CASE_ARM_RE.match(line)
        if not m:
            continue
        agent = _UNESCAPE_RE.sub(r"\1", m.group(1))
        target = _UNESCAPE_RE.sub(r"\1", m.group(2))
        if not target.strip():
            continue
        mapping[agent] = target
    return mapping


def _decodable_lines(data: bytes) -> str:
    # a line with bad bytes is dropped like any other malformed arm
    lines: List[str] = []
    for raw in data.splitlines():
        try:
            lines.append(raw.decode("utf-8"))
        except UnicodeDecodeError:
            continue
    return "\n".join(lines)


class MappingStore:
    def __init__(self, directory: Path):
        self.directory = Path(directory)

    @property
    def json_path(self) -> Path:
        return self.directory / JSON_NAME

    @property
    def shell_path(self) -> Path:
        return self.directory / SHELL_NAME

    def save(self, mapping: Mapping[str, str]) -> None:
        doc = {str(k): str(v) for k, v in mapping.items()}
        try:
            atomic_write_json(self.json_path, doc)
            atomic_write_text(self.shell_path, render_shell_mapping(doc), mode=0o755)
        except OSError as e:
            raise StorageError(f"failed to save agent mapping: {e}") from e
        logger.info("saved mapping for %d agents", len(doc), extra={"op": "mapping.save"})

    def load(self) -> Dict[str, str]:
        try:
            if self.json_path.exists():
                return self._load_json()
            if self.shell_path.exists():
                return parse_shell_mapping(_decodable_lines(self.shell_path.read_bytes()))
        except StorageError:
            raise
        except OSError as e:
            raise StorageError(f"failed to read agent mapping: {e}") from e
        return {}

    def _load_json(self) -> Dict[str, str]:
        try:
            doc = json.loads(self.json_path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise StorageError(f"malformed agent mapping {self.json_path}: {e}") from e
        if not isinstance(doc, dict):
            raise StorageError(f"malformed agent mapping {self.json_path}: expected an object")
        # values are kept as-is so validate_mapping can report bad entries
        return dict(doc)

    def clear(self) -> List[Path]:
        removed: List[Path] = []
        for p in (self.json_path, self.shell_path):
            try:
                if remove_if_exists(p):
                    removed.append(p)
            except OSError as e:
                raise StorageError(f"failed to remove {p}: {e}") from e
        return removed


def generate_mapping(scenario: Any, store: MappingStore) -> Dict[str, str]:
    """Derive and persist `{agent: "<session>:1.<pane+1>"}` for a scenario.

    Nothing is written unless every agent's session is declared.
    """
    if not isinstance(scenario, ScenarioConfig):
        scenario = scenario_from_doc(scenario)

    errors = scenario.session_errors()
    if errors:
        raise ConfigError("; ".join(errors))

    mapping: Dict[str, str] = {}
    for agent_name, spec in scenario.agents.items():
        # declared panes are 0-based, tmux panes are numbered from 1
        mapping[agent_name] = format_target(spec.session, spec.pane + 1)

    store.save(mapping)
    logger.info("generated mapping for %d agents", len(mapping), extra={"op": "mapping.generate", "scenario": scenario.name})
    return mapping


def list_agents(mapping: Mapping[str, str]) -> List[Dict[str, Any]]:
    agents: List[Dict[str, Any]] = []
    for name, target in mapping.items():
        parsed = parse_target(str(target))
        agents.append(
            {
                "name": name,
                "target": target,
                "session": parsed.session if parsed else "",
                "window": parsed.window if parsed else "",
                "pane": parsed.pane if parsed else None,
            }
        )
    agents.sort(key=lambda a: str(a["name"]))
    return agents


def session_counts(mapping: Mapping[str, str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for target in mapping.values():
        session = str(target).split(":", 1)[0]
        counts[session] = counts.get(session, 0) + 1
    return counts
