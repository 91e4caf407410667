from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ..contracts.v1 import ScenarioConfig
from .aliases import resolve_alias
from .context import ProjectContext


@dataclass(frozen=True)
class AgentLocation:
    name: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "target": self.target}


def locate(mapping: Mapping[str, str], requested: str, scenario: Optional[ScenarioConfig] = None) -> Optional[AgentLocation]:
    """Lookup order: alias (when a scenario is given), exact, case-insensitive, substring."""
    if not isinstance(requested, str) or not requested.strip():
        return None

    if scenario is not None and scenario.agents:
        resolved = resolve_alias(scenario.agents, requested)
        if resolved is not None and resolved in mapping:
            return AgentLocation(name=resolved, target=mapping[resolved])

    if requested in mapping:
        return AgentLocation(name=requested, target=mapping[requested])

    lowered = requested.lower()
    for name, target in mapping.items():
        if name.lower() == lowered:
            return AgentLocation(name=name, target=target)

    for name, target in mapping.items():
        if lowered in name.lower():
            return AgentLocation(name=name, target=target)

    return None


def find_agent(ctx: ProjectContext, requested: str, scenario: Optional[ScenarioConfig] = None) -> Optional[AgentLocation]:
    """Resolve `requested` against the persisted mapping; StorageError if it cannot be read."""
    return locate(ctx.load_mapping(), requested, scenario)
