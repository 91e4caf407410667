from __future__ import annotations

from typing import Any, List, Mapping, Optional


def _aliases_of(spec: Any) -> List[str]:
    if isinstance(spec, Mapping):
        raw = spec.get("aliases")
    else:
        raw = getattr(spec, "aliases", None)
    if not isinstance(raw, (list, tuple)):
        return []
    return [a for a in raw if isinstance(a, str)]


def resolve_alias(agents: Mapping[str, Any], requested: str) -> Optional[str]:
    """Resolve `requested` to a canonical agent name.

    A canonical name always wins over another agent's alias of the same
    spelling; otherwise the first agent (in mapping order) listing the alias
    owns it.
    """
    if requested in agents:
        return requested
    for agent_name, spec in agents.items():
        if requested in _aliases_of(spec):
            return agent_name
    return None


def get_agent_spec(agents: Mapping[str, Any], requested: str) -> Optional[Any]:
    resolved = resolve_alias(agents, requested)
    return agents[resolved] if resolved is not None else None
