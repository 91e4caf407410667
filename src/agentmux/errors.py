from __future__ import annotations

from typing import Dict, List, Optional


class AgentMuxError(Exception):
    """Base class for operational failures surfaced at the CLI boundary."""

    code = "agentmux_error"

    def to_dict(self) -> Dict[str, object]:
        return {"code": self.code, "message": str(self)}


class ConfigError(AgentMuxError, ValueError):
    code = "config_error"


class NotFoundError(AgentMuxError, LookupError):
    code = "agent_not_found"

    def __init__(
        self,
        requested: str,
        *,
        known_agents: Optional[Dict[str, str]] = None,
        aliases: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(f"agent not found: {requested}")
        self.requested = requested
        self.known_agents = dict(known_agents or {})
        self.aliases = dict(aliases or {})

    def to_dict(self) -> Dict[str, object]:
        d = super().to_dict()
        d["details"] = {"known_agents": self.known_agents, "aliases": self.aliases}
        return d


class DispatchError(AgentMuxError, RuntimeError):
    code = "dispatch_failed"

    def __init__(self, message: str, *, target: str = "", step: str = "", output: str = ""):
        super().__init__(message)
        self.target = target
        self.step = step
        self.output = output

    def to_dict(self) -> Dict[str, object]:
        d = super().to_dict()
        d["details"] = {"target": self.target, "step": self.step, "output": self.output}
        return d


class StorageError(AgentMuxError, OSError):
    """Mapping store or delivery log I/O failure."""

    code = "storage_error"
