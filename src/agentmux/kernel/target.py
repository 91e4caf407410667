"""Pane target addressing: `<session>:<window-or-index>.<pane-index>`."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

# Window segment is either a symbolic window name or a numeric index; the
# pane segment is always numeric.
_TARGET_RE = re.compile(r"^[A-Za-z0-9_-]+:(([A-Za-z0-9_-]+\.\d+)|(\d+\.\d+))$", re.ASCII)

CONTENT_WINDOW = 1


@dataclass(frozen=True)
class ParsedTarget:
    session: str
    window: str
    pane: int


@dataclass
class MappingValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}


def is_valid_target(target: Any) -> bool:
    if not isinstance(target, str):
        return False
    # fullmatch, since `$` alone would accept a trailing newline
    return _TARGET_RE.fullmatch(target) is not None


def format_target(session: str, pane: int, *, window: Any = CONTENT_WINDOW) -> str:
    return f"{session}:{window}.{pane}"


def parse_target(target: str) -> Optional[ParsedTarget]:
    session, sep, rest = (target or "").partition(":")
    if not sep or not session:
        return None
    window, dot, pane = rest.rpartition(".")
    if not dot:
        window, pane = "0", rest
    try:
        return ParsedTarget(session=session, window=window, pane=int(pane))
    except ValueError:
        return None


def validate_mapping(mapping: Mapping[Any, Any]) -> MappingValidation:
    errors: List[str] = []
    for agent, target in mapping.items():
        if not isinstance(agent, str) or not agent:
            errors.append(f"Invalid agent name: {agent!r}")
            continue
        if not isinstance(target, str) or not target:
            errors.append(f"Invalid target for agent {agent}: {target!r}")
            continue
        if not is_valid_target(target):
            errors.append(f"Invalid tmux target format for agent {agent}: {target}")
    return MappingValidation(valid=not errors, errors=errors)
