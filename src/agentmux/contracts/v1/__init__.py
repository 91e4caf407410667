from __future__ import annotations

from .delivery import MESSAGE_PREVIEW_LIMIT, DeliveryLogEntry
from .scenario import AgentSpec, PaneSpec, ScenarioConfig, SessionSpec
from .settings import ProjectSettings

__all__ = [
    "AgentSpec",
    "DeliveryLogEntry",
    "MESSAGE_PREVIEW_LIMIT",
    "PaneSpec",
    "ProjectSettings",
    "ScenarioConfig",
    "SessionSpec",
]
