from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ...util.conv import coerce_bool, coerce_float


class ProjectSettings(BaseModel):
    tmux_prefix: str = Field(default="C-b", alias="tmuxPrefix")
    auto_start_agents: bool = Field(
        default=True,
        validation_alias=AliasChoices("autoStartAgents", "autoStartClaude", "auto_start_agents"),
        serialization_alias="autoStartAgents",
    )
    agent_command: str = Field(default="claude", alias="agentCommand")
    log_level: str = Field(default="info", alias="logLevel")
    color_output: bool = Field(default=True, alias="colorOutput")
    message_wait_time: float = Field(default=0.5, alias="messageWaitTime", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("auto_start_agents", "color_output", mode="before")
    @classmethod
    def _loose_bool(cls, v: Any) -> bool:
        return coerce_bool(v, default=True)

    @field_validator("message_wait_time", mode="before")
    @classmethod
    def _loose_float(cls, v: Any) -> float:
        return coerce_float(v, default=0.5)
