from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PaneSpec(BaseModel):
    role: str = ""
    color: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SessionSpec(BaseModel):
    """One tmux session of a scenario; list position of a pane is its 0-based index."""

    window_name: Optional[str] = None
    panes: List[PaneSpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("panes", mode="before")
    @classmethod
    def _none_panes(cls, v: Any) -> Any:
        return [] if v is None else v


class AgentSpec(BaseModel):
    role: str = ""
    session: str
    pane: int = Field(ge=0)
    aliases: List[str] = Field(default_factory=list)
    color: Optional[str] = None
    instruction_file: Optional[str] = None
    instructions: Optional[str] = None

    # responsibilities, communication_style, ... are carried through untouched
    model_config = ConfigDict(extra="allow")

    @field_validator("aliases", mode="before")
    @classmethod
    def _none_aliases(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ScenarioConfig(BaseModel):
    name: str = ""
    description: str = ""
    version: str = ""
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    initial_message: str = ""
    agents: Dict[str, AgentSpec] = Field(default_factory=dict)
    tmux_sessions: Dict[str, SessionSpec] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @field_validator("agents", "tmux_sessions", mode="before")
    @classmethod
    def _none_maps(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            # `strategy:` with an empty body loads as None
            return {k: ({} if item is None else item) for k, item in v.items()}
        return v

    @model_validator(mode="after")
    def _names_present(self) -> "ScenarioConfig":
        for agent_name in self.agents:
            if not str(agent_name).strip():
                raise ValueError("agent name must be a non-empty string")
        for session_name in self.tmux_sessions:
            if not str(session_name).strip():
                raise ValueError("session name must be a non-empty string")
        return self

    def session_errors(self) -> List[str]:
        """Agents that point at a session this scenario does not declare."""
        errors: List[str] = []
        for agent_name, spec in self.agents.items():
            if spec.session not in self.tmux_sessions:
                errors.append(f"Agent {agent_name} references non-existent session: {spec.session}")
        return errors

    def alias_table(self) -> Dict[str, List[str]]:
        return {name: list(spec.aliases) for name, spec in self.agents.items() if spec.aliases}
