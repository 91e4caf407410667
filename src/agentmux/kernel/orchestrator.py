"""tmux session lifecycle for scenarios: create, inspect, start agents, switch, reset."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..contracts.v1 import ScenarioConfig, SessionSpec
from ..errors import AgentMuxError, ConfigError, DispatchError
from ..runners import tmux as tmux_runner
from .config import get_scenario_config, load_config, scenario_names, set_current_scenario
from .context import ProjectContext
from .dispatch import send_to_pane
from .mapping import generate_mapping
from .target import format_target

logger = logging.getLogger("agentmux.orchestrator")

_COLOR_CODES = {
    "black": "30",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "white": "37",
}

# Foreground commands that mean "just a shell, no agent running".
_SHELLS = {"bash", "zsh", "sh", "fish", "dash"}


def color_code(color: str) -> str:
    return _COLOR_CODES.get((color or "").strip().lower(), "37")


@dataclass
class SessionStatus:
    required: List[str]
    existing: List[str]
    existing_sessions: List[str] = field(default_factory=list)
    missing_sessions: List[str] = field(default_factory=list)

    @property
    def all_exist(self) -> bool:
        return not self.missing_sessions

    @property
    def none_exist(self) -> bool:
        return not self.existing_sessions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "required": list(self.required),
            "existing_sessions": list(self.existing_sessions),
            "missing_sessions": list(self.missing_sessions),
            "all_exist": self.all_exist,
            "none_exist": self.none_exist,
        }


def check_sessions(scenario: ScenarioConfig) -> SessionStatus:
    required = list(scenario.tmux_sessions.keys())
    existing = tmux_runner.list_sessions()
    present = set(existing)
    return SessionStatus(
        required=required,
        existing=existing,
        existing_sessions=[s for s in required if s in present],
        missing_sessions=[s for s in required if s not in present],
    )


def _type_line(target: str, line: str) -> None:
    # shell setup lines are typed verbatim, without message escaping
    for keys, literal in (((line,), True), (("C-m",), False)):
        code, out, err = tmux_runner.send_keys(target, *keys, literal=literal)
        if code != 0:
            output = (err or out).strip()
            raise DispatchError(f"failed to type into {target}: {output}", target=target, step="setup", output=output)


def _setup_pane_prompts(session: str, spec: SessionSpec) -> None:
    for i, pane in enumerate(spec.panes):
        target = format_target(session, i + 1)
        role = pane.role or "agent"
        try:
            if pane.color:
                prompt = f"PS1='\\[\\033[1;{color_code(pane.color)}m\\]{role}\\[\\033[0m\\]@\\h:\\w\\$ '"
                _type_line(target, prompt)
                _type_line(target, "clear")
            _type_line(target, f"echo '{role} ready'")
        except DispatchError as e:
            logger.warning("pane prompt setup failed: %s", e, extra={"session": session, "target": target})


def create_session(session: str, spec: SessionSpec) -> None:
    if tmux_runner.kill_session(session):
        logger.info("removed existing session", extra={"session": session})

    window = spec.window_name or session
    code, _, err = tmux_runner.new_session(session, window)
    if code != 0:
        raise DispatchError(f"tmux new-session failed for {session}: {err.strip()}", target=session, step="create", output=err.strip())
    tmux_runner.number_from_one(session)

    for _ in range(1, len(spec.panes)):
        code, _, err = tmux_runner.split_window(session)
        if code != 0:
            raise DispatchError(f"tmux split-window failed for {session}: {err.strip()}", target=session, step="split", output=err.strip())

    if len(spec.panes) > 1:
        tmux_runner.select_layout(session, "tiled")

    _setup_pane_prompts(session, spec)
    logger.info("created session with %d panes", max(len(spec.panes), 1), extra={"session": session})


def setup_sessions(scenario: ScenarioConfig) -> List[str]:
    created: List[str] = []
    for session, spec in scenario.tmux_sessions.items():
        create_session(session, spec)
        created.append(session)
    return created


def kill_sessions(sessions: List[str]) -> List[str]:
    killed: List[str] = []
    for s in sessions:
        if tmux_runner.kill_session(s):
            killed.append(s)
        else:
            logger.warning("failed to kill session", extra={"session": s})
    return killed


def start_agents(scenario: ScenarioConfig, command: str = "claude") -> Dict[str, Any]:
    """Type the agent command into every declared pane, one pane at a time."""
    started: List[Dict[str, str]] = []
    failed: List[Dict[str, str]] = []
    for session, spec in scenario.tmux_sessions.items():
        for i, pane in enumerate(spec.panes):
            target = format_target(session, i + 1)
            role = pane.role or "agent"
            try:
                send_to_pane(target, command, clear=True, wait=0.5)
            except DispatchError as e:
                logger.warning("agent start failed: %s", e, extra={"target": target})
                failed.append({"target": target, "role": role, "error": str(e)})
                continue
            started.append({"target": target, "role": role})
    return {"started": started, "failed": failed}


def pane_status(target: str) -> Dict[str, Any]:
    command = tmux_runner.pane_current_command(target)
    if command is None:
        return {"target": target, "running": False, "command": None, "status": "error"}
    running = bool(command) and command not in _SHELLS
    return {"target": target, "running": running, "command": command, "status": "active" if running else "idle"}


def agent_status(scenario: ScenarioConfig) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for session, spec in scenario.tmux_sessions.items():
        panes = []
        for i, pane in enumerate(spec.panes):
            st = pane_status(format_target(session, i + 1))
            st["role"] = pane.role or "agent"
            panes.append(st)
        out[session] = {
            "total_panes": len(panes),
            "active_panes": sum(1 for p in panes if p["running"]),
            "panes": panes,
        }
    return out


def _require_scenario(ctx: ProjectContext, name: str) -> ScenarioConfig:
    if name not in scenario_names(ctx):
        raise ConfigError(f"Invalid scenario: {name} (available: {', '.join(scenario_names(ctx))})")
    return get_scenario_config(ctx, name)


def start_scenario(ctx: ProjectContext, name: Optional[str] = None, *, launch_agents: Optional[bool] = None) -> Dict[str, Any]:
    cfg = load_config(ctx)
    target_name = (name or "").strip() or cfg.current_scenario or "business-strategy"
    scenario = _require_scenario(ctx, target_name)
    errors = scenario.session_errors()
    if errors:
        raise ConfigError("; ".join(errors))

    reused = check_sessions(scenario).existing_sessions
    created = setup_sessions(scenario)
    mapping = generate_mapping(scenario, ctx.mapping_store)
    ctx.remember_mapping(mapping)
    set_current_scenario(ctx, target_name)

    settings = cfg.settings
    launch = settings.auto_start_agents if launch_agents is None else launch_agents
    agents: Dict[str, Any] = {"started": [], "failed": [], "skipped": not launch}
    if launch:
        agents.update(start_agents(scenario, settings.agent_command))

    return {
        "scenario": target_name,
        "name": scenario.name,
        "project": str(ctx.root),
        "replaced_sessions": reused,
        "sessions": created,
        "mapping": mapping,
        "agents": agents,
    }


def switch_scenario(ctx: ProjectContext, name: str, *, preserve_sessions: bool = False) -> Dict[str, Any]:
    cfg = load_config(ctx)
    scenario = _require_scenario(ctx, name)
    previous = cfg.current_scenario

    if previous == name:
        return {"scenario": name, "previous": previous, "changed": False, "mapping": ctx.load_mapping()}

    errors = scenario.session_errors()
    if errors:
        raise ConfigError("; ".join(errors))

    status = check_sessions(scenario)
    reuse = preserve_sessions and bool(status.existing_sessions) and status.all_exist
    killed: List[str] = []
    if not reuse:
        if not preserve_sessions and status.existing_sessions:
            killed = kill_sessions(status.existing_sessions)
        setup_sessions(scenario)

    mapping = generate_mapping(scenario, ctx.mapping_store)
    ctx.remember_mapping(mapping)
    set_current_scenario(ctx, name)
    return {
        "scenario": name,
        "previous": previous or None,
        "changed": True,
        "reused_sessions": reuse,
        "killed_sessions": killed,
        "sessions": status.to_dict(),
        "mapping": mapping,
    }


def reset_environment(ctx: ProjectContext) -> Dict[str, Any]:
    """Kill every session any scenario declares and drop the mapping files."""
    declared: List[str] = []
    for name in scenario_names(ctx):
        try:
            sc = get_scenario_config(ctx, name)
        except AgentMuxError as e:
            logger.warning("skipping scenario during reset: %s", e, extra={"scenario": name})
            continue
        for s in sc.tmux_sessions:
            if s not in declared:
                declared.append(s)

    live = set(tmux_runner.list_sessions())
    killed = kill_sessions([s for s in declared if s in live])

    removed = [str(p) for p in ctx.mapping_store.clear()]
    if ctx.current_scenario_path.exists():
        ctx.current_scenario_path.unlink()
        removed.append(str(ctx.current_scenario_path))
    ctx.mapping = None
    return {"killed_sessions": killed, "removed_files": removed}
