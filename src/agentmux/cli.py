from __future__ import annotations

import argparse
import functools
import json
import logging
from typing import Any, Callable

from . import __version__
from .errors import AgentMuxError, ConfigError
from .kernel.config import current_scenario_config, initialize_config, list_scenarios, load_config, validate_config
from .kernel.context import ProjectContext
from .kernel.delivery import deliver_message
from .kernel.mapping import list_agents, session_counts
from .kernel.orchestrator import agent_status, check_sessions, reset_environment, start_scenario, switch_scenario
from .kernel.scenarios import available_external_scenarios, validate_external_scenario
from .kernel.sendlog import log_stats
from .kernel.target import validate_mapping
from .runners import tmux as tmux_runner
from .util.obslog import setup_root_json_logging

logger = logging.getLogger("agentmux.cli")


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _context(args: argparse.Namespace) -> ProjectContext:
    return ProjectContext.from_path(getattr(args, "project", "") or None)


def _guarded(fn: Callable[[argparse.Namespace], int]) -> Callable[[argparse.Namespace], int]:
    """Turn operational errors into a JSON error envelope and exit code 1."""

    @functools.wraps(fn)
    def run(args: argparse.Namespace) -> int:
        try:
            return fn(args)
        except AgentMuxError as e:
            logger.error("%s failed: %s", args.cmd, e, extra={"op": args.cmd})
            _print_json({"ok": False, "error": e.to_dict()})
            return 1

    return run


@_guarded
def cmd_init(args: argparse.Namespace) -> int:
    ctx = _context(args)
    cfg = initialize_config(ctx, scenario=args.scenario, project_name=args.name, force=args.force)
    _print_json(
        {
            "ok": True,
            "result": {
                "config": str(cfg.path),
                "current_scenario": cfg.current_scenario,
                "scenarios": list(cfg.scenarios.keys()),
            },
        }
    )
    return 0


@_guarded
def cmd_start(args: argparse.Namespace) -> int:
    ctx = _context(args)
    launch = False if args.no_agents else None
    result = start_scenario(ctx, args.scenario, launch_agents=launch)
    _print_json({"ok": True, "result": result})
    return 0


@_guarded
def cmd_switch(args: argparse.Namespace) -> int:
    ctx = _context(args)
    result = switch_scenario(ctx, args.scenario, preserve_sessions=args.preserve_sessions)
    _print_json({"ok": True, "result": result})
    return 0


@_guarded
def cmd_send(args: argparse.Namespace) -> int:
    ctx = _context(args)
    wait = args.wait
    if wait is None:
        wait = load_config(ctx).settings.message_wait_time
    delivery = deliver_message(ctx, args.agent, args.message, wait=max(0.0, float(wait)))
    _print_json({"ok": True, "result": {"delivery": delivery.to_dict(), "log": delivery.entry.model_dump() if delivery.entry else None}})
    return 0


@_guarded
def cmd_status(args: argparse.Namespace) -> int:
    ctx = _context(args)
    cfg = load_config(ctx)
    result: dict[str, Any] = {
        "project": cfg.project_name or ctx.root.name,
        "version": cfg.version,
        "current_scenario": cfg.current_scenario or None,
        "last_updated": cfg.doc.get("lastUpdated"),
    }

    scenario = current_scenario_config(ctx)
    if scenario is not None:
        result["scenario_name"] = scenario.name
        result["sessions"] = check_sessions(scenario).to_dict()

    mapping = ctx.load_mapping()
    check = validate_mapping(mapping)
    result["agent_count"] = len(mapping)
    if not check.valid:
        result["warnings"] = check.errors

    if args.agents:
        result["agents"] = list_agents(mapping)
        result["session_counts"] = session_counts(mapping)
        if scenario is not None:
            result["aliases"] = scenario.alias_table()
            result["panes"] = agent_status(scenario)

    if args.tmux:
        sessions = {}
        for s in tmux_runner.list_sessions():
            sessions[s] = [{"index": p.index, "command": p.command} for p in tmux_runner.list_panes(s)]
        result["tmux"] = sessions

    result["log"] = log_stats(ctx.logs_dir)
    _print_json({"ok": True, "result": result})
    return 0


@_guarded
def cmd_list(args: argparse.Namespace) -> int:
    ctx = _context(args)
    _print_json({"ok": True, "result": {"scenarios": list_scenarios(ctx, detailed=args.detailed)}})
    return 0


@_guarded
def cmd_validate(args: argparse.Namespace) -> int:
    ctx = _context(args)
    report = validate_config(ctx)
    mapping_report = validate_mapping(ctx.load_mapping())
    external = {name: validate_external_scenario(ctx.scenarios_dir, name) for name in available_external_scenarios(ctx.scenarios_dir)}
    ok = bool(report["valid"]) and mapping_report.valid and all(v.valid for v in external.values())
    result = {
        "config": report,
        "mapping": mapping_report.to_dict(),
        "external_scenarios": {name: v.to_dict() for name, v in external.items()},
    }
    _print_json({"ok": ok, "result": result})
    return 0 if ok else 1


@_guarded
def cmd_reset(args: argparse.Namespace) -> int:
    ctx = _context(args)
    if not args.force:
        raise ConfigError("reset kills every scenario session; re-run with --force to confirm")
    _print_json({"ok": True, "result": reset_environment(ctx)})
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(__version__)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="agentmux", description="Route messages to chat agents running in tmux panes")
    p.add_argument("--log-level", default="", help="Log level for stderr JSON logs (default: $AGENTMUX_LOG_LEVEL or WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    def project_opt(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--project", "-p", default="", help="Project root (default: $AGENTMUX_PROJECT or .)")

    p_init = sub.add_parser("init", help="Write a default agentmux.yaml into the project")
    p_init.add_argument("--scenario", "-s", default="business-strategy", help="Initial scenario (default: business-strategy)")
    p_init.add_argument("--name", default="", help="Project name (default: directory name)")
    p_init.add_argument("--force", "-f", action="store_true", help="Overwrite an existing configuration")
    project_opt(p_init)
    p_init.set_defaults(func=cmd_init)

    p_start = sub.add_parser("start", help="Create the scenario's tmux sessions and agent mapping")
    p_start.add_argument("scenario", nargs="?", default="", help="Scenario id (default: current scenario)")
    p_start.add_argument("--no-agents", action="store_true", help="Do not launch the agent command in each pane")
    project_opt(p_start)
    p_start.set_defaults(func=cmd_start)

    p_switch = sub.add_parser("switch", aliases=["sw"], help="Switch to a different scenario")
    p_switch.add_argument("scenario", help="Scenario id")
    p_switch.add_argument("--preserve-sessions", action="store_true", help="Reuse existing sessions when all of them exist")
    project_opt(p_switch)
    p_switch.set_defaults(func=cmd_switch)

    p_send = sub.add_parser("send", help="Send a message to an agent (name, alias, or unique prefix)")
    p_send.add_argument("agent", help="Agent name or alias")
    p_send.add_argument("message", help="Message text")
    p_send.add_argument("--wait", "-w", type=float, default=None, help="Seconds to wait after sending (default: settings.messageWaitTime)")
    project_opt(p_send)
    p_send.set_defaults(func=cmd_send)

    p_status = sub.add_parser("status", aliases=["st"], help="Show scenario, sessions and agent mapping")
    p_status.add_argument("--agents", "-a", action="store_true", help="Include the full agent mapping")
    p_status.add_argument("--tmux", "-t", action="store_true", help="Include live tmux sessions and panes")
    project_opt(p_status)
    p_status.set_defaults(func=cmd_status)

    p_list = sub.add_parser("list", aliases=["ls"], help="List available scenarios")
    p_list.add_argument("--detailed", "-d", action="store_true", help="Include agent and session counts")
    project_opt(p_list)
    p_list.set_defaults(func=cmd_list)

    p_validate = sub.add_parser("validate", help="Check the configuration and the persisted mapping")
    project_opt(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    p_reset = sub.add_parser("reset", help="Kill scenario sessions and remove mapping files")
    p_reset.add_argument("--force", "-f", action="store_true", help="Required confirmation flag")
    project_opt(p_reset)
    p_reset.set_defaults(func=cmd_reset)

    p_ver = sub.add_parser("version", help="Show version")
    p_ver.set_defaults(func=cmd_version)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_root_json_logging(component="agentmux", level=args.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
