from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import List, Optional, Tuple

TMUX_BIN = "tmux"


@dataclass(frozen=True)
class PaneInfo:
    index: int
    command: str


def run_tmux(args: List[str], *, timeout_s: float = 5.0) -> Tuple[int, str, str]:
    """Run one tmux command to completion and return (exit code, stdout, stderr)."""
    try:
        p = subprocess.run(
            [TMUX_BIN, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout_s,
            check=False,
        )
        return int(p.returncode), (p.stdout or ""), (p.stderr or "")
    except subprocess.TimeoutExpired:
        return 124, "", "tmux timeout"
    except OSError as e:
        # tmux missing from PATH, exec permission, ...
        return 127, "", str(e)


def list_sessions() -> List[str]:
    code, out, _ = run_tmux(["list-sessions", "-F", "#{session_name}"])
    if code != 0:
        return []
    return [ln.strip() for ln in (out or "").splitlines() if ln.strip()]


def list_panes(session: str) -> List[PaneInfo]:
    code, out, _ = run_tmux(["list-panes", "-t", session, "-F", "#{pane_index}:#{pane_current_command}"])
    if code != 0:
        return []
    panes: List[PaneInfo] = []
    for ln in (out or "").splitlines():
        idx, _, command = ln.strip().partition(":")
        try:
            panes.append(PaneInfo(index=int(idx), command=command))
        except ValueError:
            continue
    return panes


def pane_current_command(target: str) -> Optional[str]:
    code, out, _ = run_tmux(["display-message", "-p", "-t", target, "#{pane_current_command}"])
    if code != 0:
        return None
    return (out or "").strip()


def kill_session(session: str) -> bool:
    code, _, _ = run_tmux(["kill-session", "-t", session])
    return code == 0


def new_session(session: str, window: str) -> Tuple[int, str, str]:
    return run_tmux(["new-session", "-d", "-s", session, "-n", window])


def number_from_one(session: str) -> None:
    """Renumber the session's windows and panes so the content window is 1 and panes start at 1."""
    run_tmux(["set-option", "-t", session, "base-index", "1"])
    run_tmux(["move-window", "-r", "-t", session])
    run_tmux(["set-window-option", "-t", session, "pane-base-index", "1"])


def split_window(session: str) -> Tuple[int, str, str]:
    return run_tmux(["split-window", "-t", session])


def select_layout(session: str, layout: str = "tiled") -> Tuple[int, str, str]:
    return run_tmux(["select-layout", "-t", session, layout])


def send_keys(target: str, *keys: str, literal: bool = False) -> Tuple[int, str, str]:
    args = ["send-keys", "-t", target]
    if literal:
        args.extend(["-l", "--"])
    args.extend(keys)
    return run_tmux(args)
