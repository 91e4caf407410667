"""Keystroke delivery into a tmux pane: interrupt, type, submit.

Each step is its own tmux invocation followed by a fixed settle delay. A
send cannot be cancelled half-way without leaving the pane partially typed,
so nothing here is interruptible; callers that need timeouts must wrap the
whole call.
"""
from __future__ import annotations

import enum
import logging
import time
from typing import Callable, Optional

from ..errors import DispatchError
from ..runners import tmux as tmux_runner
from .target import is_valid_target

logger = logging.getLogger("agentmux.dispatch")

INTERRUPT_KEY = "C-c"
SUBMIT_KEY = "C-m"

INTERRUPT_SETTLE_S = 0.3
TYPE_SETTLE_S = 0.1
SUBMIT_SETTLE_S = 0.5


class DeliveryState(str, enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    INTERRUPTING = "interrupting"
    TYPING = "typing"
    SUBMITTING = "submitting"
    SETTLING = "settling"
    DELIVERED = "delivered"
    FAILED = "failed"


StateCallback = Callable[[DeliveryState], None]


def escape_text(text: str) -> str:
    # Backslash must go first or the later passes would get re-escaped.
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$").replace("`", "\\`")


def _step(target: str, state: DeliveryState, *keys: str, literal: bool = False) -> None:
    code, out, err = tmux_runner.send_keys(target, *keys, literal=literal)
    if code != 0:
        output = (err or out or "").strip()
        logger.warning(
            "tmux send-keys failed (exit %s): %s",
            code,
            output,
            extra={"op": "dispatch", "target": target, "step": state.value},
        )
        raise DispatchError(
            f"failed to send to {target} during {state.value}: {output or f'exit {code}'}",
            target=target,
            step=state.value,
            output=output,
        )
    logger.debug("step ok", extra={"op": "dispatch", "target": target, "step": state.value})


def send_to_pane(
    target: str,
    text: str,
    *,
    wait: float = 0.0,
    clear: bool = True,
    on_state: Optional[StateCallback] = None,
) -> None:
    """Interrupt the pane, type `text` literally, then submit it.

    Raises DispatchError for a target that is not a pane address, or on the
    first failing step; later steps are not attempted and the pane is left
    as it is.
    """
    if not is_valid_target(target):
        raise DispatchError(f"invalid pane target: {target!r}", target=str(target), step="target")

    def enter(state: DeliveryState) -> None:
        if on_state is not None:
            on_state(state)

    if clear:
        enter(DeliveryState.INTERRUPTING)
        _step(target, DeliveryState.INTERRUPTING, INTERRUPT_KEY)
        time.sleep(INTERRUPT_SETTLE_S)

    enter(DeliveryState.TYPING)
    _step(target, DeliveryState.TYPING, escape_text(text), literal=True)
    time.sleep(TYPE_SETTLE_S)

    enter(DeliveryState.SUBMITTING)
    _step(target, DeliveryState.SUBMITTING, SUBMIT_KEY)
    time.sleep(SUBMIT_SETTLE_S)

    enter(DeliveryState.SETTLING)
    if wait and wait > 0:
        time.sleep(float(wait))
