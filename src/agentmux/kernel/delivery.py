from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..contracts.v1 import DeliveryLogEntry
from ..errors import AgentMuxError, NotFoundError
from .config import current_scenario_config
from .context import ProjectContext
from .dispatch import DeliveryState, send_to_pane
from .locator import AgentLocation, find_agent
from .sendlog import append_delivery

logger = logging.getLogger("agentmux.delivery")


@dataclass
class Delivery:
    requested: str
    text: str
    state: DeliveryState = DeliveryState.IDLE
    history: List[DeliveryState] = field(default_factory=list)
    location: Optional[AgentLocation] = None
    entry: Optional[DeliveryLogEntry] = None

    def enter(self, state: DeliveryState) -> None:
        self.state = state
        self.history.append(state)

    @property
    def aliased(self) -> bool:
        return self.location is not None and self.location.name != self.requested

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requested": self.requested,
            "agent": self.location.name if self.location else None,
            "target": self.location.target if self.location else None,
            "aliased": self.aliased,
            "state": self.state.value,
            "length": len(self.text),
        }


def deliver_message(ctx: ProjectContext, requested: str, text: str, *, wait: float = 0.0) -> Delivery:
    """Resolve an agent, type `text` into its pane and record the delivery.

    Runs IDLE -> RESOLVING -> (dispatch states) -> DELIVERED. Any failure
    moves to FAILED and re-raises; nothing is retried.
    """
    d = Delivery(requested=requested, text=text)
    d.enter(DeliveryState.RESOLVING)
    try:
        scenario = current_scenario_config(ctx)
        loc = find_agent(ctx, requested, scenario)
        if loc is None:
            raise NotFoundError(
                requested,
                known_agents=ctx.load_mapping(),
                aliases=scenario.alias_table() if scenario is not None else {},
            )
        d.location = loc
        send_to_pane(loc.target, text, wait=wait, on_state=d.enter)
    except AgentMuxError:
        d.enter(DeliveryState.FAILED)
        raise

    d.enter(DeliveryState.DELIVERED)
    d.entry = append_delivery(ctx.logs_dir, agent=loc.name, target=loc.target, message=text)
    logger.info(
        "delivered %d chars",
        len(text),
        extra={"op": "send", "agent": loc.name, "target": loc.target},
    )
    return d
