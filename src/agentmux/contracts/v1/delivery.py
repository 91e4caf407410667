from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...util.time import utc_now_iso

MESSAGE_PREVIEW_LIMIT = 200


class DeliveryLogEntry(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    agent: str
    target: str
    message: str
    length: int

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def for_message(cls, *, agent: str, target: str, message: str) -> "DeliveryLogEntry":
        preview = message[:MESSAGE_PREVIEW_LIMIT]
        if len(message) > MESSAGE_PREVIEW_LIMIT:
            preview += "..."
        return cls(agent=agent, target=target, message=preview, length=len(message))
