"""Events emitted by the protection engine."""
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class BlockEvent:
    """An IP crossed the attempt threshold and was blocked."""

    ip_address: str
    attempt_count: int
    username: str | None
    blocked_at: datetime


class NotificationSink(Protocol):
    """Receives block events. Delivery is at-least-once."""

    def notify_blocked(self, event: BlockEvent) -> None:
        ...


class NullSink:
    """Sink that drops every event."""

    def notify_blocked(self, event: BlockEvent) -> None:
        return None
