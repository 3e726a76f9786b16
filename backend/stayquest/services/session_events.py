"""
Session change notifications.

Auth routes publish sign-up / sign-in / sign-out events; the application
lifespan owns the hub, subscribes listeners at startup and tears the
subscriptions down on shutdown.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import enum
from typing import Awaitable, Callable, Optional

from stayquest.core.logging import get_logger

logger = get_logger(__name__)


class SessionEventType(str, enum.Enum):
    SIGNED_UP = "SIGNED_UP"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class SessionEvent:
    type: SessionEventType
    user_id: str
    email: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[SessionEvent], Awaitable[None]]


class Subscription:
    def __init__(self, hub: "SessionEvents", listener: Listener):
        self._hub = hub
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._hub._remove(self._listener)
            self.active = False


class SessionEvents:
    def __init__(self):
        self._listeners: list[Listener] = []
        self.closed = False

    def subscribe(self, listener: Listener) -> Subscription:
        if self.closed:
            raise RuntimeError("Session event hub is closed")
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event: SessionEvent) -> None:
        """Deliver to every listener; a failing listener does not fail the caller."""
        if self.closed:
            return
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.error("session_listener_failed", event=event.type.value, error=str(e), exc_info=True)

    def close(self) -> None:
        self._listeners.clear()
        self.closed = True


async def log_session_change(event: SessionEvent) -> None:
    logger.info(
        "session_changed",
        event=event.type.value,
        user_id=event.user_id,
        occurred_at=event.occurred_at.isoformat(),
    )
