"""
Real-time Pub/Sub for session updates.

Streams session state snapshots from an interview session to UI
subscribers. Each session owns its own publisher; there is no global
instance.

Example usage:
    publisher = SessionStatePublisher()
    queue = await publisher.subscribe()
    await publisher.publish_state(session.snapshot())
    update = await queue.get()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .models import SessionPhase, SessionState

logger = logging.getLogger(__name__)


TERMINAL_PHASES = frozenset({SessionPhase.ENDED, SessionPhase.FAILED})


class UpdateType(str, Enum):
    """
    Types of session updates published to the stream.

    Attributes:
        STATE: New session state snapshot.
        SYSTEM: Informational message (agent joined, avatar ready, ...).
        ERROR: Error message.
    """

    STATE = "state"
    SYSTEM = "system"
    ERROR = "error"


def _get_utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class SessionUpdate:
    """
    A single update from an interview session.

    Attributes:
        update_type: Category of the update.
        state: Session snapshot at the time of the update.
        message: Optional human-readable message.
        timestamp: UTC timestamp when the update was created.
    """

    update_type: UpdateType
    state: SessionState
    message: str | None = None
    timestamp: str = field(default_factory=_get_utc_timestamp)

    @property
    def is_terminal(self) -> bool:
        """True once the session can no longer change."""
        return self.state.phase in TERMINAL_PHASES

    def to_dict(self) -> dict[str, object]:
        return {
            "update_type": self.update_type.value,
            "state": self.state.model_dump(mode="json"),
            "message": self.message,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class SessionStatePublisher:
    """
    Publisher for session updates.

    Manages subscriber queues and broadcasts updates to all of them.
    New subscribers receive the retained history first.

    Attributes:
        max_history: Maximum number of updates to retain in history.
    """

    def __init__(self, max_history: int = 50) -> None:
        self._subscribers: list[asyncio.Queue[SessionUpdate]] = []
        self._history: list[SessionUpdate] = []
        self._max_history = max_history
        self._lock = asyncio.Lock()

    async def subscribe(self) -> asyncio.Queue[SessionUpdate]:
        """
        Subscribe to session updates.

        Caller is responsible for calling unsubscribe when done.

        Returns:
            Queue that will receive published updates.
        """
        queue: asyncio.Queue[SessionUpdate] = asyncio.Queue()
        async with self._lock:
            self._subscribers.append(queue)
            for update in self._history:
                await queue.put(update)
        logger.debug("New subscriber added. Total: %d", len(self._subscribers))
        return queue

    async def unsubscribe(self, queue: asyncio.Queue[SessionUpdate]) -> None:
        async with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)
        logger.debug("Subscriber removed. Total: %d", len(self._subscribers))

    async def publish(self, update: SessionUpdate) -> None:
        """Publish an update to all subscribers and record it in history."""
        async with self._lock:
            self._history.append(update)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

            for queue in self._subscribers:
                await queue.put(update)

        logger.debug(
            "Published %s update (phase=%s)",
            update.update_type.value,
            update.state.phase.value,
        )

    async def publish_state(self, state: SessionState, message: str | None = None) -> None:
        await self.publish(SessionUpdate(UpdateType.STATE, state, message))

    async def publish_system(self, state: SessionState, message: str) -> None:
        await self.publish(SessionUpdate(UpdateType.SYSTEM, state, message))

    async def publish_error(self, state: SessionState, message: str) -> None:
        await self.publish(SessionUpdate(UpdateType.ERROR, state, message))

    async def get_history(self) -> list[SessionUpdate]:
        """Copy of the retained history."""
        async with self._lock:
            return list(self._history)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
