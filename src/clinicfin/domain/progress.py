"""Progress channel: publish/subscribe notifications for ingestion batches.

Publishing never blocks. Each subscriber owns a bounded buffer; when it is
full the oldest event is dropped to make room for the newest.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 100

PROGRESS = "progress"
ROLLBACK = "rollback"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ProgressEvent:
    """One notification about a batch."""

    upload_id: Optional[int]
    status: str
    progress: int = 0
    current_file: Optional[str] = None
    records_processed: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    type: str = PROGRESS
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for clients; unset fields are left out."""
        data = {
            "type": self.type,
            "uploadId": self.upload_id,
            "status": self.status,
            "progress": self.progress,
            "currentFile": self.current_file,
            "recordsProcessed": self.records_processed,
            "message": self.message,
            "error": self.error,
            "result": self.result,
            "timestamp": self.timestamp,
        }
        return {key: value for key, value in data.items() if value is not None}


class Subscription:
    """A subscriber's bounded event buffer."""

    def __init__(self, channel: "ProgressChannel", buffer_size: int, upload_id: Optional[int] = None):
        self._channel = channel
        self._events: deque[ProgressEvent] = deque(maxlen=buffer_size)
        self._condition = threading.Condition()
        self.upload_id = upload_id
        self.dropped = 0
        self.closed = False

    def wants(self, event: ProgressEvent) -> bool:
        return self.upload_id is None or self.upload_id == event.upload_id

    def _offer(self, event: ProgressEvent) -> None:
        with self._condition:
            if len(self._events) == self._events.maxlen:
                self.dropped += 1
            self._events.append(event)
            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Wait for the next event.

        Returns:
            The oldest buffered event, or None on timeout or once the
            subscription is closed and drained.
        """
        with self._condition:
            if not self._events and not self.closed:
                self._condition.wait(timeout)
            if self._events:
                return self._events.popleft()
            return None

    def drain(self) -> list[ProgressEvent]:
        """Return and clear every buffered event."""
        with self._condition:
            events = list(self._events)
            self._events.clear()
            return events

    def close(self) -> None:
        """Stop receiving events and wake any waiting reader."""
        self._channel.unsubscribe(self)
        with self._condition:
            self.closed = True
            self._condition.notify_all()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ProgressChannel:
    """Fan-out of progress events to any number of subscribers."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size < 1:
            raise ValueError(f"Buffer size must be at least 1, got {buffer_size}")
        self.buffer_size = buffer_size
        self._subscribers: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, upload_id: Optional[int] = None) -> Subscription:
        """Register a subscriber, optionally limited to one upload."""
        subscription = Subscription(self, self.buffer_size, upload_id=upload_id)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: ProgressEvent) -> None:
        """Deliver an event to every interested subscriber without blocking."""
        with self._lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            if subscription.wants(event):
                subscription._offer(event)
        logger.debug("Published %s event for upload %s", event.type, event.upload_id)
