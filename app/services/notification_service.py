"""
Notification Service - workflow events for dashboards.

The core emits {event, complaint_id, ...} records. Subscribers are called
synchronously; dashboards that poll read the recent-event buffer instead.
Either path ends in the same "reload full list" on the client.
"""

from collections import deque
from typing import Callable, Deque, List, Optional
import itertools
import logging
import threading

from app.core.settings import settings
from app.models.complaint import WorkflowEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[WorkflowEvent], None]


class NotificationService:

    def __init__(self, buffer_size: Optional[int] = None):
        self._lock = threading.Lock()
        self._events: Deque[WorkflowEvent] = deque(maxlen=buffer_size or settings.EVENT_BUFFER_SIZE)
        self._subscribers: List[Subscriber] = []
        self._sequence = itertools.count(1)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: str, complaint_id: str, **payload) -> WorkflowEvent:
        with self._lock:
            record = WorkflowEvent(
                event=event,
                complaint_id=complaint_id,
                payload=payload,
                sequence=next(self._sequence),
            )
            self._events.append(record)
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(record)
            except Exception as e:
                # Subscriber failures never reach the caller that committed the update
                logger.error(f"Notification subscriber failed for {event}/{complaint_id}: {e}", exc_info=True)

        logger.info(f"📣 {event} for complaint {complaint_id}")
        return record

    def recent(self, since: int = 0, complaint_id: Optional[str] = None) -> List[WorkflowEvent]:
        """Events with sequence greater than since, oldest first."""
        with self._lock:
            events = list(self._events)
        return [
            e for e in events
            if e.sequence > since and (complaint_id is None or e.complaint_id == complaint_id)
        ]


_notifications: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get or create NotificationService singleton."""
    global _notifications
    if _notifications is None:
        _notifications = NotificationService()
    return _notifications
