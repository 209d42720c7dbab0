"""
Event Hub - real-time fan-out of submission/review events.

Tính năng:
- Các loại event có kiểu rõ ràng (dataclass) thay vì dict tùy ý
- Publish fire-and-forget: lỗi chỉ được log, không bao giờ lan tới caller
- Mỗi WebSocket subscriber có một asyncio.Queue riêng (có giới hạn)
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from app.settings import EVENT_QUEUE_SIZE

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    SUBMISSION_CREATED = "submission.created"
    SUBMISSION_CLAIMED = "submission.claimed"
    SUBMISSION_RELEASED = "submission.released"
    REVIEW_COMPLETED = "review.completed"
    LEADERBOARD_UPDATED = "leaderboard.updated"


@dataclass(frozen=True)
class SubmissionEvent:
    """Minimal payload: which submission, its new status, who acted and when"""
    kind: EventKind
    submission_id: int
    status: str
    actor_id: Optional[int]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "submission_id": self.submission_id,
            "status": self.status,
            "actor_id": self.actor_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ReviewEvent(SubmissionEvent):
    review_id: int = 0
    submitter_id: Optional[int] = None
    correct: bool = False
    score_awarded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "review_id": self.review_id,
            "submitter_id": self.submitter_id,
            "correct": self.correct,
            "score_awarded": self.score_awarded,
        })
        return data


@dataclass(frozen=True)
class LeaderboardEvent:
    user_id: int
    score: int
    problems_solved: int
    timestamp: datetime = field(default_factory=datetime.utcnow)
    kind: EventKind = EventKind.LEADERBOARD_UPDATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "user_id": self.user_id,
            "score": self.score,
            "problems_solved": self.problems_solved,
            "timestamp": self.timestamp.isoformat(),
        }


Event = Union[SubmissionEvent, ReviewEvent, LeaderboardEvent]


class EventPublisherMixin:
    """
    Gives a service a `_notify` that never raises.

    The service sets `self.events` to anything with `publish(event)`, or None.
    Events go out after the commit, so a failing publisher must not undo or
    mask a write that already happened.
    """

    events = None

    def _notify(self, event: Event) -> None:
        if self.events is None:
            return
        try:
            self.events.publish(event)
        except Exception as e:
            logger.warning(f"Event publish failed ({event.kind.value}): {e}")


class EventHub:
    """
    In-process broadcaster for WebSocket observers.

    Sync request handlers run in FastAPI's thread pool, so delivery is handed
    to each subscriber's event loop with `call_soon_threadsafe`.
    """

    def __init__(self, queue_size: int = EVENT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
        # Guards the subscriber list only; never held while delivering.
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue:
        """Register a subscriber; must be called from inside a running loop."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        with self._lock:
            self._subscribers.append((loop, queue))
        logger.info(f"Event subscriber added (total={self.subscriber_count})")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [(l, q) for (l, q) in self._subscribers if q is not queue]
        logger.info(f"Event subscriber removed (total={self.subscriber_count})")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: Event) -> None:
        payload = event.to_dict()
        with self._lock:
            targets = list(self._subscribers)

        for loop, queue in targets:
            try:
                loop.call_soon_threadsafe(self._offer, queue, payload)
            except RuntimeError:
                # Loop already closed: the socket is gone.
                logger.warning("Dropping subscriber whose event loop is closed")
                self.unsubscribe(queue)

    @staticmethod
    def _offer(queue: asyncio.Queue, payload: Dict[str, Any]) -> None:
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"Subscriber queue full, dropping {payload.get('type')} event")


# Global hub instance
_event_hub: Optional[EventHub] = None


def get_event_hub() -> EventHub:
    """Get global event hub instance"""
    global _event_hub
    if _event_hub is None:
        _event_hub = EventHub()
    return _event_hub


__all__ = [
    "EventKind",
    "SubmissionEvent",
    "ReviewEvent",
    "LeaderboardEvent",
    "Event",
    "EventHub",
    "EventPublisherMixin",
    "get_event_hub",
]
