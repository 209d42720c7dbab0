"""Core services package

Bao gồm các service chính:
- EventHub: phát event real-time (submission/review/leaderboard) tới WebSocket
"""
from .events import (
    EventHub,
    EventKind,
    EventPublisherMixin,
    LeaderboardEvent,
    ReviewEvent,
    SubmissionEvent,
    get_event_hub,
)

__all__ = [
    'EventHub',
    'EventKind',
    'EventPublisherMixin',
    'LeaderboardEvent',
    'ReviewEvent',
    'SubmissionEvent',
    'get_event_hub',
]
