"""Models package - SQLAlchemy ORM models and their status enums."""

# Database Models (SQLAlchemy ORM)
from .core import (
    User,
    Problem,
    Contest,
    ContestProblem,
    ContestUser,
    Role,
    ContestStatus,
    ParticipantStatus,
)
from .submission import Submission, Review, SubmissionStatus

__all__ = [
    "User",
    "Problem",
    "Contest",
    "ContestProblem",
    "ContestUser",
    "Role",
    "ContestStatus",
    "ParticipantStatus",
    "Submission",
    "Review",
    "SubmissionStatus",
]
