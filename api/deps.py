"""Shared router dependencies: per-request services and error mapping."""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from domain.judging import (
    ContestService,
    EnrollmentService,
    JudgeQueueService,
    JudgingError,
    LeaderboardService,
    ReviewService,
    SubmissionService,
)
from infra.services.events import EventHub, get_event_hub


def get_events() -> EventHub:
    return get_event_hub()


def get_submission_service(db: Session = Depends(get_db), events: EventHub = Depends(get_events)) -> SubmissionService:
    return SubmissionService(db, events)


def get_queue_service(db: Session = Depends(get_db), events: EventHub = Depends(get_events)) -> JudgeQueueService:
    return JudgeQueueService(db, events)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)


def get_contest_service(db: Session = Depends(get_db)) -> ContestService:
    return ContestService(db)


def get_leaderboard_service(db: Session = Depends(get_db)) -> LeaderboardService:
    return LeaderboardService(db)


def http_error(err: JudgingError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)


def clamp_page(limit: int, max_limit: int) -> int:
    return max(min(limit, max_limit), 1)


__all__ = [
    "get_events",
    "get_submission_service",
    "get_queue_service",
    "get_review_service",
    "get_enrollment_service",
    "get_contest_service",
    "get_leaderboard_service",
    "http_error",
    "clamp_page",
]
