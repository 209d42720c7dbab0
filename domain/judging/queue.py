"""
Judge queue: FIFO view of unclaimed submissions and single-owner claiming.

A claim re-validates the row it read and then issues one conditional UPDATE
(`status = PENDING AND reviewer_id IS NULL`). When several judges race, the
database lets exactly one UPDATE match; the others see zero affected rows and
report a conflict. No locks are taken.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from domain.models import Submission, SubmissionStatus
from infra.services.events import EventKind, EventPublisherMixin, SubmissionEvent

logger = logging.getLogger(__name__)


class ClaimOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"


@dataclass
class ClaimResult:
    outcome: ClaimOutcome
    message: str
    submission: Optional[Submission] = None

    @property
    def success(self) -> bool:
        return self.outcome is ClaimOutcome.SUCCESS


class JudgeQueueService(EventPublisherMixin):

    def __init__(self, db: Session, events=None):
        self.db = db
        self.events = events

    def _find(self, submission_id: int) -> Optional[Submission]:
        return self.db.query(Submission).filter(Submission.id == submission_id).first()

    def list_queue(self, contest_id: Optional[int] = None) -> List[Submission]:
        """Pending, unclaimed submissions, oldest first."""
        query = self.db.query(Submission).filter(
            Submission.status == SubmissionStatus.PENDING.value,
            Submission.reviewer_id.is_(None),
        )
        if contest_id is not None:
            query = query.filter(Submission.contest_id == contest_id)
        return query.order_by(Submission.created_at.asc(), Submission.id.asc()).all()

    def claim(self, submission_id: int, judge_id: int) -> ClaimResult:
        submission = self._find(submission_id)
        if submission is None:
            return ClaimResult(ClaimOutcome.NOT_FOUND, "Submission not found")

        if submission.reviewer_id is not None and submission.reviewer_id != judge_id:
            return ClaimResult(ClaimOutcome.CONFLICT, "Submission is already being reviewed by another judge")

        if submission.status != SubmissionStatus.PENDING.value:
            return ClaimResult(ClaimOutcome.INVALID_STATE, "Submission is no longer pending")

        updated = (
            self.db.query(Submission)
            .filter(
                Submission.id == submission_id,
                Submission.status == SubmissionStatus.PENDING.value,
                Submission.reviewer_id.is_(None),
            )
            .update(
                {Submission.status: SubmissionStatus.UNDER_REVIEW.value, Submission.reviewer_id: judge_id},
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.rollback()
            logger.info(f"Judge {judge_id} lost the race for submission {submission_id}")
            return ClaimResult(ClaimOutcome.CONFLICT, "Submission was claimed by another judge")

        self.db.commit()
        self.db.refresh(submission)

        logger.info(f"Submission {submission_id} claimed by judge {judge_id}")
        self._notify(SubmissionEvent(
            kind=EventKind.SUBMISSION_CLAIMED,
            submission_id=submission_id,
            status=submission.status,
            actor_id=judge_id,
        ))
        return ClaimResult(ClaimOutcome.SUCCESS, "Submission claimed successfully", submission)

    def release(self, submission_id: int, judge_id: int) -> bool:
        """Hand a claimed submission back to the queue; False if the judge does not own it."""
        updated = (
            self.db.query(Submission)
            .filter(
                Submission.id == submission_id,
                Submission.reviewer_id == judge_id,
                Submission.status == SubmissionStatus.UNDER_REVIEW.value,
            )
            .update(
                {Submission.status: SubmissionStatus.PENDING.value, Submission.reviewer_id: None},
                synchronize_session=False,
            )
        )
        self.db.commit()

        if not updated:
            return False

        logger.info(f"Submission {submission_id} released by judge {judge_id}")
        self._notify(SubmissionEvent(
            kind=EventKind.SUBMISSION_RELEASED,
            submission_id=submission_id,
            status=SubmissionStatus.PENDING.value,
            actor_id=judge_id,
        ))
        return True

    def active_for(self, judge_id: int) -> List[Submission]:
        return (
            self.db.query(Submission)
            .filter(
                Submission.reviewer_id == judge_id,
                Submission.status == SubmissionStatus.UNDER_REVIEW.value,
            )
            .order_by(Submission.created_at.asc(), Submission.id.asc())
            .all()
        )

    def queue_statistics(self) -> Dict[str, int]:
        pending = self.db.query(Submission).filter(Submission.status == SubmissionStatus.PENDING.value).count()
        under_review = (
            self.db.query(Submission).filter(Submission.status == SubmissionStatus.UNDER_REVIEW.value).count()
        )
        total = self.db.query(Submission).count()
        return {"pending": pending, "under_review": under_review, "total": total}


__all__ = ["JudgeQueueService", "ClaimOutcome", "ClaimResult"]
