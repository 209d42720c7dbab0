"""
Submission lifecycle: creation gated on contest/enrollment preconditions,
judge assignment, and verdict finalisation.

Every write to a submission row is a conditional UPDATE scoped by id and the
expected prior state; a zero row count means another caller got there first.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from domain.models import (
    Contest,
    ContestProblem,
    ContestStatus,
    ContestUser,
    ParticipantStatus,
    Review,
    Submission,
    SubmissionStatus,
    User,
)
from infra.services.events import EventKind, EventPublisherMixin, LeaderboardEvent, ReviewEvent, SubmissionEvent

from .errors import Conflict, Forbidden, InvalidState, NotFound

logger = logging.getLogger(__name__)


@dataclass
class SubmissionFilters:
    contest_id: Optional[int] = None
    problem_id: Optional[int] = None
    submitter_id: Optional[int] = None
    status: Optional[SubmissionStatus] = None
    reviewer_id: Optional[int] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass
class SubmissionPage:
    items: List[Submission]
    total: int
    page: int
    total_pages: int


class SubmissionService(EventPublisherMixin):
    """
    Lifecycle manager for submissions.

    `events` is any object with a `publish(event)` method; it is optional so
    scripts can drive the service without a real-time channel.
    """

    def __init__(self, db: Session, events=None):
        self.db = db
        self.events = events

    # ==================== Creation ====================

    def create(
        self,
        problem_id: int,
        contest_id: int,
        submitter_id: int,
        code_text: str,
        language: Optional[str] = None,
    ) -> Submission:
        contest_problem = (
            self.db.query(ContestProblem)
            .filter(ContestProblem.contest_id == contest_id, ContestProblem.problem_id == problem_id)
            .first()
        )
        if not contest_problem:
            raise NotFound("Problem not found in this contest")

        enrollment = (
            self.db.query(ContestUser.id)
            .filter(
                ContestUser.contest_id == contest_id,
                ContestUser.user_id == submitter_id,
                ContestUser.status == ParticipantStatus.ACTIVE.value,
            )
            .first()
        )
        if not enrollment:
            raise Forbidden("User is not enrolled in this contest or participation is not active")

        contest = self.db.query(Contest).filter(Contest.id == contest_id).first()
        if contest is None or contest.status != ContestStatus.RUNNING.value:
            raise InvalidState("Contest is not currently running")

        submission = Submission(
            problem_id=problem_id,
            contest_id=contest_id,
            submitter_id=submitter_id,
            code_text=code_text,
            language=language,
            status=SubmissionStatus.PENDING.value,
            score=0,
            created_at=datetime.utcnow(),
        )
        self.db.add(submission)
        self.db.commit()
        self.db.refresh(submission)

        logger.info(f"Submission {submission.id} created by user {submitter_id} (contest={contest_id}, problem={problem_id})")
        self._notify(SubmissionEvent(
            kind=EventKind.SUBMISSION_CREATED,
            submission_id=submission.id,
            status=submission.status,
            actor_id=submitter_id,
        ))
        return submission

    # ==================== Assignment ====================

    def assign_to_judge(self, submission_id: int, judge_id: int) -> Submission:
        submission = self.get(submission_id)
        if submission is None:
            raise NotFound("Submission not found")
        if submission.reviewer_id is not None:
            raise InvalidState("Submission is already assigned to a judge")
        if submission.status != SubmissionStatus.PENDING.value:
            raise InvalidState("Submission is not available for assignment")

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
            logger.warning(f"Assignment of submission {submission_id} to judge {judge_id} lost a race")
            raise Conflict("Submission was claimed by another judge")

        self.db.commit()
        self.db.refresh(submission)

        logger.info(f"Submission {submission_id} assigned to judge {judge_id}")
        self._notify(SubmissionEvent(
            kind=EventKind.SUBMISSION_CLAIMED,
            submission_id=submission_id,
            status=submission.status,
            actor_id=judge_id,
        ))
        return submission

    # ==================== Verdict ====================

    def finalize_review(
        self,
        submission_id: int,
        reviewer_id: int,
        correct: bool,
        score_awarded: int,
        remarks: Optional[str] = None,
        problem_id: Optional[int] = None,
        submitter_id: Optional[int] = None,
    ) -> Review:
        """
        Record the verdict for a submission under review by `reviewer_id`.

        Only an accepted verdict moves the submitter's aggregate score and
        solved count; a rejected one keeps `score_awarded` on the submission
        as a record only.
        """
        submission = self.get(submission_id)
        if submission is None:
            raise NotFound("Submission not found")
        if submission.status != SubmissionStatus.UNDER_REVIEW.value:
            raise InvalidState("Submission is not under review")
        if submission.reviewer_id != reviewer_id:
            raise InvalidState("Submission is not assigned to this judge")
        if problem_id is not None and problem_id != submission.problem_id:
            raise InvalidState("Review problem does not match the submission")
        if submitter_id is not None and submitter_id != submission.submitter_id:
            raise InvalidState("Review submitter does not match the submission")

        max_score = submission.problem.max_score if submission.problem is not None else None
        if score_awarded < 0 or (max_score is not None and score_awarded > max_score):
            raise InvalidState(f"Score must be between 0 and {max_score}")

        final_status = SubmissionStatus.ACCEPTED if correct else SubmissionStatus.REJECTED
        target_user_id = submission.submitter_id

        updated = (
            self.db.query(Submission)
            .filter(
                Submission.id == submission_id,
                Submission.status == SubmissionStatus.UNDER_REVIEW.value,
                Submission.reviewer_id == reviewer_id,
            )
            .update(
                {Submission.status: final_status.value, Submission.score: score_awarded},
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.rollback()
            logger.warning(f"Review of submission {submission_id} by judge {reviewer_id} lost a race")
            raise InvalidState("Submission is no longer under review by this judge")

        review = Review(
            submission_id=submission_id,
            problem_id=submission.problem_id,
            submitter_id=target_user_id,
            reviewer_id=reviewer_id,
            correct=correct,
            score_awarded=score_awarded,
            remarks=remarks,
            created_at=datetime.utcnow(),
        )
        self.db.add(review)

        if correct:
            self.db.query(User).filter(User.id == target_user_id).update(
                {
                    User.score: User.score + score_awarded,
                    User.problems_solved_count: User.problems_solved_count + 1,
                },
                synchronize_session=False,
            )

        self.db.commit()
        self.db.refresh(review)

        logger.info(
            f"Submission {submission_id} finalized as {final_status.value} by judge {reviewer_id} (score={score_awarded})"
        )
        self._notify(ReviewEvent(
            kind=EventKind.REVIEW_COMPLETED,
            submission_id=submission_id,
            status=final_status.value,
            actor_id=reviewer_id,
            review_id=review.id,
            submitter_id=target_user_id,
            correct=correct,
            score_awarded=score_awarded,
        ))

        if correct:
            user = self.db.query(User).filter(User.id == target_user_id).first()
            if user is not None:
                self._notify(LeaderboardEvent(
                    user_id=user.id,
                    score=user.score,
                    problems_solved=user.problems_solved_count,
                ))

        return review

    # ==================== Queries ====================

    def get(self, submission_id: int) -> Optional[Submission]:
        return self.db.query(Submission).filter(Submission.id == submission_id).first()

    def list(self, filters: Optional[SubmissionFilters] = None, page: int = 1, limit: int = 20) -> SubmissionPage:
        filters = filters or SubmissionFilters()
        page = max(page, 1)
        limit = max(limit, 1)

        query = self.db.query(Submission)
        if filters.contest_id is not None:
            query = query.filter(Submission.contest_id == filters.contest_id)
        if filters.problem_id is not None:
            query = query.filter(Submission.problem_id == filters.problem_id)
        if filters.submitter_id is not None:
            query = query.filter(Submission.submitter_id == filters.submitter_id)
        if filters.status is not None:
            query = query.filter(Submission.status == SubmissionStatus(filters.status).value)
        if filters.reviewer_id is not None:
            query = query.filter(Submission.reviewer_id == filters.reviewer_id)
        if filters.date_from is not None:
            query = query.filter(Submission.created_at >= filters.date_from)
        if filters.date_to is not None:
            query = query.filter(Submission.created_at <= filters.date_to)

        total = query.count()
        items = (
            query.order_by(Submission.created_at.desc(), Submission.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return SubmissionPage(items=items, total=total, page=page, total_pages=math.ceil(total / limit))

    def history_for(self, user_id: int, contest_id: Optional[int] = None) -> List[Submission]:
        query = self.db.query(Submission).filter(Submission.submitter_id == user_id)
        if contest_id is not None:
            query = query.filter(Submission.contest_id == contest_id)
        return query.order_by(Submission.created_at.desc(), Submission.id.desc()).all()

    def contest_statistics(self, contest_id: int) -> Dict[str, Any]:
        rows = (
            self.db.query(Submission.status, func.count(Submission.id))
            .filter(Submission.contest_id == contest_id)
            .group_by(Submission.status)
            .all()
        )
        counts = {status: count for (status, count) in rows}

        average = (
            self.db.query(func.avg(Submission.score))
            .filter(Submission.contest_id == contest_id, Submission.status == SubmissionStatus.ACCEPTED.value)
            .scalar()
        )

        return {
            "total": sum(counts.values()),
            "pending": counts.get(SubmissionStatus.PENDING.value, 0),
            "under_review": counts.get(SubmissionStatus.UNDER_REVIEW.value, 0),
            "accepted": counts.get(SubmissionStatus.ACCEPTED.value, 0),
            "rejected": counts.get(SubmissionStatus.REJECTED.value, 0),
            "average_score": float(average or 0),
        }


__all__ = ["SubmissionService", "SubmissionFilters", "SubmissionPage"]
