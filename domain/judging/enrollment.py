"""
Contest enrollment (ContestUser): joining, leaving and participant status.

Only an ACTIVE enrollment lets a user submit; see SubmissionService.create.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from domain.models import Contest, ContestStatus, ContestUser, ParticipantStatus, Submission, User

from .errors import Conflict, InvalidState, NotFound

logger = logging.getLogger(__name__)

_CLOSED_CONTESTS = (ContestStatus.ENDED.value, ContestStatus.ARCHIVED.value)

_PARTICIPANT_TRANSITIONS: Dict[ParticipantStatus, List[ParticipantStatus]] = {
    ParticipantStatus.ACTIVE: [ParticipantStatus.WITHDRAWN, ParticipantStatus.DISQUALIFIED],
    ParticipantStatus.WITHDRAWN: [ParticipantStatus.ACTIVE],
    ParticipantStatus.DISQUALIFIED: [],
}


class EnrollmentService:

    def __init__(self, db: Session):
        self.db = db

    def _get_contest(self, contest_id: int) -> Contest:
        contest = self.db.query(Contest).filter(Contest.id == contest_id).first()
        if contest is None:
            raise NotFound(f"Contest with id {contest_id} not found")
        return contest

    def _get_enrollment(self, contest_id: int, user_id: int) -> Optional[ContestUser]:
        return (
            self.db.query(ContestUser)
            .filter(ContestUser.contest_id == contest_id, ContestUser.user_id == user_id)
            .first()
        )

    def join(self, contest_id: int, user_id: int) -> ContestUser:
        contest = self._get_contest(contest_id)
        if self.db.query(User.id).filter(User.id == user_id).first() is None:
            raise NotFound(f"User with id {user_id} not found")

        if contest.status in _CLOSED_CONTESTS:
            raise InvalidState("Cannot join ended or archived contests")

        existing = self._get_enrollment(contest_id, user_id)
        if existing is not None:
            if existing.status == ParticipantStatus.WITHDRAWN.value:
                existing.status = ParticipantStatus.ACTIVE.value
                self.db.commit()
                self.db.refresh(existing)
                logger.info(f"User {user_id} re-joined contest {contest_id}")
                return existing
            raise Conflict("User is already registered for this contest")

        enrollment = ContestUser(contest_id=contest_id, user_id=user_id, status=ParticipantStatus.ACTIVE.value)
        self.db.add(enrollment)
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info(f"User {user_id} joined contest {contest_id}")
        return enrollment

    def leave(self, contest_id: int, user_id: int) -> Optional[ContestUser]:
        """Withdraw from a contest.

        Returns the WITHDRAWN enrollment when the user has submissions to keep,
        or None when the enrollment row was removed outright.
        """
        enrollment = self._get_enrollment(contest_id, user_id)
        if enrollment is None:
            raise NotFound("User is not registered for this contest")

        contest = self._get_contest(contest_id)
        if contest.status in _CLOSED_CONTESTS:
            raise InvalidState("Cannot withdraw from ended or archived contests")

        submission_count = (
            self.db.query(Submission)
            .filter(Submission.contest_id == contest_id, Submission.submitter_id == user_id)
            .count()
        )

        if submission_count > 0:
            enrollment.status = ParticipantStatus.WITHDRAWN.value
            self.db.commit()
            self.db.refresh(enrollment)
            logger.info(f"User {user_id} withdrew from contest {contest_id}")
            return enrollment

        self.db.delete(enrollment)
        self.db.commit()
        logger.info(f"User {user_id} left contest {contest_id}")
        return None

    def set_status(self, contest_id: int, user_id: int, status: ParticipantStatus) -> ContestUser:
        enrollment = self._get_enrollment(contest_id, user_id)
        if enrollment is None:
            raise NotFound("User is not registered for this contest")

        current = ParticipantStatus(enrollment.status)
        target = ParticipantStatus(status)
        if target not in _PARTICIPANT_TRANSITIONS[current]:
            raise InvalidState(f"Invalid status transition from {current.value} to {target.value}")

        enrollment.status = target.value
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info(f"Participant {user_id} in contest {contest_id}: {current.value} -> {target.value}")
        return enrollment

    def participants(self, contest_id: int, status: Optional[ParticipantStatus] = None) -> List[ContestUser]:
        self._get_contest(contest_id)
        query = self.db.query(ContestUser).filter(ContestUser.contest_id == contest_id)
        if status is not None:
            query = query.filter(ContestUser.status == ParticipantStatus(status).value)
        return query.order_by(ContestUser.joined_at.asc(), ContestUser.id.asc()).all()


__all__ = ["EnrollmentService"]
