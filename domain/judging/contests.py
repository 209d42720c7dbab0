"""Contests and problems: creation, problem attachment and status changes."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from domain.models import Contest, ContestProblem, ContestStatus, Problem

from .errors import Conflict, InvalidState, NotFound

logger = logging.getLogger(__name__)

_CONTEST_TRANSITIONS: Dict[ContestStatus, List[ContestStatus]] = {
    ContestStatus.PLANNED: [ContestStatus.RUNNING, ContestStatus.ARCHIVED],
    ContestStatus.RUNNING: [ContestStatus.ENDED],
    ContestStatus.ENDED: [ContestStatus.ARCHIVED],
    ContestStatus.ARCHIVED: [],
}


class ContestService:

    def __init__(self, db: Session):
        self.db = db

    # ==================== Problems ====================

    def create_problem(
        self,
        title: str,
        description: str,
        difficulty: Optional[str] = None,
        max_score: int = 100,
    ) -> Problem:
        problem = Problem(title=title, description=description, difficulty=difficulty, max_score=max_score)
        self.db.add(problem)
        self.db.commit()
        self.db.refresh(problem)
        return problem

    def get_problem(self, problem_id: int) -> Problem:
        problem = self.db.query(Problem).filter(Problem.id == problem_id).first()
        if problem is None:
            raise NotFound("Problem not found")
        return problem

    # ==================== Contests ====================

    def create_contest(
        self,
        name: str,
        description: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> Contest:
        if start_time and end_time and end_time <= start_time:
            raise InvalidState("Contest end time must be after its start time")

        contest = Contest(
            name=name,
            description=description,
            start_time=start_time,
            end_time=end_time,
            status=ContestStatus.PLANNED.value,
        )
        self.db.add(contest)
        self.db.commit()
        self.db.refresh(contest)
        logger.info(f"Contest {contest.id} created: {name}")
        return contest

    def get_contest(self, contest_id: int) -> Contest:
        contest = self.db.query(Contest).filter(Contest.id == contest_id).first()
        if contest is None:
            raise NotFound("Contest not found")
        return contest

    def list_contests(self, status: Optional[ContestStatus] = None) -> List[Contest]:
        query = self.db.query(Contest)
        if status is not None:
            query = query.filter(Contest.status == ContestStatus(status).value)
        return query.order_by(Contest.created_at.desc(), Contest.id.desc()).all()

    def change_status(self, contest_id: int, new_status: ContestStatus) -> Contest:
        contest = self.get_contest(contest_id)
        current = ContestStatus(contest.status)
        target = ContestStatus(new_status)
        if target not in _CONTEST_TRANSITIONS[current]:
            raise InvalidState(f"Invalid status transition from {current.value} to {target.value}")

        contest.status = target.value
        self.db.commit()
        self.db.refresh(contest)
        logger.info(f"Contest {contest_id}: {current.value} -> {target.value}")
        return contest

    def add_problem(self, contest_id: int, problem_id: int, points: Optional[int] = None) -> ContestProblem:
        self.get_contest(contest_id)
        problem = self.get_problem(problem_id)

        existing = (
            self.db.query(ContestProblem.id)
            .filter(ContestProblem.contest_id == contest_id, ContestProblem.problem_id == problem_id)
            .first()
        )
        if existing:
            raise Conflict("Problem is already part of this contest")

        link = ContestProblem(
            contest_id=contest_id,
            problem_id=problem_id,
            points=points if points is not None else problem.max_score,
        )
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link


__all__ = ["ContestService"]
