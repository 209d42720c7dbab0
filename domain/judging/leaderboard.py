"""Leaderboards derived from accepted submissions and users' aggregate standing."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from domain.models import ContestUser, ParticipantStatus, Submission, SubmissionStatus, User


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: int
    username: str
    score: int
    problems_solved: int
    last_submission_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "username": self.username,
            "score": self.score,
            "problems_solved": self.problems_solved,
            "last_submission_time": self.last_submission_time.isoformat() if self.last_submission_time else None,
        }


class LeaderboardService:

    def __init__(self, db: Session):
        self.db = db

    def contest_leaderboard(self, contest_id: int) -> List[LeaderboardEntry]:
        """
        Rank ACTIVE participants by the sum of their accepted scores.

        Ties go to whoever reached the score first (earliest latest-accepted
        submission).
        """
        rows = (
            self.db.query(
                Submission.submitter_id,
                User.username,
                Submission.problem_id,
                Submission.score,
                Submission.created_at,
            )
            .join(User, User.id == Submission.submitter_id)
            .join(
                ContestUser,
                and_(
                    ContestUser.contest_id == Submission.contest_id,
                    ContestUser.user_id == Submission.submitter_id,
                ),
            )
            .filter(
                Submission.contest_id == contest_id,
                Submission.status == SubmissionStatus.ACCEPTED.value,
                ContestUser.status == ParticipantStatus.ACTIVE.value,
            )
            .all()
        )

        standings: Dict[int, Dict[str, Any]] = {}
        for (user_id, username, problem_id, score, created_at) in rows:
            entry = standings.setdefault(user_id, {
                "username": username,
                "score": 0,
                "problems": set(),
                "last": None,
            })
            entry["score"] += score or 0
            entry["problems"].add(problem_id)
            if entry["last"] is None or created_at > entry["last"]:
                entry["last"] = created_at

        ordered = sorted(
            standings.items(),
            key=lambda item: (-item[1]["score"], item[1]["last"] or datetime.max, item[0]),
        )

        return [
            LeaderboardEntry(
                rank=i + 1,
                user_id=user_id,
                username=data["username"],
                score=data["score"],
                problems_solved=len(data["problems"]),
                last_submission_time=data["last"],
            )
            for i, (user_id, data) in enumerate(ordered)
        ]

    def global_leaderboard(self, limit: int = 20) -> List[LeaderboardEntry]:
        users = (
            self.db.query(User)
            .filter(User.problems_solved_count > 0)
            .order_by(User.score.desc(), User.problems_solved_count.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [
            LeaderboardEntry(
                rank=i + 1,
                user_id=u.id,
                username=u.username,
                score=u.score,
                problems_solved=u.problems_solved_count,
            )
            for i, u in enumerate(users)
        ]


__all__ = ["LeaderboardService", "LeaderboardEntry"]
