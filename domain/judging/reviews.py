"""Read-side queries over finalized reviews."""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from domain.models import Review, Submission


class ReviewService:

    def __init__(self, db: Session):
        self.db = db

    def for_submission(self, submission_id: int) -> Optional[Review]:
        return self.db.query(Review).filter(Review.submission_id == submission_id).first()

    def by_judge(self, judge_id: int, limit: Optional[int] = None) -> List[Review]:
        query = (
            self.db.query(Review)
            .filter(Review.reviewer_id == judge_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def for_user(self, user_id: int, contest_id: Optional[int] = None) -> List[Review]:
        query = self.db.query(Review).filter(Review.submitter_id == user_id)
        if contest_id is not None:
            query = query.join(Submission, Review.submission_id == Submission.id).filter(
                Submission.contest_id == contest_id
            )
        return query.order_by(Review.created_at.desc(), Review.id.desc()).all()

    def judge_statistics(self, judge_id: int) -> Dict[str, Any]:
        rows = (
            self.db.query(Review.correct, Review.score_awarded)
            .filter(Review.reviewer_id == judge_id)
            .all()
        )
        total = len(rows)
        accepted = sum(1 for (correct, _) in rows if correct)
        average = sum(score for (_, score) in rows) / total if total else 0

        return {
            "total_reviews": total,
            "accepted_reviews": accepted,
            "rejected_reviews": total - accepted,
            "average_score": round(average, 2),
        }


__all__ = ["ReviewService"]
