"""Response models shared by several routers."""

from typing import List, Optional

from pydantic import BaseModel

from app.settings import ANONYMOUS_PARTICIPANT
from domain.models import Review, Submission


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


class SubmissionOut(BaseModel):
    id: int
    problem_id: int
    problem_title: Optional[str] = None
    contest_id: int
    contest_name: Optional[str] = None
    submitter_id: Optional[int] = None
    submitter: Optional[str] = None
    language: Optional[str] = None
    status: str
    score: int
    reviewer_id: Optional[int] = None
    created_at: Optional[str] = None


class SubmissionDetail(SubmissionOut):
    code_text: str
    max_score: Optional[int] = None


class SubmissionPageOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    items: List[SubmissionOut]


class ReviewOut(BaseModel):
    id: int
    submission_id: int
    problem_id: int
    submitter_id: int
    reviewer_id: int
    correct: bool
    score_awarded: int
    remarks: Optional[str] = None
    created_at: Optional[str] = None


def submission_out(sub: Submission, anonymize: bool = False, detail: bool = False):
    fields = dict(
        id=sub.id,
        problem_id=sub.problem_id,
        problem_title=sub.problem.title if sub.problem else None,
        contest_id=sub.contest_id,
        contest_name=sub.contest.name if sub.contest else None,
        submitter_id=None if anonymize else sub.submitter_id,
        submitter=ANONYMOUS_PARTICIPANT if anonymize else (sub.submitter.username if sub.submitter else None),
        language=sub.language,
        status=sub.status,
        score=sub.score,
        reviewer_id=sub.reviewer_id,
        created_at=_iso(sub.created_at),
    )
    if detail:
        return SubmissionDetail(
            code_text=sub.code_text,
            max_score=sub.problem.max_score if sub.problem else None,
            **fields,
        )
    return SubmissionOut(**fields)


def review_out(review: Review) -> ReviewOut:
    return ReviewOut(
        id=review.id,
        submission_id=review.submission_id,
        problem_id=review.problem_id,
        submitter_id=review.submitter_id,
        reviewer_id=review.reviewer_id,
        correct=review.correct,
        score_awarded=review.score_awarded,
        remarks=review.remarks,
        created_at=_iso(review.created_at),
    )


__all__ = [
    "SubmissionOut",
    "SubmissionDetail",
    "SubmissionPageOut",
    "ReviewOut",
    "submission_out",
    "review_out",
]
