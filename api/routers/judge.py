"""Judge Router - queue, claiming and reviews.

Endpoints:
- GET /judge/queue - Pending submissions, oldest first (anonymised)
- GET /judge/queue/statistics - Pending/under-review/total counts
- GET /judge/active - Submissions the current judge has claimed
- POST /judge/claim/{id} - Claim a submission
- POST /judge/release/{id} - Hand a claimed submission back
- POST /judge/review - Finalise a verdict
- GET /judge/review/{submission_id} - Review of one submission
- GET /judge/reviews - Reviews written by the current judge
- GET /judge/statistics - The current judge's review statistics
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from app.auth import require_roles
from domain.judging import (
    ClaimOutcome,
    JudgeQueueService,
    JudgingError,
    ReviewService,
    SubmissionService,
)
from domain.models import Role, User
from api.deps import get_queue_service, get_review_service, get_submission_service, http_error
from api.schemas import ReviewOut, SubmissionDetail, review_out, submission_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/judge", tags=["judge"])

require_judge = require_roles(Role.JUDGE)

_CLAIM_STATUS = {
    ClaimOutcome.NOT_FOUND: 404,
    ClaimOutcome.CONFLICT: 409,
    ClaimOutcome.INVALID_STATE: 400,
}


class QueueStatistics(BaseModel):
    pending: int
    under_review: int
    total: int


class ClaimResponse(BaseModel):
    success: bool
    message: str
    submission: Optional[SubmissionDetail] = None


class MessageResponse(BaseModel):
    message: str


class ReviewRequest(BaseModel):
    submission_id: int
    correct: bool
    score_awarded: int = Field(ge=0)
    remarks: Optional[str] = None


class JudgeStatistics(BaseModel):
    total_reviews: int
    accepted_reviews: int
    rejected_reviews: int
    average_score: float


@router.get("/queue", response_model=List[SubmissionDetail])
def get_queue(
    contest_id: Optional[int] = None,
    queue: JudgeQueueService = Depends(get_queue_service),
    judge: User = Depends(require_judge),
):
    return [submission_out(s, anonymize=True, detail=True) for s in queue.list_queue(contest_id)]


@router.get("/queue/statistics", response_model=QueueStatistics)
def get_queue_statistics(
    queue: JudgeQueueService = Depends(get_queue_service),
    judge: User = Depends(require_judge),
):
    return QueueStatistics(**queue.queue_statistics())


@router.get("/active", response_model=List[SubmissionDetail])
def get_active_submissions(
    queue: JudgeQueueService = Depends(get_queue_service),
    judge: User = Depends(require_judge),
):
    return [submission_out(s, anonymize=True, detail=True) for s in queue.active_for(judge.id)]


@router.post("/claim/{submission_id}", response_model=ClaimResponse)
def claim_submission(
    submission_id: int,
    response: Response,
    queue: JudgeQueueService = Depends(get_queue_service),
    judge: User = Depends(require_judge),
):
    result = queue.claim(submission_id, judge.id)
    if not result.success:
        # Same body shape as a success, only the status code differs.
        response.status_code = _CLAIM_STATUS[result.outcome]
        return ClaimResponse(success=False, message=result.message)

    return ClaimResponse(
        success=True,
        message=result.message,
        submission=submission_out(result.submission, anonymize=True, detail=True),
    )


@router.post("/release/{submission_id}", response_model=MessageResponse)
def release_submission(
    submission_id: int,
    queue: JudgeQueueService = Depends(get_queue_service),
    judge: User = Depends(require_judge),
):
    if not queue.release(submission_id, judge.id):
        raise HTTPException(status_code=400, detail="Unable to release submission")
    return MessageResponse(message="Submission released back to queue")


@router.post("/review", response_model=ReviewOut, status_code=201)
def submit_review(
    req: ReviewRequest,
    service: SubmissionService = Depends(get_submission_service),
    judge: User = Depends(require_judge),
):
    try:
        review = service.finalize_review(
            submission_id=req.submission_id,
            reviewer_id=judge.id,
            correct=req.correct,
            score_awarded=req.score_awarded,
            remarks=req.remarks,
        )
    except JudgingError as e:
        raise http_error(e)
    return review_out(review)


@router.get("/review/{submission_id}", response_model=ReviewOut)
def get_review(
    submission_id: int,
    reviews: ReviewService = Depends(get_review_service),
    judge: User = Depends(require_judge),
):
    review = reviews.for_submission(submission_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review_out(review)


@router.get("/reviews", response_model=List[ReviewOut])
def get_my_reviews(
    limit: Optional[int] = None,
    reviews: ReviewService = Depends(get_review_service),
    judge: User = Depends(require_judge),
):
    return [review_out(r) for r in reviews.by_judge(judge.id, limit)]


@router.get("/statistics", response_model=JudgeStatistics)
def get_judge_statistics(
    reviews: ReviewService = Depends(get_review_service),
    judge: User = Depends(require_judge),
):
    return JudgeStatistics(**reviews.judge_statistics(judge.id))


__all__ = ["router"]
