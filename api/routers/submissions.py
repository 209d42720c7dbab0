"""
Submissions Router - nộp bài trong contest và tra cứu bài nộp.

Endpoints:
- POST /submissions - Participant nộp bài (contest phải RUNNING, đã enroll ACTIVE)
- GET /submissions - Judge/Admin xem danh sách (lọc, phân trang)
- GET /submissions/mine - Lịch sử bài nộp của user hiện tại
- GET /submissions/mine/reviews - Kết quả chấm của user hiện tại
- GET /submissions/contest/{contest_id}/stats - Thống kê theo contest
- GET /submissions/{id} - Chi tiết bài nộp
- POST /submissions/{id}/assign - Gán bài cho judge
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth import get_current_user, require_roles
from app.db import get_db
from app.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from domain.judging import (
    JudgingError,
    ReviewService,
    SubmissionFilters,
    SubmissionService,
)
from domain.models import Role, SubmissionStatus, User
from api.deps import clamp_page, get_review_service, get_submission_service, http_error
from api.schemas import (
    ReviewOut,
    SubmissionDetail,
    SubmissionOut,
    SubmissionPageOut,
    review_out,
    submission_out,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submissions", tags=["submissions"])


class SubmitRequest(BaseModel):
    problem_id: int
    contest_id: int
    code_text: str = Field(min_length=1)
    language: Optional[str] = None


class AssignRequest(BaseModel):
    judge_id: Optional[int] = None


@router.post("/", response_model=SubmissionOut, status_code=201)
def create_submission(
    req: SubmitRequest,
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(require_roles(Role.PARTICIPANT)),
):
    try:
        submission = service.create(
            problem_id=req.problem_id,
            contest_id=req.contest_id,
            submitter_id=user.id,
            code_text=req.code_text,
            language=req.language,
        )
    except JudgingError as e:
        raise http_error(e)
    return submission_out(submission)


@router.get("/", response_model=SubmissionPageOut)
def list_submissions(
    contest_id: Optional[int] = None,
    problem_id: Optional[int] = None,
    submitter_id: Optional[int] = None,
    status: Optional[SubmissionStatus] = None,
    reviewer_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(require_roles(Role.ADMIN, Role.JUDGE)),
):
    limit = clamp_page(limit, MAX_PAGE_SIZE)
    filters = SubmissionFilters(
        contest_id=contest_id,
        problem_id=problem_id,
        submitter_id=submitter_id,
        status=status,
        reviewer_id=reviewer_id,
        date_from=date_from,
        date_to=date_to,
    )
    result = service.list(filters, page=page, limit=limit)

    # Judges review blind.
    anonymize = user.role != Role.ADMIN.value
    return SubmissionPageOut(
        total=result.total,
        page=result.page,
        limit=limit,
        total_pages=result.total_pages,
        items=[submission_out(s, anonymize=anonymize) for s in result.items],
    )


@router.get("/mine", response_model=List[SubmissionOut])
def my_submissions(
    contest_id: Optional[int] = None,
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(get_current_user),
):
    return [submission_out(s) for s in service.history_for(user.id, contest_id)]


@router.get("/mine/reviews", response_model=List[ReviewOut])
def my_reviews(
    contest_id: Optional[int] = None,
    reviews: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    return [review_out(r) for r in reviews.for_user(user.id, contest_id)]


@router.get("/contest/{contest_id}/stats", response_model=Dict[str, Any])
def contest_submission_stats(
    contest_id: int,
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(require_roles(Role.ADMIN, Role.JUDGE)),
):
    return service.contest_statistics(contest_id)


@router.get("/{submission_id}", response_model=SubmissionDetail)
def get_submission(
    submission_id: int,
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(get_current_user),
):
    submission = service.get(submission_id)
    # Participants only see their own submissions; don't reveal others exist.
    if not submission or (user.role == Role.PARTICIPANT.value and submission.submitter_id != user.id):
        raise HTTPException(status_code=404, detail="Submission not found")

    anonymize = user.role == Role.JUDGE.value
    return submission_out(submission, anonymize=anonymize, detail=True)


@router.post("/{submission_id}/assign", response_model=SubmissionOut)
def assign_submission(
    submission_id: int,
    req: AssignRequest,
    db: Session = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
    user: User = Depends(require_roles(Role.ADMIN, Role.JUDGE)),
):
    judge_id = req.judge_id if req.judge_id is not None else user.id
    if judge_id != user.id:
        if user.role != Role.ADMIN.value:
            raise HTTPException(status_code=403, detail="Only admins can assign to another judge")
        judge = db.query(User).filter(User.id == judge_id).first()
        if not judge or judge.role != Role.JUDGE.value:
            raise HTTPException(status_code=400, detail="Target user is not a judge")

    try:
        submission = service.assign_to_judge(submission_id, judge_id)
    except JudgingError as e:
        raise http_error(e)
    return submission_out(submission, anonymize=True)


__all__ = ["router"]
