"""Admin Router - Admin-only endpoints for system management.

Features:
- User management (list, change role)
- System statistics (users, problems, contests, submissions, judge queue)
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.db import get_db
from app.auth import get_current_admin_user
from domain.judging import JudgeQueueService
from domain.models import Contest, ContestStatus, Problem, Role, Submission, SubmissionStatus, User
from api.deps import get_queue_service
from sqlalchemy import func, or_

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ==================== Request/Response Models ====================

class UserResponse(BaseModel):
	id: int
	username: str
	role: str
	score: int
	problems_solved_count: int
	submission_count: int = 0


class AdminUsersResponse(BaseModel):
	total: int
	skip: int
	limit: int
	items: List[UserResponse]


class UserUpdateRequest(BaseModel):
	role: Role


class SystemStatsResponse(BaseModel):
	users_total: int
	judges_total: int
	problems_total: int
	contests_total: int
	contests_running: int
	submissions_total: int
	submissions_pending: int
	submissions_under_review: int
	submissions_accepted: int


def _user_response(user: User, submission_count: int) -> UserResponse:
	return UserResponse(
		id=user.id,
		username=user.username,
		role=user.role,
		score=user.score,
		problems_solved_count=user.problems_solved_count,
		submission_count=submission_count,
	)


# ==================== User Management ====================

@router.get("/users", response_model=AdminUsersResponse)
def list_users(
	skip: int = 0,
	limit: int = 100,
	q: Optional[str] = None,
	role: Optional[Role] = None,
	db: Session = Depends(get_db),
	current_admin: User = Depends(get_current_admin_user)
):
	"""List all users with submission counts"""
	skip = max(skip, 0)
	limit = max(min(limit, 200), 1)

	query = db.query(User)

	# server-side search (id or username)
	if q:
		qq = q.strip()
		if qq:
			if qq.isdigit():
				query = query.filter(or_(User.id == int(qq), User.username.ilike(f"%{qq}%")))
			else:
				query = query.filter(User.username.ilike(f"%{qq}%"))

	if role is not None:
		query = query.filter(User.role == role.value)

	total = query.count()

	# submission counts in one query
	subq = (
		db.query(Submission.submitter_id.label("user_id"), func.count(Submission.id).label("cnt"))
		.group_by(Submission.submitter_id)
		.subquery()
	)
	rows = (
		query.outerjoin(subq, User.id == subq.c.user_id)
		.add_columns(subq.c.cnt)
		.order_by(User.id.desc())
		.offset(skip)
		.limit(limit)
		.all()
	)

	items = [_user_response(user, int(cnt or 0)) for (user, cnt) in rows]
	return AdminUsersResponse(total=total, skip=skip, limit=limit, items=items)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
	user_id: int,
	request: UserUpdateRequest,
	db: Session = Depends(get_db),
	current_admin: User = Depends(get_current_admin_user)
):
	"""Change a user's role"""
	user = db.query(User).filter(User.id == user_id).first()
	if not user:
		raise HTTPException(status_code=404, detail="User not found")

	# Prevent self-demotion
	if user.id == current_admin.id and request.role != Role.ADMIN:
		raise HTTPException(status_code=400, detail="Cannot demote yourself")

	user.role = request.role.value
	db.commit()
	db.refresh(user)
	logger.info(f"User {user.id} role set to {user.role} by admin {current_admin.id}")

	submission_count = db.query(Submission).filter(Submission.submitter_id == user.id).count()
	return _user_response(user, submission_count)


# ==================== Statistics ====================

@router.get("/stats", response_model=SystemStatsResponse)
def get_system_stats(
	db: Session = Depends(get_db),
	queue: JudgeQueueService = Depends(get_queue_service),
	current_admin: User = Depends(get_current_admin_user)
):
	"""Platform-wide counters"""
	queue_stats = queue.queue_statistics()
	return SystemStatsResponse(
		users_total=db.query(User).count(),
		judges_total=db.query(User).filter(User.role == Role.JUDGE.value).count(),
		problems_total=db.query(Problem).count(),
		contests_total=db.query(Contest).count(),
		contests_running=db.query(Contest).filter(Contest.status == ContestStatus.RUNNING.value).count(),
		submissions_total=queue_stats["total"],
		submissions_pending=queue_stats["pending"],
		submissions_under_review=queue_stats["under_review"],
		submissions_accepted=db.query(Submission).filter(Submission.status == SubmissionStatus.ACCEPTED.value).count(),
	)


__all__ = ["router"]
