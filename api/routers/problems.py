"""Problems Router - Problem catalogue.

Endpoints:
- GET /problems - Danh sách bài tập (có search/filter/pagination)
- GET /problems/{id} - Chi tiết bài tập
- POST /problems - (admin) Tạo bài tập mới
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth import get_current_admin_user
from app.db import get_db
from app.settings import MAX_PAGE_SIZE
from domain.judging import ContestService
from domain.models import Problem, User
from api.deps import clamp_page, get_contest_service

router = APIRouter(prefix="/problems", tags=["problems"])

logger = logging.getLogger(__name__)


class ProblemOut(BaseModel):
	id: int
	title: str
	description: str
	difficulty: Optional[str]
	max_score: int


class PaginatedProblems(BaseModel):
	total: int
	limit: int
	offset: int
	items: List[ProblemOut]


class ProblemCreateRequest(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	description: str
	difficulty: Optional[str] = "beginner"  # beginner, intermediate, advanced
	max_score: int = Field(default=100, ge=0)


def _problem_out(p: Problem) -> ProblemOut:
	return ProblemOut(
		id=p.id,
		title=p.title,
		description=p.description,
		difficulty=p.difficulty,
		max_score=p.max_score,
	)


@router.get("/", response_model=PaginatedProblems)
def list_problems(
	db: Session = Depends(get_db),
	search: Optional[str] = None,
	difficulty: Optional[str] = None,
	limit: int = 50,
	offset: int = 0,
):
	limit = clamp_page(limit, MAX_PAGE_SIZE)
	offset = max(offset, 0)

	q = db.query(Problem)

	if search:
		like = f"%{search.strip()}%"
		q = q.filter((Problem.title.ilike(like)) | (Problem.description.ilike(like)))

	if difficulty:
		q = q.filter(Problem.difficulty == difficulty)

	total = q.count()
	problems = q.order_by(Problem.id.asc()).offset(offset).limit(limit).all()

	return {"total": total, "limit": limit, "offset": offset, "items": [_problem_out(p) for p in problems]}


@router.get("/{problem_id}", response_model=ProblemOut)
def get_problem(problem_id: int, db: Session = Depends(get_db)):
	problem = db.query(Problem).filter(Problem.id == problem_id).first()
	if not problem:
		raise HTTPException(status_code=404, detail="Problem not found")
	return _problem_out(problem)


@router.post("/", response_model=ProblemOut, status_code=201)
def create_problem(
	req: ProblemCreateRequest,
	contests: ContestService = Depends(get_contest_service),
	admin: User = Depends(get_current_admin_user),
):
	problem = contests.create_problem(
		title=req.title,
		description=req.description,
		difficulty=req.difficulty,
		max_score=req.max_score,
	)
	logger.info(f"Problem {problem.id} created by admin {admin.id}")
	return _problem_out(problem)


__all__ = ["router"]
