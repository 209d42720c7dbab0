"""Contests Router - contest management and enrollment.

Endpoints:
- GET /contests - List contests (filter by status)
- GET /contests/{id} - Contest detail with its problems
- POST /contests - (admin) Create a contest
- PATCH /contests/{id}/status - (admin) Change contest status
- POST /contests/{id}/problems - (admin) Attach a problem
- GET /contests/{id}/participants - (admin) Participants
- PATCH /contests/{id}/participants/{user_id} - (admin) Participant status
- POST /contests/{id}/join - (participant) Join
- POST /contests/{id}/leave - (participant) Leave
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from app.auth import get_current_admin_user, require_roles
from domain.judging import ContestService, EnrollmentService, JudgingError
from domain.models import Contest, ContestStatus, ContestUser, ParticipantStatus, Role, User
from api.deps import get_contest_service, get_enrollment_service, http_error

router = APIRouter(prefix="/contests", tags=["contests"])


class ContestCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class ContestStatusRequest(BaseModel):
    status: ContestStatus


class ContestProblemRequest(BaseModel):
    problem_id: int
    points: Optional[int] = Field(default=None, ge=0)


class ContestProblemOut(BaseModel):
    problem_id: int
    title: Optional[str] = None
    points: int


class ContestOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    status: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class ContestDetail(ContestOut):
    problems: List[ContestProblemOut] = []


class ParticipantOut(BaseModel):
    contest_id: int
    user_id: int
    username: Optional[str] = None
    status: str
    joined_at: Optional[str] = None


class ParticipantStatusRequest(BaseModel):
    status: ParticipantStatus


def _contest_out(contest: Contest, detail: bool = False):
    fields = dict(
        id=contest.id,
        name=contest.name,
        description=contest.description,
        status=contest.status,
        start_time=contest.start_time.isoformat() if contest.start_time else None,
        end_time=contest.end_time.isoformat() if contest.end_time else None,
    )
    if detail:
        problems = [
            ContestProblemOut(
                problem_id=cp.problem_id,
                title=cp.problem.title if cp.problem else None,
                points=cp.points,
            )
            for cp in contest.problems
        ]
        return ContestDetail(problems=problems, **fields)
    return ContestOut(**fields)


def _participant_out(enrollment: ContestUser) -> ParticipantOut:
    return ParticipantOut(
        contest_id=enrollment.contest_id,
        user_id=enrollment.user_id,
        username=enrollment.user.username if enrollment.user else None,
        status=enrollment.status,
        joined_at=enrollment.joined_at.isoformat() if enrollment.joined_at else None,
    )


@router.get("/", response_model=List[ContestOut])
def list_contests(
    status: Optional[ContestStatus] = None,
    contests: ContestService = Depends(get_contest_service),
):
    return [_contest_out(c) for c in contests.list_contests(status)]


@router.get("/{contest_id}", response_model=ContestDetail)
def get_contest(contest_id: int, contests: ContestService = Depends(get_contest_service)):
    try:
        return _contest_out(contests.get_contest(contest_id), detail=True)
    except JudgingError as e:
        raise http_error(e)


@router.post("/", response_model=ContestOut, status_code=201)
def create_contest(
    req: ContestCreateRequest,
    contests: ContestService = Depends(get_contest_service),
    admin: User = Depends(get_current_admin_user),
):
    try:
        contest = contests.create_contest(
            name=req.name,
            description=req.description,
            start_time=req.start_time,
            end_time=req.end_time,
        )
    except JudgingError as e:
        raise http_error(e)
    return _contest_out(contest)


@router.patch("/{contest_id}/status", response_model=ContestOut)
def change_contest_status(
    contest_id: int,
    req: ContestStatusRequest,
    contests: ContestService = Depends(get_contest_service),
    admin: User = Depends(get_current_admin_user),
):
    try:
        return _contest_out(contests.change_status(contest_id, req.status))
    except JudgingError as e:
        raise http_error(e)


@router.post("/{contest_id}/problems", response_model=ContestProblemOut, status_code=201)
def add_contest_problem(
    contest_id: int,
    req: ContestProblemRequest,
    contests: ContestService = Depends(get_contest_service),
    admin: User = Depends(get_current_admin_user),
):
    try:
        link = contests.add_problem(contest_id, req.problem_id, req.points)
    except JudgingError as e:
        raise http_error(e)
    return ContestProblemOut(
        problem_id=link.problem_id,
        title=link.problem.title if link.problem else None,
        points=link.points,
    )


@router.get("/{contest_id}/participants", response_model=List[ParticipantOut])
def list_participants(
    contest_id: int,
    status: Optional[ParticipantStatus] = None,
    enrollment: EnrollmentService = Depends(get_enrollment_service),
    admin: User = Depends(get_current_admin_user),
):
    try:
        return [_participant_out(p) for p in enrollment.participants(contest_id, status)]
    except JudgingError as e:
        raise http_error(e)


@router.patch("/{contest_id}/participants/{user_id}", response_model=ParticipantOut)
def change_participant_status(
    contest_id: int,
    user_id: int,
    req: ParticipantStatusRequest,
    enrollment: EnrollmentService = Depends(get_enrollment_service),
    admin: User = Depends(get_current_admin_user),
):
    try:
        return _participant_out(enrollment.set_status(contest_id, user_id, req.status))
    except JudgingError as e:
        raise http_error(e)


@router.post("/{contest_id}/join", response_model=ParticipantOut, status_code=201)
def join_contest(
    contest_id: int,
    enrollment: EnrollmentService = Depends(get_enrollment_service),
    user: User = Depends(require_roles(Role.PARTICIPANT)),
):
    try:
        return _participant_out(enrollment.join(contest_id, user.id))
    except JudgingError as e:
        raise http_error(e)


@router.post("/{contest_id}/leave")
def leave_contest(
    contest_id: int,
    enrollment: EnrollmentService = Depends(get_enrollment_service),
    user: User = Depends(require_roles(Role.PARTICIPANT)),
):
    try:
        remaining = enrollment.leave(contest_id, user.id)
    except JudgingError as e:
        raise http_error(e)
    if remaining is None:
        return Response(status_code=204)
    return _participant_out(remaining)


__all__ = ["router"]
