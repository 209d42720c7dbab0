"""Leaderboard Router - global and per-contest standings."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db import get_db
from domain.judging import LeaderboardService
from domain.models import Contest
from api.deps import clamp_page, get_leaderboard_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


class LeaderboardEntryOut(BaseModel):
    rank: int
    user_id: int
    username: str
    score: int
    problems_solved: int
    last_submission_time: Optional[str] = None


@router.get("/", response_model=List[LeaderboardEntryOut])
def global_leaderboard(
    limit: int = 20,
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
):
    return [e.to_dict() for e in leaderboard.global_leaderboard(clamp_page(limit, 100))]


@router.get("/contest/{contest_id}", response_model=List[LeaderboardEntryOut])
def contest_leaderboard(
    contest_id: int,
    db: Session = Depends(get_db),
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
):
    if not db.query(Contest.id).filter(Contest.id == contest_id).first():
        raise HTTPException(status_code=404, detail="Contest not found")
    return [e.to_dict() for e in leaderboard.contest_leaderboard(contest_id)]


__all__ = ["router"]
