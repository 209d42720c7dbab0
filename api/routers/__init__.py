"""API routers (preferred import path)."""

from .problems import router as problems_router
from .contests import router as contests_router
from .submissions import router as submissions_router
from .judge import router as judge_router
from .leaderboard import router as leaderboard_router
from .admin import router as admin_router
from .system import router as system_router

__all__ = [
    "problems_router",
    "contests_router",
    "submissions_router",
    "judge_router",
    "leaderboard_router",
    "admin_router",
    "system_router",
]
