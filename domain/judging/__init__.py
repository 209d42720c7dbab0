"""Judging domain: submission lifecycle, judge queue and the CRUD around them."""

from .errors import Conflict, Forbidden, InvalidState, JudgingError, NotFound
from .lifecycle import SubmissionFilters, SubmissionPage, SubmissionService
from .queue import ClaimOutcome, ClaimResult, JudgeQueueService
from .reviews import ReviewService
from .enrollment import EnrollmentService
from .contests import ContestService
from .leaderboard import LeaderboardEntry, LeaderboardService

__all__ = [
    'JudgingError',
    'NotFound',
    'Forbidden',
    'InvalidState',
    'Conflict',
    'SubmissionService',
    'SubmissionFilters',
    'SubmissionPage',
    'JudgeQueueService',
    'ClaimOutcome',
    'ClaimResult',
    'ReviewService',
    'EnrollmentService',
    'ContestService',
    'LeaderboardService',
    'LeaderboardEntry',
]
