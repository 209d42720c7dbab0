"""Backend settings (single source of truth).

This module loads `.env` (if present) and exposes typed-ish constants.
Keep it lightweight to avoid circular imports.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


APP_TITLE = "Contest Judge Backend"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Programming contest platform: submissions, judge queue and reviews"


def _split_csv(value: str) -> List[str]:
    parts = [p.strip() for p in value.split(",")]
    return [p for p in parts if p]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y")


# CORS
_CORS_RAW = os.getenv("CORS_ALLOW_ORIGINS", "*").strip()
CORS_ALLOW_ORIGINS: List[str] = ["*"] if _CORS_RAW == "*" else _split_csv(_CORS_RAW)


# Auth/JWT
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

# Default only suitable for local development; set SECRET_KEY in production.
SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-change-me")


# Database
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./contest.db")
CREATE_TABLES_ON_STARTUP: bool = _env_flag("CREATE_TABLES_ON_STARTUP", "true")


# Pagination
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 200


# Real-time events over WebSocket
ENABLE_WS_EVENTS: bool = _env_flag("ENABLE_WS_EVENTS", "true")
# Per-subscriber buffer; a slow socket loses events beyond this.
EVENT_QUEUE_SIZE: int = int(os.getenv("EVENT_QUEUE_SIZE", "256"))


# Shown to judges in place of the submitter's identity.
ANONYMOUS_PARTICIPANT = "Anonymous Participant"


# Bootstrap admin, created on startup when both are set and the user is missing.
BOOTSTRAP_ADMIN_USERNAME: str = os.getenv("BOOTSTRAP_ADMIN_USERNAME", "")
BOOTSTRAP_ADMIN_PASSWORD: str = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "")
