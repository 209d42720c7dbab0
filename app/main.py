import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from infra.services import get_event_hub
from api.routers import (
    admin_router,
    contests_router,
    judge_router,
    leaderboard_router,
    problems_router,
    submissions_router,
    system_router,
)
from .db import SessionLocal, init_db
from .settings import (
    APP_DESCRIPTION,
    APP_TITLE,
    APP_VERSION,
    BOOTSTRAP_ADMIN_PASSWORD,
    BOOTSTRAP_ADMIN_USERNAME,
    CORS_ALLOW_ORIGINS,
    CREATE_TABLES_ON_STARTUP,
)
from .auth import get_password_hash, router as auth_router
from domain.models import Role, User

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _ensure_bootstrap_admin() -> None:
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == BOOTSTRAP_ADMIN_USERNAME).first()
        if existing:
            return
        db.add(User(
            username=BOOTSTRAP_ADMIN_USERNAME,
            hashed_password=get_password_hash(BOOTSTRAP_ADMIN_PASSWORD),
            role=Role.ADMIN.value,
        ))
        db.commit()
        logger.info(f"Bootstrap admin '{BOOTSTRAP_ADMIN_USERNAME}' created")
    finally:
        db.close()


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION}...")

    if CREATE_TABLES_ON_STARTUP:
        init_db()
        logger.info("Database tables ensured")

    if BOOTSTRAP_ADMIN_USERNAME and BOOTSTRAP_ADMIN_PASSWORD:
        _ensure_bootstrap_admin()

    # Instantiate the hub up front so every request shares it.
    get_event_hub()
    logger.info("Startup complete")


app.include_router(auth_router)
app.include_router(problems_router)
app.include_router(contests_router)
app.include_router(submissions_router)
app.include_router(judge_router)
app.include_router(leaderboard_router)
app.include_router(admin_router)
app.include_router(system_router)


__all__ = ["app"]
