from __future__ import annotations

import os

# Settings are read at import time; keep the app off the real database.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import domain.models  # noqa: F401
from app.auth import token_for
from app.db import Base, get_db
from app.main import app
from domain.models import (
    Contest,
    ContestProblem,
    ContestStatus,
    ContestUser,
    ParticipantStatus,
    Problem,
    Role,
    Submission,
    SubmissionStatus,
    User,
)


class RecordingPublisher:
    def __init__(self):
        self.events: List = []

    def publish(self, event) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [e.kind.value for e in self.events]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite shared by several threads.

    Every transaction starts with BEGIN IMMEDIATE so concurrent writers queue
    on the busy timeout instead of failing with "database is locked".
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'judge.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def events():
    return RecordingPublisher()


def make_user(db, username: str, role: Role = Role.PARTICIPANT) -> User:
    user = User(username=username, hashed_password="not-a-real-hash", role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_contest(db, name: str = "Spring Cup", status: ContestStatus = ContestStatus.RUNNING) -> Contest:
    contest = Contest(name=name, status=status.value)
    db.add(contest)
    db.commit()
    db.refresh(contest)
    return contest


def make_problem(db, title: str = "Two Sum", max_score: int = 100) -> Problem:
    problem = Problem(title=title, description="Add two numbers.", difficulty="beginner", max_score=max_score)
    db.add(problem)
    db.commit()
    db.refresh(problem)
    return problem


def attach(db, contest: Contest, problem: Problem) -> None:
    db.add(ContestProblem(contest_id=contest.id, problem_id=problem.id, points=problem.max_score))
    db.commit()


def enroll(db, contest: Contest, user: User, status: ParticipantStatus = ParticipantStatus.ACTIVE) -> None:
    db.add(ContestUser(contest_id=contest.id, user_id=user.id, status=status.value))
    db.commit()


def make_submission(db, world, created_at: datetime = None, **overrides) -> Submission:
    """Insert a submission directly, bypassing the lifecycle checks."""
    fields = dict(
        problem_id=world.problem.id,
        contest_id=world.contest.id,
        submitter_id=world.alice.id,
        code_text="print(1)",
        language="python",
        status=SubmissionStatus.PENDING.value,
        score=0,
        created_at=created_at or datetime.utcnow(),
    )
    fields.update(overrides)
    submission = Submission(**fields)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def build_world(db) -> SimpleNamespace:
    admin = make_user(db, "admin", Role.ADMIN)
    judge1 = make_user(db, "judge1", Role.JUDGE)
    judge2 = make_user(db, "judge2", Role.JUDGE)
    alice = make_user(db, "alice")
    bob = make_user(db, "bob")
    contest = make_contest(db)
    problem = make_problem(db)
    attach(db, contest, problem)
    enroll(db, contest, alice)
    return SimpleNamespace(
        admin=admin,
        judge1=judge1,
        judge2=judge2,
        alice=alice,
        bob=bob,
        contest=contest,
        problem=problem,
    )


@pytest.fixture
def world(db):
    """Running contest C with problem P, ACTIVE participant alice, bob not enrolled."""
    return build_world(db)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


def minutes_ago(n: int) -> datetime:
    return datetime.utcnow() - timedelta(minutes=n)
