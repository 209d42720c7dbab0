"""
Core database models.
Contains: User, Problem, Contest, ContestProblem, ContestUser
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db import Base


class Role(str, Enum):
    PARTICIPANT = "PARTICIPANT"
    JUDGE = "JUDGE"
    ADMIN = "ADMIN"


class ContestStatus(str, Enum):
    PLANNED = "PLANNED"
    RUNNING = "RUNNING"
    ENDED = "ENDED"
    ARCHIVED = "ARCHIVED"


class ParticipantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"
    DISQUALIFIED = "DISQUALIFIED"


class User(Base):
    """User model - authentication, role and aggregate standing"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, index=True, nullable=False)
    hashed_password = Column(String(256), nullable=False)
    role = Column(String(20), nullable=False, default=Role.PARTICIPANT.value)
    score = Column(Integer, nullable=False, default=0)
    problems_solved_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    enrollments = relationship("ContestUser", back_populates="user", cascade="all, delete-orphan")


class Problem(Base):
    """Problem model - programming exercises"""
    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    difficulty = Column(String(50), nullable=True)
    max_score = Column(Integer, nullable=False, default=100)

    contests = relationship("ContestProblem", back_populates="problem", cascade="all, delete-orphan")


class Contest(Base):
    """Scheduling/status envelope for a set of problems"""
    __tablename__ = "contests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default=ContestStatus.PLANNED.value, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    problems = relationship("ContestProblem", back_populates="contest", cascade="all, delete-orphan")
    participants = relationship("ContestUser", back_populates="contest", cascade="all, delete-orphan")


class ContestProblem(Base):
    """Association of a problem with a contest"""
    __tablename__ = "contest_problems"
    __table_args__ = (UniqueConstraint("contest_id", "problem_id", name="uq_contest_problem"),)

    id = Column(Integer, primary_key=True, index=True)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    points = Column(Integer, nullable=False, default=100)

    contest = relationship("Contest", back_populates="problems")
    problem = relationship("Problem", back_populates="contests", lazy="joined")


class ContestUser(Base):
    """Enrollment: a participant's standing within a contest"""
    __tablename__ = "contest_users"
    __table_args__ = (UniqueConstraint("contest_id", "user_id", name="uq_contest_user"),)

    id = Column(Integer, primary_key=True, index=True)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default=ParticipantStatus.ACTIVE.value)
    joined_at = Column(DateTime, default=datetime.utcnow)

    contest = relationship("Contest", back_populates="participants")
    user = relationship("User", back_populates="enrollments", lazy="joined")
