"""
Submission database models.
Contains: Submission, Review
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db import Base


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Submission(Base):
    """One participant's attempt at a problem within a contest"""
    __tablename__ = "submissions"
    __table_args__ = (
        Index("idx_submissions_status_created", "status", "created_at"),
        Index("idx_submissions_reviewer", "reviewer_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False, index=True)
    submitter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    code_text = Column(Text, nullable=False)
    language = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Mutated only through conditional updates (see domain.judging)
    status = Column(String(20), nullable=False, default=SubmissionStatus.PENDING.value)
    score = Column(Integer, nullable=False, default=0)
    reviewer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    problem = relationship("Problem", lazy="joined")
    contest = relationship("Contest", lazy="joined")
    submitter = relationship("User", foreign_keys=[submitter_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    review = relationship("Review", back_populates="submission", uselist=False)


class Review(Base):
    """A judge's verdict on exactly one submission"""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="CASCADE"), nullable=False)
    submitter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    correct = Column(Boolean, nullable=False)
    score_awarded = Column(Integer, nullable=False, default=0)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    submission = relationship("Submission", back_populates="review")
