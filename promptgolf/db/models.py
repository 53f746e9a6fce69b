"""SQLAlchemy models for the attempt log."""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    # naive UTC, as SQLite stores it
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AttemptRecord(Base):
    """A scored prompt submission. Rows are inserted once and never updated."""

    __tablename__ = "attempts"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(64), nullable=False)
    challenge_id = Column(String(64), nullable=False)
    prompt = Column(Text, nullable=False)

    # Scores
    total_score = Column(Float, nullable=False)
    max_score = Column(Integer, nullable=False)
    final_score = Column(Float, nullable=False)
    time_bonus = Column(Integer, nullable=False, default=0)
    elapsed_seconds = Column(Float, nullable=True)
    quality_level = Column(String(16), nullable=False)

    # Judge feedback, stored as camelCase JSON
    dimensions = Column(JSON, nullable=False)
    overall_feedback = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_attempts_user_challenge", "user_id", "challenge_id"),
        Index("ix_attempts_created", "created_at"),
    )

    def __repr__(self):
        return f"<AttemptRecord {self.id[:8]} {self.challenge_id} final={self.final_score}>"


class EarnedAchievement(Base):
    """An achievement a user has unlocked."""

    __tablename__ = "earned_achievements"

    user_id = Column(String(64), primary_key=True)
    achievement_id = Column(String(64), primary_key=True)
    earned_at = Column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<EarnedAchievement {self.user_id}:{self.achievement_id}>"
