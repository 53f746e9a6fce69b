"""
Attempt log and earned-achievement storage.

The core only needs a narrow interface: append an attempt, list attempts,
get one by id, and track earned achievement ids per user. Two backends:
an in-memory store and a SQLAlchemy-backed one.
"""

import threading
from datetime import timezone
from typing import Dict, Iterable, List, Optional, Protocol, Set

from sqlalchemy.orm import sessionmaker

from ..scoring.models import Attempt, DimensionScore, OverallFeedback
from .database import SessionLocal, init_db, session_scope
from .models import AttemptRecord, EarnedAchievement


class AttemptStore(Protocol):
    def append(self, attempt: Attempt) -> Attempt:
        ...

    def list_attempts(
        self,
        user_id: Optional[str] = None,
        challenge_id: Optional[str] = None,
    ) -> List[Attempt]:
        """Matching attempts, newest first."""
        ...

    def get(self, attempt_id: str) -> Optional[Attempt]:
        ...

    def earned_achievements(self, user_id: str) -> List[str]:
        ...

    def add_earned_achievements(self, user_id: str, achievement_ids: Iterable[str]) -> None:
        ...


def _newest_first(attempts: Iterable[Attempt]) -> List[Attempt]:
    return sorted(attempts, key=lambda a: a.created_at, reverse=True)


class MemoryAttemptStore:
    """Append-only in-process store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._attempts: List[Attempt] = []
        self._by_id: Dict[str, Attempt] = {}
        self._earned: Dict[str, List[str]] = {}

    def append(self, attempt: Attempt) -> Attempt:
        with self._lock:
            if attempt.id in self._by_id:
                raise ValueError(f"Attempt '{attempt.id}' already recorded")
            self._attempts.append(attempt)
            self._by_id[attempt.id] = attempt
        return attempt

    def list_attempts(self, user_id=None, challenge_id=None) -> List[Attempt]:
        with self._lock:
            attempts = list(self._attempts)
        if user_id:
            attempts = [a for a in attempts if a.user_id == user_id]
        if challenge_id:
            attempts = [a for a in attempts if a.challenge_id == challenge_id]
        return _newest_first(attempts)

    def get(self, attempt_id: str) -> Optional[Attempt]:
        return self._by_id.get(attempt_id)

    def earned_achievements(self, user_id: str) -> List[str]:
        with self._lock:
            return list(self._earned.get(user_id, []))

    def add_earned_achievements(self, user_id: str, achievement_ids: Iterable[str]) -> None:
        with self._lock:
            earned = self._earned.setdefault(user_id, [])
            for achievement_id in achievement_ids:
                if achievement_id not in earned:
                    earned.append(achievement_id)


def _number(value: float):
    # Float columns hand back 80.0 for 80
    return int(value) if float(value).is_integer() else value


class SqlAttemptStore:
    """Attempt log persisted through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal, create_tables: bool = True):
        self._session_factory = session_factory
        if create_tables:
            init_db(session_factory.kw["bind"])

    def append(self, attempt: Attempt) -> Attempt:
        created_at = attempt.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
        record = AttemptRecord(
            id=attempt.id,
            user_id=attempt.user_id,
            challenge_id=attempt.challenge_id,
            prompt=attempt.prompt,
            total_score=attempt.total_score,
            max_score=attempt.max_score,
            final_score=attempt.final_score,
            time_bonus=attempt.time_bonus,
            elapsed_seconds=attempt.elapsed_seconds,
            quality_level=attempt.quality_level,
            dimensions={k: v.model_dump(by_alias=True) for k, v in attempt.dimensions.items()},
            overall_feedback=attempt.overall_feedback.model_dump(by_alias=True),
            created_at=created_at,
        )
        with session_scope(self._session_factory) as db:
            db.add(record)
        return attempt

    @staticmethod
    def _to_attempt(record: AttemptRecord) -> Attempt:
        return Attempt(
            id=record.id,
            user_id=record.user_id,
            challenge_id=record.challenge_id,
            prompt=record.prompt,
            total_score=_number(record.total_score),
            max_score=record.max_score,
            final_score=_number(record.final_score),
            time_bonus=record.time_bonus,
            elapsed_seconds=record.elapsed_seconds,
            quality_level=record.quality_level,
            dimensions={k: DimensionScore.model_validate(v) for k, v in record.dimensions.items()},
            overall_feedback=OverallFeedback.model_validate(record.overall_feedback),
            created_at=record.created_at.replace(tzinfo=timezone.utc),
        )

    def list_attempts(self, user_id=None, challenge_id=None) -> List[Attempt]:
        with session_scope(self._session_factory) as db:
            query = db.query(AttemptRecord)
            if user_id:
                query = query.filter(AttemptRecord.user_id == user_id)
            if challenge_id:
                query = query.filter(AttemptRecord.challenge_id == challenge_id)
            records = query.order_by(AttemptRecord.created_at.desc()).all()
            return [self._to_attempt(r) for r in records]

    def get(self, attempt_id: str) -> Optional[Attempt]:
        with session_scope(self._session_factory) as db:
            record = db.query(AttemptRecord).filter(AttemptRecord.id == attempt_id).first()
            return self._to_attempt(record) if record else None

    def earned_achievements(self, user_id: str) -> List[str]:
        with session_scope(self._session_factory) as db:
            rows = db.query(EarnedAchievement).filter(
                EarnedAchievement.user_id == user_id,
            ).order_by(EarnedAchievement.earned_at.asc()).all()
            return [row.achievement_id for row in rows]

    def add_earned_achievements(self, user_id: str, achievement_ids: Iterable[str]) -> None:
        with session_scope(self._session_factory) as db:
            existing: Set[str] = {
                row.achievement_id
                for row in db.query(EarnedAchievement).filter(EarnedAchievement.user_id == user_id)
            }
            for achievement_id in achievement_ids:
                if achievement_id not in existing:
                    db.add(EarnedAchievement(user_id=user_id, achievement_id=achievement_id))
                    existing.add(achievement_id)
