"""FastAPI dependencies. Tests swap these out through app.dependency_overrides."""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..challenges import ChallengeRegistry, challenge_registry
from ..config import ADMIN_TOKEN, DEFAULT_USER_ID
from ..db import AttemptStore, SqlAttemptStore
from ..scoring import ScoringService, scoring_service

_store: Optional[AttemptStore] = None


def get_registry() -> ChallengeRegistry:
    return challenge_registry


async def get_ready_registry(registry: ChallengeRegistry = Depends(get_registry)) -> ChallengeRegistry:
    """The registry, initialized on first use."""
    await registry.initialize()
    return registry


def get_scoring_service() -> ScoringService:
    return scoring_service


def get_store() -> AttemptStore:
    global _store
    if _store is None:
        _store = SqlAttemptStore()
    return _store


def resolve_user(user_id: Optional[str]) -> str:
    # Authentication is stubbed: anonymous requests act as the default user
    return user_id or DEFAULT_USER_ID


def require_admin(authorization: Optional[str] = Header(None)) -> None:
    if ADMIN_TOKEN and authorization != f"Bearer {ADMIN_TOKEN}":
        raise HTTPException(
            status_code=401,
            detail={"error_code": "UNAUTHORIZED", "message": "Admin token required"},
        )
