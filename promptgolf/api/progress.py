"""Attempts, progress and leaderboard API."""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..achievements import ACHIEVEMENTS, build_leaderboard, build_progress
from ..challenges import ChallengeRegistry
from ..db import AttemptStore
from ..scoring import Attempt
from .deps import get_ready_registry, get_store, resolve_user
from .schemas import Leaderboard, LeaderboardEntry, ProgressResponse

router = APIRouter(tags=["progress"])


@router.get("/attempts", response_model=List[Attempt])
async def list_attempts(
    user_id: Optional[str] = Query(None, alias="userId"),
    challenge_id: Optional[str] = Query(None, alias="challengeId"),
    store: AttemptStore = Depends(get_store),
):
    """A user's attempts, newest first."""
    return store.list_attempts(user_id=resolve_user(user_id), challenge_id=challenge_id)


@router.get("/attempts/{attempt_id}", response_model=Attempt)
async def get_attempt(attempt_id: str, store: AttemptStore = Depends(get_store)):
    attempt = store.get(attempt_id)
    if not attempt:
        raise HTTPException(
            status_code=404,
            detail={"error_code": "ATTEMPT_NOT_FOUND", "message": f"Attempt '{attempt_id}' not found"},
        )
    return attempt


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    user_id: Optional[str] = Query(None, alias="userId"),
    registry: ChallengeRegistry = Depends(get_ready_registry),
    store: AttemptStore = Depends(get_store),
):
    """Aggregated progress, earned achievements and the full catalog."""
    user_id = resolve_user(user_id)
    earned = store.earned_achievements(user_id)
    snapshot = build_progress(
        store.list_attempts(user_id=user_id),
        {c.id: c for c in registry.get_all()},
        earned,
    )
    return ProgressResponse(
        user_id=user_id,
        completed_challenge_ids=sorted(snapshot.completed_challenge_ids),
        best_scores=snapshot.best_scores,
        total_points=snapshot.total_points,
        average_score=snapshot.average_score,
        categories=sorted(snapshot.categories),
        current_streak=snapshot.current_streak,
        par_time_beaten=snapshot.par_time_beaten,
        attempt_count=snapshot.attempt_count,
        earned_achievements=earned,
        achievements=ACHIEVEMENTS,
    )


@router.get("/leaderboard", response_model=Leaderboard)
async def get_leaderboard(
    limit: int = Query(50, ge=1, le=500),
    store: AttemptStore = Depends(get_store),
):
    """Users ranked by total points; ties share a rank."""
    rows = build_leaderboard(store.list_attempts())
    return Leaderboard(
        entries=[LeaderboardEntry(**vars(row)) for row in rows[:limit]],
        total_users=len(rows),
        generated_at=datetime.now(timezone.utc),
    )
