"""Challenge API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..achievements import best_scores
from ..challenges import ChallengeRegistry
from ..db import AttemptStore
from .deps import get_ready_registry, get_store, resolve_user
from .schemas import ChallengeDetail, ChallengeList, ChallengeSummary

router = APIRouter(prefix="/challenges", tags=["challenges"])


def _split_tags(tags: Optional[str]):
    if not tags:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()] or None


@router.get("", response_model=ChallengeList)
async def list_challenges(
    category: Optional[str] = None,
    difficulty: Optional[int] = Query(None, ge=1, le=5),
    tags: Optional[str] = Query(None, description="Comma-separated; matches any"),
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    registry: ChallengeRegistry = Depends(get_ready_registry),
):
    """List challenges, sorted by difficulty."""
    challenges = registry.get_all(
        category=category,
        difficulty=difficulty,
        tags=_split_tags(tags),
        tenant_id=tenant_id,
    )
    summaries = [ChallengeSummary.from_config(c) for c in challenges]
    return ChallengeList(
        challenges=summaries,
        total=len(summaries),
        categories=registry.get_categories(),
    )


@router.get("/featured", response_model=List[ChallengeSummary])
async def list_featured(registry: ChallengeRegistry = Depends(get_ready_registry)):
    return [ChallengeSummary.from_config(c) for c in registry.get_featured()]


@router.get("/next", response_model=List[ChallengeSummary])
async def list_next(
    user_id: Optional[str] = Query(None, alias="userId"),
    registry: ChallengeRegistry = Depends(get_ready_registry),
    store: AttemptStore = Depends(get_store),
):
    """Challenges the user has unlocked but not yet completed."""
    scores = best_scores(store.list_attempts(user_id=resolve_user(user_id)))
    challenges = registry.get_next_challenges(scores.keys(), scores)
    return [ChallengeSummary.from_config(c) for c in challenges]


@router.get("/{challenge_id}", response_model=ChallengeDetail)
async def get_challenge(
    challenge_id: str,
    registry: ChallengeRegistry = Depends(get_ready_registry),
):
    """Full challenge definition, including rubrics."""
    return ChallengeDetail(challenge=registry.require(challenge_id))
