"""Scoring API - judge a prompt, record the attempt, award achievements."""

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends

from ..achievements import build_progress, evaluate
from ..challenges import ChallengeConfig, ChallengeRegistry
from ..db import AttemptStore
from ..errors import PromptGolfError, RetryLimitError
from ..scoring import Attempt, ScoringService
from .deps import get_ready_registry, get_scoring_service, get_store, resolve_user
from .schemas import ScoreRequest, ScoreResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scoring"])


# ============ Helper Functions ============

class AttemptSlots:
    """
    Per-(user, challenge) locks serializing retry check, judging and append.

    A lock is dropped once no request holds or waits on it.
    """

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._holders: Dict[Tuple[str, str], int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str, challenge_id: str):
        key = (user_id, challenge_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]


attempt_slots = AttemptSlots()


def check_retry_policy(challenge: ChallengeConfig, attempts: List[Attempt], now: datetime) -> None:
    """
    Enforce the challenge's retry policy against the user's previous attempts.

    `attempts` are this user's attempts on this challenge, newest first.
    The cooldown applies even when attempts are unlimited.
    """
    retries = challenge.progression.retries

    if not retries.unlimited and retries.max_attempts is not None:
        if len(attempts) >= retries.max_attempts:
            raise RetryLimitError(
                f"No attempts left. Max {retries.max_attempts} attempts for this challenge.",
            )

    if retries.cooldown_seconds and attempts:
        since_last = (now - attempts[0].created_at).total_seconds()
        if since_last < retries.cooldown_seconds:
            wait = math.ceil(retries.cooldown_seconds - since_last)
            raise RetryLimitError(
                f"Cooldown active. Try again in {wait} seconds.",
                retry_after_seconds=wait,
            )


def award_achievements(
    store: AttemptStore,
    registry: ChallengeRegistry,
    user_id: str,
) -> List[str]:
    """Evaluate the catalog against the user's log and persist new awards."""
    challenges = {c.id: c for c in registry.get_all()}
    snapshot = build_progress(
        store.list_attempts(user_id=user_id),
        challenges,
        store.earned_achievements(user_id),
    )
    new_ids = evaluate(snapshot)
    if new_ids:
        store.add_earned_achievements(user_id, new_ids)
        logger.info("User %s earned %s", user_id, ", ".join(new_ids))
    return new_ids


# ============ Endpoints ============

@router.post("/score", response_model=ScoreResponse)
async def score_prompt(
    request: ScoreRequest,
    registry: ChallengeRegistry = Depends(get_ready_registry),
    service: ScoringService = Depends(get_scoring_service),
    store: AttemptStore = Depends(get_store),
):
    """
    Score a prompt against a challenge.

    The attempt is recorded only once a complete result exists; a failed
    judge call leaves the log untouched. Error responses echo the prompt
    in `details` so the client can show the failure next to it.
    """
    user_id = resolve_user(request.user_id)
    try:
        challenge = registry.require(request.challenge_id)
        async with attempt_slots.hold(user_id, challenge.id):
            check_retry_policy(
                challenge,
                store.list_attempts(user_id=user_id, challenge_id=challenge.id),
                datetime.now(timezone.utc),
            )
            result = await service.score(request.prompt, challenge, request.elapsed_seconds)
            attempt = store.append(Attempt.from_result(result, request.prompt, user_id))
    except PromptGolfError as e:
        e.details.setdefault("challengeId", request.challenge_id)
        e.details.setdefault("prompt", request.prompt)
        raise

    new_achievements = award_achievements(store, registry, user_id)

    return ScoreResponse(
        **result.model_dump(),
        attempt_id=attempt.id,
        new_achievements=new_achievements,
    )
