"""
Challenge registry.

Process-wide index over the loaded challenges. The index is an immutable
snapshot: initialize() and reload() build a new one off to the side and
swap the visible reference when it is complete, so readers never see a
half-populated registry. Concurrent builds collapse into a single
in-flight directory scan.
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import CHALLENGES_DIR
from ..errors import NotFoundError
from .loader import ChallengeLoader, challenge_loader
from .schema import ChallengeConfig

logger = logging.getLogger(__name__)

LEVELS = {
    "warm-up": 1,
    "beginner": 2,
    "intermediate": 3,
    "advanced": 4,
    "expert": 5,
}


class _Index:
    """Read-only snapshot of the loaded challenges."""

    __slots__ = ("by_id", "ordered")

    def __init__(self, challenges: Iterable[ChallengeConfig]):
        by_id: Dict[str, ChallengeConfig] = {}
        for challenge in challenges:
            by_id.setdefault(challenge.id, challenge)
        self.by_id = by_id
        self.ordered: Tuple[ChallengeConfig, ...] = tuple(by_id.values())


def _by_difficulty(challenges: Iterable[ChallengeConfig]) -> List[ChallengeConfig]:
    # sorted() is stable, ties keep load order
    return sorted(challenges, key=lambda c: c.metadata.difficulty)


class ChallengeRegistry:
    """In-memory index of challenges loaded from a directory."""

    def __init__(
        self,
        source_dir: Union[str, Path] = CHALLENGES_DIR,
        loader: Optional[ChallengeLoader] = None,
    ):
        self._source_dir = Path(source_dir)
        self._loader = loader or ChallengeLoader()
        self._index: Optional[_Index] = None
        self._pending: Optional[asyncio.Future] = None

    # ============ Lifecycle ============

    @property
    def is_initialized(self) -> bool:
        return self._index is not None

    async def initialize(self) -> None:
        """Load challenges once. Re-entry after a successful load is a no-op."""
        if self._index is not None:
            return
        await self._build(clear_cache=False)

    async def reload(self) -> None:
        """
        Re-scan the source directory and atomically replace the index.

        If the rebuild fails, the previous index stays visible.
        """
        await self._build(clear_cache=True)

    async def _build(self, clear_cache: bool) -> None:
        pending = self._pending
        if pending is None:
            if clear_cache:
                self._loader.clear_cache()
            pending = self._pending = asyncio.ensure_future(self._load())
        try:
            await asyncio.shield(pending)
        finally:
            if self._pending is pending and pending.done():
                self._pending = None

    async def _load(self) -> None:
        challenges = await asyncio.to_thread(self._loader.load_directory, self._source_dir)
        index = _Index(challenges)
        self._index = index
        logger.info("Loaded %d challenges from %s", len(index.ordered), self._source_dir)

    def _snapshot(self) -> _Index:
        index = self._index
        if index is None:
            raise RuntimeError("ChallengeRegistry used before initialize()")
        return index

    # ============ Queries ============

    @property
    def size(self) -> int:
        return len(self._snapshot().ordered)

    def get(self, challenge_id: str) -> Optional[ChallengeConfig]:
        return self._snapshot().by_id.get(challenge_id)

    def require(self, challenge_id: str) -> ChallengeConfig:
        """Get a challenge or raise NotFoundError."""
        challenge = self.get(challenge_id)
        if challenge is None:
            raise NotFoundError(f"Challenge '{challenge_id}' not found")
        return challenge

    def get_all(
        self,
        category: Optional[str] = None,
        difficulty: Optional[int] = None,
        tags: Optional[Sequence[str]] = None,
        tenant_id: Optional[str] = None,
    ) -> List[ChallengeConfig]:
        """
        Get challenges matching every given filter, sorted by difficulty.

        `tags` matches when a challenge carries ANY of the requested tags.
        `tenant_id` passes challenges with no tenant allow-list or with the
        tenant on it.
        """
        challenges: Iterable[ChallengeConfig] = self._snapshot().ordered

        if category:
            challenges = [c for c in challenges if c.metadata.category == category]
        if difficulty is not None:
            challenges = [c for c in challenges if c.metadata.difficulty == difficulty]
        if tags:
            wanted = set(tags)
            challenges = [c for c in challenges if wanted.intersection(c.metadata.tags)]
        if tenant_id:
            challenges = [c for c in challenges if c.allows_tenant(tenant_id)]

        return _by_difficulty(challenges)

    def get_by_level(self, level: str) -> List[ChallengeConfig]:
        if level not in LEVELS:
            raise ValueError(f"Unknown level '{level}', expected one of {', '.join(LEVELS)}")
        return self.get_all(difficulty=LEVELS[level])

    def get_featured(self) -> List[ChallengeConfig]:
        return [c for c in self._snapshot().ordered if c.is_featured]

    def get_categories(self) -> List[str]:
        return sorted({c.metadata.category for c in self._snapshot().ordered})

    def get_next_challenges(
        self,
        completed_ids: Iterable[str],
        scores: Mapping[str, float],
    ) -> List[ChallengeConfig]:
        """
        Get uncompleted challenges whose prerequisites are all met.

        A prerequisite is met when it is completed AND its recorded score
        reaches the dependent challenge's unlockScore (default 0).
        """
        completed = set(completed_ids)
        eligible = []
        for challenge in self._snapshot().ordered:
            if challenge.id in completed:
                continue
            progression = challenge.progression
            required = progression.unlock_score or 0
            prerequisites = progression.prerequisites or ()
            if all(p in completed and scores.get(p, 0) >= required for p in prerequisites):
                eligible.append(challenge)
        return _by_difficulty(eligible)


challenge_registry = ChallengeRegistry(CHALLENGES_DIR, challenge_loader)
