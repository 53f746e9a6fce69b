"""
Achievement evaluation.

Pure functions over a progress snapshot. "Earned" is never stored on the
catalog; callers persist the ids returned here and pass them back in the
next snapshot, which makes evaluation idempotent.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..challenges.schema import Category
from .catalog import ACHIEVEMENTS, AchievementConfig

DEFAULT_MAX_SCORE = 100
ALL_CATEGORIES = frozenset(c.value for c in Category)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Aggregated progress for one user."""
    completed_challenge_ids: FrozenSet[str] = frozenset()
    best_scores: Dict[str, float] = field(default_factory=dict)
    best_totals: Dict[str, float] = field(default_factory=dict)  # judge total, without time bonus
    total_points: float = 0
    categories: FrozenSet[str] = frozenset()
    category_counts: Dict[str, int] = field(default_factory=dict)
    earned_achievement_ids: FrozenSet[str] = frozenset()
    par_time_beaten: bool = False
    current_streak: int = 0
    max_scores: Dict[str, int] = field(default_factory=dict)  # challenge_id -> maxScore
    available_categories: FrozenSet[str] = frozenset()
    attempt_count: int = 0

    @property
    def average_score(self) -> int:
        if not self.completed_challenge_ids:
            return 0
        return round(self.total_points / len(self.completed_challenge_ids))

    def with_earned(self, achievement_ids: Sequence[str]) -> "ProgressSnapshot":
        """Copy of this snapshot with more achievements marked earned."""
        return replace(self, earned_achievement_ids=self.earned_achievement_ids | frozenset(achievement_ids))


def _best(snapshot: ProgressSnapshot, challenge_id: Optional[str]) -> List[float]:
    if challenge_id:
        return [snapshot.best_scores.get(challenge_id, 0)]
    return list(snapshot.best_scores.values())


def criteria_met(achievement: AchievementConfig, snapshot: ProgressSnapshot) -> bool:
    criteria = achievement.criteria
    kind = criteria.type

    if kind == "first_challenge":
        return len(snapshot.completed_challenge_ids) >= 1

    if kind == "challenge_score":
        return any(score >= criteria.threshold for score in _best(snapshot, criteria.challenge_id))

    if kind == "total_challenges":
        return len(snapshot.completed_challenge_ids) >= criteria.count

    if kind == "total_points":
        return snapshot.total_points >= criteria.points

    if kind == "perfect_score":
        ids = [criteria.challenge_id] if criteria.challenge_id else list(snapshot.best_totals)
        return any(
            snapshot.best_totals.get(cid, 0) >= snapshot.max_scores.get(cid, DEFAULT_MAX_SCORE)
            for cid in ids
        )

    if kind == "speed_run":
        return snapshot.par_time_beaten

    if kind == "category_mastery":
        if criteria.category == "any":
            return len(snapshot.categories) >= criteria.count
        return snapshot.category_counts.get(criteria.category, 0) >= criteria.count

    if kind == "all_categories":
        required = snapshot.available_categories or ALL_CATEGORIES
        return required <= snapshot.categories

    if kind == "streak":
        return snapshot.current_streak >= criteria.days

    return False


def evaluate(
    snapshot: ProgressSnapshot,
    catalog: Sequence[AchievementConfig] = ACHIEVEMENTS,
) -> List[str]:
    """Ids of achievements newly earned by this snapshot, in catalog order."""
    return [
        achievement.id
        for achievement in catalog
        if achievement.id not in snapshot.earned_achievement_ids and criteria_met(achievement, snapshot)
    ]
