"""Aggregate the attempt log into progress snapshots and leaderboards."""

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..challenges.schema import ChallengeConfig
from ..scoring.models import Attempt
from .evaluator import ProgressSnapshot


def best_scores(attempts: Iterable[Attempt], attr: str = "final_score") -> Dict[str, float]:
    """Best final score per challenge, or best of another score attribute."""
    scores: Dict[str, float] = {}
    for attempt in attempts:
        value = getattr(attempt, attr)
        if attempt.challenge_id not in scores or value > scores[attempt.challenge_id]:
            scores[attempt.challenge_id] = value
    return scores


def current_streak(days: Set[date], today: date) -> int:
    """
    Consecutive days with activity, ending at the most recent active day.

    The streak is broken (0) once a full day passes with no activity.
    """
    if not days:
        return 0
    latest = max(days)
    if (today - latest).days > 1:
        return 0
    streak = 0
    day = latest
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def _utc_day(moment: datetime) -> date:
    # SQLite hands back naive datetimes, which are stored as UTC
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def _beat_par(attempt: Attempt, challenge: Optional[ChallengeConfig]) -> bool:
    if attempt.time_bonus > 0:
        return True
    if challenge is None or attempt.elapsed_seconds is None:
        return False
    bonus = challenge.scoring.time_bonus
    return bool(bonus and bonus.enabled and attempt.elapsed_seconds < bonus.par_time_seconds)


def build_progress(
    attempts: Iterable[Attempt],
    challenges: Mapping[str, ChallengeConfig],
    earned_achievement_ids: Iterable[str] = (),
    today: Optional[date] = None,
) -> ProgressSnapshot:
    """
    Build a user's ProgressSnapshot from their attempts.

    `challenges` supplies categories and max scores; attempts for challenges
    no longer in it still count toward points and completions.
    """
    attempts = list(attempts)
    today = today or datetime.now(timezone.utc).date()

    bests = best_scores(attempts)
    category_counts: Counter = Counter()
    for challenge_id in bests:
        challenge = challenges.get(challenge_id)
        if challenge is not None:
            category_counts[challenge.metadata.category] += 1

    days = {_utc_day(a.created_at) for a in attempts}

    return ProgressSnapshot(
        completed_challenge_ids=frozenset(bests),
        best_scores=bests,
        best_totals=best_scores(attempts, "total_score"),
        total_points=sum(bests.values()),
        categories=frozenset(category_counts),
        category_counts=dict(category_counts),
        earned_achievement_ids=frozenset(earned_achievement_ids),
        par_time_beaten=any(_beat_par(a, challenges.get(a.challenge_id)) for a in attempts),
        current_streak=current_streak(days, today),
        max_scores={cid: c.scoring.max_score for cid, c in challenges.items()},
        available_categories=frozenset(c.metadata.category for c in challenges.values()),
        attempt_count=len(attempts),
    )


@dataclass
class LeaderboardRow:
    rank: int
    user_id: str
    total_points: float
    challenges_completed: int
    average_score: int
    best_challenge: Optional[str]
    attempts: int


def build_leaderboard(attempts: Iterable[Attempt], limit: Optional[int] = None) -> List[LeaderboardRow]:
    """
    Rank users by total points (best final score per challenge, summed).

    Users with equal points share a rank.
    """
    by_user: Dict[str, List[Attempt]] = defaultdict(list)
    for attempt in attempts:
        by_user[attempt.user_id].append(attempt)

    rows = []
    for user_id, user_attempts in by_user.items():
        bests = best_scores(user_attempts)
        total = sum(bests.values())
        best_challenge = max(bests, key=bests.get) if bests else None
        rows.append(LeaderboardRow(
            rank=0,
            user_id=user_id,
            total_points=total,
            challenges_completed=len(bests),
            average_score=round(total / len(bests)) if bests else 0,
            best_challenge=best_challenge,
            attempts=len(user_attempts),
        ))

    rows.sort(key=lambda r: (-r.total_points, r.user_id))

    current_rank = 1
    prev_points = None
    for i, row in enumerate(rows):
        if prev_points is not None and row.total_points < prev_points:
            current_rank = i + 1
        row.rank = current_rank
        prev_points = row.total_points

    return rows[:limit] if limit else rows
