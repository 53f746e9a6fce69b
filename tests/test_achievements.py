"""Tests for progress aggregation, achievement evaluation and the leaderboard."""

from datetime import date, datetime, timedelta, timezone

import pytest

from promptgolf.achievements import ACHIEVEMENTS, ProgressSnapshot, build_leaderboard, build_progress, evaluate
from promptgolf.achievements.catalog import get_achievement
from promptgolf.achievements.evaluator import criteria_met
from promptgolf.achievements.progress import current_streak
from promptgolf.scoring.models import Attempt, OverallFeedback

from conftest import make_challenge

TODAY = date(2025, 3, 10)
FEEDBACK = OverallFeedback(what_you_did_well="Clear.", primary_improvement="Shorter.")


def attempt(challenge_id, final_score, user_id="ada", day=TODAY, time_bonus=0, max_score=100):
    return Attempt(
        user_id=user_id,
        challenge_id=challenge_id,
        prompt="A prompt",
        total_score=final_score - time_bonus,
        max_score=max_score,
        final_score=final_score,
        time_bonus=time_bonus,
        quality_level="good",
        dimensions={},
        overall_feedback=FEEDBACK,
        created_at=datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc),
    )


@pytest.fixture
def challenges():
    return {
        "intro": make_challenge("intro"),
        "email": make_challenge("email", **{"metadata.category": "communication"}),
        "analysis": make_challenge("analysis", **{"metadata.category": "analysis"}),
    }


class TestCatalog:

    def test_ids_unique(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids)) == 19

    def test_lookup(self):
        assert get_achievement("first-swing").rarity == "common"
        assert get_achievement("nope") is None


class TestBuildProgress:
    """Aggregating the attempt log."""

    def test_empty(self, challenges):
        snapshot = build_progress([], challenges, today=TODAY)
        assert snapshot.completed_challenge_ids == frozenset()
        assert snapshot.total_points == 0
        assert snapshot.average_score == 0
        assert snapshot.current_streak == 0

    def test_best_score_per_challenge(self, challenges):
        attempts = [attempt("intro", 40), attempt("intro", 70), attempt("email", 50)]
        snapshot = build_progress(attempts, challenges, today=TODAY)
        assert snapshot.best_scores == {"intro": 70, "email": 50}
        assert snapshot.total_points == 120
        assert snapshot.average_score == 60
        assert snapshot.categories == {"summarization", "communication"}
        assert snapshot.attempt_count == 3

    def test_par_time_beaten(self, challenges):
        assert not build_progress([attempt("intro", 50)], challenges, today=TODAY).par_time_beaten
        assert build_progress([attempt("intro", 55, time_bonus=5)], challenges, today=TODAY).par_time_beaten

    def test_unknown_challenges_still_count(self, challenges):
        snapshot = build_progress([attempt("retired", 90)], challenges, today=TODAY)
        assert snapshot.total_points == 90
        assert snapshot.categories == frozenset()


class TestStreak:
    """Consecutive UTC days with activity."""

    def test_streak_through_today(self):
        days = {TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2)}
        assert current_streak(days, TODAY) == 3

    def test_streak_ending_yesterday_counts(self):
        days = {TODAY - timedelta(days=1), TODAY - timedelta(days=2)}
        assert current_streak(days, TODAY) == 2

    def test_gap_breaks_streak(self):
        days = {TODAY, TODAY - timedelta(days=2)}
        assert current_streak(days, TODAY) == 1

    def test_stale_streak(self):
        assert current_streak({TODAY - timedelta(days=2)}, TODAY) == 0

    def test_from_attempts(self, challenges):
        attempts = [attempt("intro", 50, day=TODAY - timedelta(days=i)) for i in range(3)]
        assert build_progress(attempts, challenges, today=TODAY).current_streak == 3


class TestEvaluate:
    """Achievement predicates and idempotence."""

    def test_first_attempt(self, challenges):
        snapshot = build_progress([attempt("intro", 50)], challenges, today=TODAY)
        assert evaluate(snapshot) == ["first-swing", "passing-grade"]

    def test_idempotent(self, challenges):
        """Already-earned achievements are never returned again."""
        snapshot = build_progress([attempt("intro", 50)], challenges, today=TODAY)
        earned = evaluate(snapshot)
        assert evaluate(snapshot.with_earned(earned)) == []

    def test_catalog_order(self, challenges):
        attempts = [attempt("intro", 96), attempt("email", 90), attempt("analysis", 88, time_bonus=8)]
        earned = evaluate(build_progress(attempts, challenges, today=TODAY))
        catalog_ids = [a.id for a in ACHIEVEMENTS]
        assert earned == sorted(earned, key=catalog_ids.index)
        for expected in ("three-peat", "speed-demon", "excellent-craft", "versatile", "perfect-prompt", "renaissance"):
            assert expected in earned

    def test_perfect_score_uses_challenge_max(self):
        flawless = get_achievement("flawless")
        small = ProgressSnapshot(
            completed_challenge_ids=frozenset({"tiny"}),
            best_totals={"tiny": 50},
            max_scores={"tiny": 50},
        )
        assert criteria_met(flawless, small)
        assert not criteria_met(flawless, ProgressSnapshot(
            completed_challenge_ids=frozenset({"tiny"}),
            best_totals={"tiny": 50},
        ))

    def test_time_bonus_does_not_make_perfect(self, challenges):
        """A 92 lifted to 100 by the time bonus is not a perfect judge score."""
        flawless = get_achievement("flawless")
        boosted = build_progress([attempt("intro", 100, time_bonus=8)], challenges, today=TODAY)
        assert boosted.best_scores == {"intro": 100}
        assert boosted.best_totals == {"intro": 92}
        assert not criteria_met(flawless, boosted)

        perfect = build_progress([attempt("intro", 100)], challenges, today=TODAY)
        assert criteria_met(flawless, perfect)

    def test_all_categories_against_registry(self, challenges):
        renaissance = get_achievement("renaissance")
        two = build_progress([attempt("intro", 50), attempt("email", 50)], challenges, today=TODAY)
        assert not criteria_met(renaissance, two)
        three = build_progress(
            [attempt("intro", 50), attempt("email", 50), attempt("analysis", 50)], challenges, today=TODAY,
        )
        assert criteria_met(renaissance, three)

    def test_all_categories_without_registry(self):
        renaissance = get_achievement("renaissance")
        assert not criteria_met(renaissance, ProgressSnapshot(categories=frozenset({"analysis"})))

    def test_streak_achievements(self, challenges):
        attempts = [attempt("intro", 30, day=TODAY - timedelta(days=i)) for i in range(7)]
        earned = evaluate(build_progress(attempts, challenges, today=TODAY))
        assert "on-a-roll" in earned
        assert "week-warrior" in earned

    def test_total_points(self):
        collector = get_achievement("point-collector")
        assert criteria_met(collector, ProgressSnapshot(total_points=300))
        assert not criteria_met(collector, ProgressSnapshot(total_points=299.5))


class TestLeaderboard:
    """Ranking users by summed best scores."""

    def test_ranking_with_ties(self):
        attempts = [
            attempt("intro", 80, user_id="ada"),
            attempt("intro", 90, user_id="ada"),
            attempt("email", 60, user_id="ada"),
            attempt("intro", 150, user_id="bob"),
            attempt("intro", 150, user_id="cy"),
            attempt("intro", 40, user_id="dee"),
        ]
        rows = build_leaderboard(attempts)
        assert [(r.user_id, r.rank, r.total_points) for r in rows] == [
            ("ada", 1, 150),
            ("bob", 1, 150),
            ("cy", 1, 150),
            ("dee", 4, 40),
        ]
        by_user = {r.user_id: r for r in rows}
        assert by_user["ada"].rank == by_user["bob"].rank == by_user["cy"].rank == 1
        assert by_user["dee"].rank == 4
        assert by_user["ada"].challenges_completed == 2
        assert by_user["ada"].average_score == 75
        assert by_user["ada"].best_challenge == "intro"
        assert by_user["ada"].attempts == 3

    def test_limit(self):
        attempts = [attempt("intro", score, user_id=f"user-{score}") for score in (10, 20, 30)]
        rows = build_leaderboard(attempts, limit=2)
        assert [r.user_id for r in rows] == ["user-30", "user-20"]
