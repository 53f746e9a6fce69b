"""Tests for the attempt stores."""

from datetime import datetime, timedelta, timezone

import pytest

from promptgolf.db import MemoryAttemptStore, SqlAttemptStore, make_engine, make_session_factory
from promptgolf.scoring.models import Attempt, DimensionScore, OverallFeedback

START = datetime(2025, 3, 10, 9, tzinfo=timezone.utc)


def attempt(challenge_id="intro", user_id="ada", minutes=0, final_score=80):
    return Attempt(
        user_id=user_id,
        challenge_id=challenge_id,
        prompt="Summarize for my manager.",
        total_score=final_score,
        max_score=100,
        final_score=final_score,
        elapsed_seconds=42.5,
        quality_level="good",
        dimensions={"clarity": DimensionScore(score=32, max_score=40, feedback="Clear.")},
        overall_feedback=OverallFeedback(what_you_did_well="Audience.", primary_improvement="Length."),
        created_at=START + timedelta(minutes=minutes),
    )


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryAttemptStore()
    return SqlAttemptStore(make_session_factory(make_engine("sqlite://")))


class TestAttemptStore:
    """Both backends honor the same interface."""

    def test_append_and_get(self, store):
        recorded = store.append(attempt())
        fetched = store.get(recorded.id)
        assert fetched.model_dump() == recorded.model_dump()
        assert fetched.created_at.tzinfo is not None
        assert fetched.dimensions["clarity"].feedback == "Clear."

    def test_get_missing(self, store):
        assert store.get("no-such-id") is None

    def test_list_newest_first(self, store):
        first = store.append(attempt(minutes=0))
        second = store.append(attempt(minutes=5))
        assert [a.id for a in store.list_attempts()] == [second.id, first.id]

    def test_list_filters(self, store):
        store.append(attempt("intro", "ada"))
        store.append(attempt("email", "ada", minutes=1))
        store.append(attempt("intro", "bob", minutes=2))
        assert len(store.list_attempts(user_id="ada")) == 2
        assert [a.user_id for a in store.list_attempts(challenge_id="intro")] == ["bob", "ada"]
        assert len(store.list_attempts(user_id="ada", challenge_id="intro")) == 1

    def test_ids_are_unique(self, store):
        assert attempt().id != attempt().id

    def test_earned_achievements(self, store):
        assert store.earned_achievements("ada") == []
        store.add_earned_achievements("ada", ["first-swing", "passing-grade"])
        store.add_earned_achievements("ada", ["first-swing", "three-peat"])
        assert sorted(store.earned_achievements("ada")) == ["first-swing", "passing-grade", "three-peat"]
        assert store.earned_achievements("bob") == []


class TestMemoryAttemptStore:

    def test_duplicate_append_rejected(self):
        store = MemoryAttemptStore()
        recorded = store.append(attempt())
        with pytest.raises(ValueError):
            store.append(recorded)
