"""Shared fixtures: challenge documents, fake judges and isolated registries."""

import copy
import json
import os

# Keep the module-level engine off the real data directory
os.environ.setdefault("PROMPTGOLF_DATABASE_URL", "sqlite://")

import pytest
import yaml

from promptgolf.challenges import ChallengeLoader, ChallengeRegistry, validate_challenge


BASE_CHALLENGE = {
    "id": "meeting-summary",
    "version": "1.0.0",
    "metadata": {
        "title": "Summarize the Standup",
        "shortDescription": "Turn a transcript into a crisp summary.",
        "category": "summarization",
        "difficulty": 1,
        "estimatedMinutes": 5,
        "tags": ["summaries", "meetings"],
        "createdAt": "2025-01-15",
        "updatedAt": "2025-02-01",
    },
    "content": {
        "scenario": {
            "headline": "Your manager missed the standup.",
            "context": "You have a 20 minute transcript.",
            "constraints": ["Fit on one phone screen"],
            "persona": "Engineering manager",
        },
        "successCriteria": {
            "idealOutcome": "A short, structured summary.",
            "mustInclude": ["Audience"],
            "mustAvoid": ["Verbatim rewrite"],
        },
        "educational": {
            "skillsTaught": ["audience awareness"],
            "badExample": {"prompt": "Summarize this.", "score": 20, "explanation": "Too vague."},
            "goodExample": {"prompt": "Summarize for my manager.", "score": 80, "explanation": "Clear."},
        },
    },
    "scoring": {
        "maxScore": 100,
        "timeBonus": {"enabled": True, "maxBonusPercent": 20, "parTimeSeconds": 60},
        "dimensions": [
            {
                "id": "clarity",
                "name": "Clarity",
                "description": "Is the prompt clear?",
                "weight": 40,
                "maxPoints": 40,
                "rubric": {"excellent": "Crystal", "good": "Mostly", "fair": "Somewhat", "poor": "Murky"},
            },
            {
                "id": "structure",
                "name": "Structure",
                "description": "Is an output format given?",
                "weight": 30,
                "maxPoints": 30,
                "rubric": {"excellent": "Sections", "good": "Some", "fair": "Bullets", "poor": "None"},
            },
            {
                "id": "constraints",
                "name": "Constraints",
                "description": "Are limits set?",
                "weight": 30,
                "maxPoints": 30,
                "rubric": {"excellent": "Tight", "good": "Some", "fair": "Vague", "poor": "None"},
            },
        ],
        "judge": {"model": "claude-sonnet-4-20250514", "temperature": 0.2},
        "thresholds": {"excellent": 85, "good": 65, "passing": 45},
    },
    "progression": {"retries": {"unlimited": True}},
}


def make_challenge_data(challenge_id="meeting-summary", **overrides):
    """
    A valid challenge document as a plain dict.

    Overrides are dotted camelCase paths, e.g. {"metadata.difficulty": 3}.
    """
    data = copy.deepcopy(BASE_CHALLENGE)
    data["id"] = challenge_id
    for path, value in overrides.items():
        target = data
        *parents, leaf = path.split(".")
        for key in parents:
            target = target.setdefault(key, {})
        target[leaf] = value
    return data


def make_challenge(challenge_id="meeting-summary", **overrides):
    return validate_challenge(make_challenge_data(challenge_id, **overrides))


def write_challenge(directory, data, filename=None):
    path = directory / (filename or f"{data['id']}.yaml")
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def judge_response(total=80, dimensions=None, level="good"):
    """A judge result object as the judge would emit it."""
    if dimensions is None:
        dimensions = {
            "clarity": {"score": 32, "feedback": "Clear ask."},
            "structure": {"score": 24, "feedback": "Good sections."},
            "constraints": {"score": 24, "feedback": "Add a word limit."},
        }
    return {
        "totalScore": total,
        "dimensions": dimensions,
        "overallFeedback": {
            "whatYouDidWell": "You named the audience.",
            "primaryImprovement": "Set a length limit.",
        },
        "promptQualityLevel": level,
    }


class FakeJudge:
    """JudgeClient that yields scripted fragments and records its calls."""

    def __init__(self, fragments=None, error=None):
        if fragments is None:
            text = json.dumps(judge_response())
            fragments = [text[i:i + 16] for i in range(0, len(text), 16)]
        self.fragments = list(fragments)
        self.error = error
        self.calls = []

    async def stream(self, system, prompt, model, temperature):
        self.calls.append({"system": system, "prompt": prompt, "model": model, "temperature": temperature})
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error


@pytest.fixture
def challenge():
    return make_challenge()


@pytest.fixture
def challenges_dir(tmp_path):
    directory = tmp_path / "challenges"
    directory.mkdir()
    return directory


@pytest.fixture
def loader():
    return ChallengeLoader()


@pytest.fixture
def registry(challenges_dir, loader):
    return ChallengeRegistry(challenges_dir, loader)
