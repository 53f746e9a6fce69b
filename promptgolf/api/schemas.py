"""Pydantic schemas for API."""

from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..achievements.catalog import AchievementConfig
from ..challenges.schema import (
    ChallengeConfig, ChallengeFlags, ChallengeMetadata, ProgressionConfig, Thresholds,
)
from ..config import PROMPT_MAX_LENGTH, PROMPT_MIN_LENGTH
from ..scoring.models import ScoreResult


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


USER_ID_FIELD = Field(None, min_length=1, max_length=64, pattern=r'^[a-zA-Z0-9_-]+$')


# Challenge schemas
class ChallengeSummary(ApiModel):
    """Listing view of a challenge, without rubric text or judge config."""
    id: str
    version: str
    metadata: ChallengeMetadata
    flags: Optional[ChallengeFlags] = None
    headline: str
    persona: Optional[str] = None
    max_score: int
    thresholds: Thresholds
    progression: ProgressionConfig
    available: bool

    @classmethod
    def from_config(cls, challenge: ChallengeConfig) -> "ChallengeSummary":
        return cls(
            id=challenge.id,
            version=challenge.version,
            metadata=challenge.metadata,
            flags=challenge.flags,
            headline=challenge.content.scenario.headline,
            persona=challenge.content.scenario.persona,
            max_score=challenge.scoring.max_score,
            thresholds=challenge.scoring.thresholds,
            progression=challenge.progression,
            available=challenge.is_open(),
        )


class ChallengeList(ApiModel):
    challenges: List[ChallengeSummary]
    total: int
    categories: List[str]


class ChallengeDetail(ApiModel):
    challenge: ChallengeConfig


# Scoring schemas
class ScoreRequest(ApiModel):
    challenge_id: str = Field(..., min_length=1, max_length=64)
    prompt: str = Field(..., min_length=PROMPT_MIN_LENGTH, max_length=PROMPT_MAX_LENGTH)
    elapsed_seconds: Optional[float] = Field(None, ge=0)
    user_id: Optional[str] = USER_ID_FIELD


class ScoreResponse(ScoreResult):
    attempt_id: str
    new_achievements: List[str] = []


# Attempt / progress schemas
class ProgressResponse(ApiModel):
    user_id: str
    completed_challenge_ids: List[str]
    best_scores: Dict[str, float]
    total_points: float
    average_score: int
    categories: List[str]
    current_streak: int
    par_time_beaten: bool
    attempt_count: int
    earned_achievements: List[str]
    achievements: List[AchievementConfig]


class LeaderboardEntry(ApiModel):
    rank: int
    user_id: str
    total_points: float
    challenges_completed: int
    average_score: int
    best_challenge: Optional[str] = None
    attempts: int


class Leaderboard(ApiModel):
    entries: List[LeaderboardEntry]
    total_users: int
    generated_at: datetime


# Admin schemas
class ValidateChallengeRequest(ApiModel):
    yaml_content: str = Field(..., min_length=1)


class ValidateChallengeResponse(ApiModel):
    valid: bool
    challenge: Dict[str, Any]
    message: Optional[str] = None


# Error schemas
class ErrorResponse(BaseModel):
    status: str = "error"
    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None
