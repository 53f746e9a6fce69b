"""Judge output, scoring result and attempt models."""

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat
from pydantic.alias_generators import to_camel

from ..challenges.schema import QualityLevel

Number = Union[int, float]

# json.loads accepts NaN and Infinity; the judge may not
JudgeNumber = Union[int, FiniteFloat]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Raw judge output ============

class DimensionVerdict(CamelModel):
    score: JudgeNumber = 0
    feedback: str = ""


class OverallFeedback(CamelModel):
    what_you_did_well: str
    primary_improvement: str
    secondary_improvement: Optional[str] = None


class JudgeOutput(CamelModel):
    """What the judge is asked to return. Unknown keys are ignored."""

    total_score: JudgeNumber
    dimensions: Dict[str, DimensionVerdict] = Field(default_factory=dict)
    overall_feedback: OverallFeedback
    prompt_quality_level: Optional[QualityLevel] = None


# ============ Reconciled result ============

class DimensionScore(CamelModel):
    score: Number
    max_score: int
    feedback: str


class ScoreResult(CamelModel):
    """
    Result of one scoring invocation.

    `dimensions` holds exactly the challenge's configured dimensions, in
    the challenge's order. `prompt_quality_level` is derived from
    `final_score` and the challenge thresholds; the judge's own label is
    kept as `judge_quality_level`.
    """

    challenge_id: str
    total_score: Number
    max_score: int
    percentage: int
    dimensions: Dict[str, DimensionScore]
    overall_feedback: OverallFeedback
    prompt_quality_level: QualityLevel
    judge_quality_level: Optional[QualityLevel] = None
    time_bonus: int = 0
    final_score: Number
    elapsed_seconds: Optional[float] = None


# ============ Attempt log ============

class Attempt(CamelModel):
    """One recorded submission. Created once per scored prompt, never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    challenge_id: str
    prompt: str
    total_score: Number
    max_score: int
    final_score: Number
    time_bonus: int = 0
    elapsed_seconds: Optional[float] = None
    quality_level: QualityLevel
    dimensions: Dict[str, DimensionScore]
    overall_feedback: OverallFeedback
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, result: ScoreResult, prompt: str, user_id: str) -> "Attempt":
        return cls(
            user_id=user_id,
            challenge_id=result.challenge_id,
            prompt=prompt,
            total_score=result.total_score,
            max_score=result.max_score,
            final_score=result.final_score,
            time_bonus=result.time_bonus,
            elapsed_seconds=result.elapsed_seconds,
            quality_level=result.prompt_quality_level,
            dimensions=result.dimensions,
            overall_feedback=result.overall_feedback,
        )
