"""
Challenge configuration schema.

A challenge is a structured document (YAML on disk) validated into a frozen
ChallengeConfig. Keys are camelCase in documents and API payloads and
snake_case in Python. Structural validation is total: every violation is
reported, not just the first one. Scoring business rules (weights sum to
100, maxScore matches the dimension points) run only after the structure
is known to be sound.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import MaxScoreError, SchemaError, ScoringWeightError


SLUG_PATTERN = r"^[a-z0-9-]+$"
SEMVER_PATTERN = r"^\d+\.\d+\.\d+$"
REQUIRED_WEIGHT_TOTAL = 100

JudgeModel = Literal[
    "claude-sonnet-4-20250514",
    "claude-opus-4-20250514",
    "gpt-4o",
]

QualityLevel = Literal["excellent", "good", "fair", "poor"]


class Category(str, Enum):
    SUMMARIZATION = "summarization"
    COMMUNICATION = "communication"
    ANALYSIS = "analysis"
    DOCUMENTATION = "documentation"
    STRATEGY = "strategy"
    AUTOMATION = "automation"
    PLANNING = "planning"
    ROLEPLAY = "roleplay"
    META_PROMPTING = "meta-prompting"


class ConfigModel(BaseModel):
    """Immutable model read from camelCase documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )


def _isoformat(value: Any) -> Any:
    # YAML turns unquoted dates into date/datetime objects
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


IsoDate = Annotated[str, BeforeValidator(_isoformat)]


# ============ Metadata ============

class ChallengeMetadata(ConfigModel):
    title: str = Field(..., min_length=1, max_length=100)
    short_description: str = Field(..., min_length=1, max_length=200)
    category: Category
    difficulty: int = Field(..., ge=1, le=5)
    estimated_minutes: int = Field(..., ge=1, le=60)
    tags: Tuple[str, ...] = ()
    author: Optional[str] = None
    created_at: IsoDate
    updated_at: IsoDate


# ============ Content ============

class Scenario(ConfigModel):
    headline: str
    context: str
    constraints: Optional[Tuple[str, ...]] = None
    persona: Optional[str] = None


class SuccessCriteria(ConfigModel):
    ideal_outcome: str
    must_include: Optional[Tuple[str, ...]] = None
    must_avoid: Optional[Tuple[str, ...]] = None


class PromptExample(ConfigModel):
    prompt: str
    score: Optional[float] = None
    explanation: str


class Educational(ConfigModel):
    skills_taught: Tuple[str, ...]
    concept_explanation: Optional[str] = None
    bad_example: PromptExample
    good_example: PromptExample
    expert_example: Optional[PromptExample] = None


class SeedData(ConfigModel):
    type: Literal["text", "table", "json", "image-url"]
    content: str
    description: str


class ChallengeContent(ConfigModel):
    scenario: Scenario
    success_criteria: SuccessCriteria
    educational: Educational
    seed_data: Optional[SeedData] = None


# ============ Scoring ============

class TimeBonus(ConfigModel):
    enabled: bool
    max_bonus_percent: int = Field(..., ge=0, le=100)
    par_time_seconds: int = Field(..., gt=0)


class Rubric(ConfigModel):
    excellent: str
    good: str
    fair: str
    poor: str


class ScoringDimension(ConfigModel):
    id: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(..., min_length=1)
    description: str
    weight: int = Field(..., ge=0, le=100)
    max_points: int = Field(..., gt=0)
    rubric: Rubric


class JudgeConfig(ConfigModel):
    model: JudgeModel
    temperature: float = Field(..., ge=0, le=2)
    system_prompt_override: Optional[str] = Field(None, min_length=1)


class Thresholds(ConfigModel):
    excellent: int = Field(..., ge=0)
    good: int = Field(..., ge=0)
    passing: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_ascending(self) -> "Thresholds":
        if not self.passing <= self.good <= self.excellent:
            raise ValueError("thresholds must satisfy passing <= good <= excellent")
        return self


class ScoringConfig(ConfigModel):
    max_score: int = Field(..., gt=0)
    time_bonus: Optional[TimeBonus] = None
    dimensions: Tuple[ScoringDimension, ...] = Field(..., min_length=1)
    judge: JudgeConfig
    thresholds: Thresholds

    @model_validator(mode="after")
    def check_consistency(self) -> "ScoringConfig":
        ids = [dim.id for dim in self.dimensions]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate dimension ids: {', '.join(duplicates)}")
        if self.thresholds.excellent > self.max_score:
            raise ValueError(
                f"thresholds.excellent ({self.thresholds.excellent}) exceeds maxScore ({self.max_score})"
            )
        return self

    @property
    def total_weight(self) -> int:
        return sum(dim.weight for dim in self.dimensions)

    @property
    def total_points(self) -> int:
        return sum(dim.max_points for dim in self.dimensions)


# ============ Progression & flags ============

class RetryPolicy(ConfigModel):
    unlimited: bool
    max_attempts: Optional[int] = Field(None, ge=1)
    cooldown_seconds: Optional[int] = Field(None, ge=0)


class ProgressionConfig(ConfigModel):
    prerequisites: Optional[Tuple[str, ...]] = None
    unlock_score: Optional[int] = Field(None, ge=0)
    next_challenges: Optional[Tuple[str, ...]] = None
    retries: RetryPolicy


class ChallengeFlags(ConfigModel):
    is_active: bool = True
    is_featured: bool = False
    is_experimental: bool = False
    allowed_tenants: Optional[Tuple[str, ...]] = None
    start_date: Optional[IsoDate] = None
    end_date: Optional[IsoDate] = None

    @model_validator(mode="after")
    def check_window(self) -> "ChallengeFlags":
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if value is not None:
                try:
                    _parse_timestamp(value)
                except ValueError:
                    raise ValueError(f"{to_camel(name)} is not an ISO-8601 date: {value!r}") from None
        if self.start_date and self.end_date:
            if _parse_timestamp(self.start_date) > _parse_timestamp(self.end_date):
                raise ValueError("startDate is after endDate")
        return self

    def is_open(self, now: Optional[datetime] = None) -> bool:
        """Whether `now` falls inside the optional start/end window."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if self.start_date and now < _parse_timestamp(self.start_date):
            return False
        if self.end_date and now > _parse_timestamp(self.end_date):
            return False
        return True


# ============ Root ============

class ChallengeConfig(ConfigModel):
    """A complete, validated challenge definition."""

    id: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    version: str = Field(..., pattern=SEMVER_PATTERN)
    metadata: ChallengeMetadata
    content: ChallengeContent
    scoring: ScoringConfig
    progression: ProgressionConfig
    flags: Optional[ChallengeFlags] = None

    @property
    def dimension_ids(self) -> List[str]:
        return [dim.id for dim in self.scoring.dimensions]

    @property
    def is_active(self) -> bool:
        return self.flags is None or self.flags.is_active

    @property
    def is_featured(self) -> bool:
        return self.flags is not None and self.flags.is_featured

    def allows_tenant(self, tenant_id: str) -> bool:
        if self.flags is None or self.flags.allowed_tenants is None:
            return True
        return tenant_id in self.flags.allowed_tenants

    def is_open(self, now: Optional[datetime] = None) -> bool:
        return self.flags is None or self.flags.is_open(now)


def _violations(exc: PydanticValidationError) -> List[str]:
    violations = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "<root>"
        violations.append(f"{path}: {error['msg']}")
    return violations


def check_scoring_rules(config: ChallengeConfig) -> None:
    """
    Enforce the scoring business rules on a structurally valid challenge.

    Raises:
        ScoringWeightError: dimension weights do not sum to 100
        MaxScoreError: maxScore differs from the sum of dimension maxPoints
    """
    scoring = config.scoring
    total_weight = scoring.total_weight
    if total_weight != REQUIRED_WEIGHT_TOTAL:
        raise ScoringWeightError(
            "Scoring dimension weights must sum to 100",
            [f"scoring.dimensions: weights sum to {total_weight}"],
        )
    if scoring.total_points != scoring.max_score:
        raise MaxScoreError(
            "scoring.maxScore must equal the sum of dimension maxPoints",
            [f"scoring.maxScore: {scoring.max_score} != sum(maxPoints) {scoring.total_points}"],
        )


def validate_challenge(data: Any) -> ChallengeConfig:
    """
    Validate a parsed document into a ChallengeConfig.

    Raises:
        SchemaError: the document violates the challenge shape
        ScoringWeightError, MaxScoreError: scoring business rules are broken
    """
    if not isinstance(data, dict):
        raise SchemaError(
            "Challenge document must be a mapping",
            [f"<root>: expected a mapping, got {type(data).__name__}"],
        )
    try:
        config = ChallengeConfig.model_validate(data)
    except PydanticValidationError as e:
        raise SchemaError("Challenge document failed validation", _violations(e)) from e

    check_scoring_rules(config)
    return config
