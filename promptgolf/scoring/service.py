"""
Scoring service.

Flow: compile judge instructions -> stream the judge -> parse and validate
the accumulated output -> time bonus -> reconcile dimensions against the
challenge -> final score and quality tier.

A failed judge call is surfaced as JudgeError and never retried here; a
score is never fabricated from output that could not be parsed.
"""

import asyncio
import json
import logging
import re
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..challenges.schema import ChallengeConfig, QualityLevel, Thresholds, TimeBonus
from ..config import JUDGE_TIMEOUT_SECONDS, PROMPT_MAX_LENGTH, PROMPT_MIN_LENGTH
from ..errors import JudgeError, JudgeOutputError, ValidationError
from .judge import JudgeClient, ModelRouter
from .judge_prompt import compile_judge_prompt, round_half_up
from .models import DimensionScore, JudgeOutput, Number, ScoreResult

logger = logging.getLogger(__name__)

USER_PROMPT_LABEL = "USER'S PROMPT TO EVALUATE:"

_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)


# ============ Judge output parsing ============

def strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper around the judge output, if any."""
    text = text.strip()
    match = _FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def parse_judge_output(text: str) -> Dict[str, Any]:
    """
    Reduce accumulated judge output to one result object.

    First the whole (fence-stripped) text is parsed. If that fails, lines are
    scanned from the end for the last one that parses as a complete result,
    which covers streams that emit successive partial objects per line.

    Raises:
        JudgeOutputError: nothing in the output parses as a result object
    """
    stripped = strip_code_fence(text)
    if not stripped:
        raise JudgeOutputError("Judge returned an empty response")

    result = _loads_object(stripped)
    if result is not None:
        return result

    for line in reversed(stripped.splitlines()):
        line = line.strip()
        if not line:
            continue
        candidate = _loads_object(strip_code_fence(line))
        if candidate is not None and "totalScore" in candidate:
            return candidate

    raise JudgeOutputError(
        "Judge response is not valid JSON",
        [f"response starts with: {stripped[:120]!r}"],
    )


def validate_judge_output(raw: Dict[str, Any]) -> JudgeOutput:
    try:
        return JudgeOutput.model_validate(raw)
    except PydanticValidationError as e:
        violations = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise JudgeOutputError("Judge response does not match the result shape", violations) from e


# ============ Score math ============

def compute_time_bonus(
    total_score: Number,
    time_bonus: Optional[TimeBonus],
    elapsed_seconds: Optional[float],
) -> int:
    """
    Bonus for finishing under par time.

    bonus = round(total * maxBonusPercent/100 * (1 - elapsed/par)), only when
    the bonus is enabled and elapsed is strictly below par. The bonus is not
    capped by maxScore.
    """
    if time_bonus is None or not time_bonus.enabled or elapsed_seconds is None:
        return 0
    par = time_bonus.par_time_seconds
    if elapsed_seconds < 0 or elapsed_seconds >= par:
        return 0
    time_factor = 1 - elapsed_seconds / par
    return round_half_up(total_score * (time_bonus.max_bonus_percent / 100) * time_factor)


def get_quality_level(score: Number, thresholds: Thresholds) -> QualityLevel:
    if score >= thresholds.excellent:
        return "excellent"
    if score >= thresholds.good:
        return "good"
    if score >= thresholds.passing:
        return "fair"
    return "poor"


def _clamp(value: Number, upper: int, what: str) -> Number:
    if value < 0 or value > upper:
        clamped = min(max(value, 0), upper)
        logger.warning("Judge %s %s outside [0, %s], clamped to %s", what, value, upper, clamped)
        return clamped
    return value


def reconcile(
    challenge: ChallengeConfig,
    output: JudgeOutput,
    elapsed_seconds: Optional[float] = None,
) -> ScoreResult:
    """
    Build a ScoreResult from validated judge output.

    Dimensions come from the challenge's own list, looked up by id in the
    judge's map. Missing entries score 0 with empty feedback, and unknown
    ids from the judge are dropped.
    """
    scoring = challenge.scoring
    total = _clamp(output.total_score, scoring.max_score, "totalScore")

    dimensions: Dict[str, DimensionScore] = {}
    for dim in scoring.dimensions:
        verdict = output.dimensions.get(dim.id)
        if verdict is None:
            logger.warning("Judge omitted dimension %r for challenge %s", dim.id, challenge.id)
            score, feedback = 0, ""
        else:
            score = _clamp(verdict.score, dim.max_points, f"dimension {dim.id!r} score")
            feedback = verdict.feedback
        dimensions[dim.id] = DimensionScore(score=score, max_score=dim.max_points, feedback=feedback)

    time_bonus = compute_time_bonus(total, scoring.time_bonus, elapsed_seconds)
    final_score = total + time_bonus

    return ScoreResult(
        challenge_id=challenge.id,
        total_score=total,
        max_score=scoring.max_score,
        percentage=round_half_up(total / scoring.max_score * 100),
        dimensions=dimensions,
        overall_feedback=output.overall_feedback,
        prompt_quality_level=get_quality_level(final_score, scoring.thresholds),
        judge_quality_level=output.prompt_quality_level,
        time_bonus=time_bonus,
        final_score=final_score,
        elapsed_seconds=elapsed_seconds,
    )


def validate_request(user_prompt: str, elapsed_seconds: Optional[float]) -> None:
    violations: List[str] = []
    if not isinstance(user_prompt, str) or len(user_prompt.strip()) < PROMPT_MIN_LENGTH:
        violations.append("prompt: must not be empty")
    elif len(user_prompt) > PROMPT_MAX_LENGTH:
        violations.append(f"prompt: exceeds {PROMPT_MAX_LENGTH} characters ({len(user_prompt)})")
    if elapsed_seconds is not None and elapsed_seconds < 0:
        violations.append("elapsedSeconds: must be non-negative")
    if violations:
        raise ValidationError("Invalid scoring request", violations)


# ============ Service ============

class ScoringService:
    """Scores user prompts against a challenge with an LLM judge."""

    def __init__(
        self,
        judge: Optional[JudgeClient] = None,
        timeout_seconds: float = JUDGE_TIMEOUT_SECONDS,
    ):
        self._judge = judge or ModelRouter()
        self._timeout_seconds = timeout_seconds

    async def _collect(self, fragments: AsyncIterator[str]) -> str:
        parts = []
        async for fragment in fragments:
            parts.append(fragment)
        return "".join(parts)

    async def invoke_judge(self, challenge: ChallengeConfig, user_prompt: str) -> str:
        """Run the judge and return its complete output text."""
        system = compile_judge_prompt(challenge)
        judge_config = challenge.scoring.judge
        try:
            fragments = self._judge.stream(
                system,
                f"{USER_PROMPT_LABEL}\n\n{user_prompt}",
                judge_config.model,
                judge_config.temperature,
            )
            return await asyncio.wait_for(self._collect(fragments), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning("Judge timed out after %ss for challenge %s", self._timeout_seconds, challenge.id)
            raise JudgeError(
                "Evaluating your prompt timed out, try again",
                [f"no complete response within {self._timeout_seconds}s"],
            ) from e
        except Exception as e:
            logger.warning("Judge call failed for challenge %s: %s: %s", challenge.id, type(e).__name__, e)
            raise JudgeError(
                "Evaluating your prompt failed, try again",
                [f"{type(e).__name__}: {e}"],
            ) from e

    async def score(
        self,
        user_prompt: str,
        challenge: ChallengeConfig,
        elapsed_seconds: Optional[float] = None,
    ) -> ScoreResult:
        """
        Score a prompt for a challenge.

        Raises:
            ValidationError: empty or oversized prompt, negative elapsed time
            JudgeError: the judge failed or its output could not be used
        """
        validate_request(user_prompt, elapsed_seconds)

        text = await self.invoke_judge(challenge, user_prompt)
        output = validate_judge_output(parse_judge_output(text))
        result = reconcile(challenge, output, elapsed_seconds)

        logger.info(
            "Scored challenge %s: total=%s bonus=%s final=%s (%s)",
            challenge.id, result.total_score, result.time_bonus,
            result.final_score, result.prompt_quality_level,
        )
        return result


scoring_service = ScoringService()
