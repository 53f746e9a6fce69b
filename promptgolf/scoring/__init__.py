"""Judging pipeline: prompt compiler, judge clients and scoring service."""

from .judge_prompt import compile_judge_prompt
from .judge import JudgeClient, ModelRouter, OpenAIJudge, AnthropicJudge
from .models import Attempt, ScoreResult, JudgeOutput
from .service import ScoringService, scoring_service, compute_time_bonus, get_quality_level

__all__ = [
    "compile_judge_prompt",
    "JudgeClient", "ModelRouter", "OpenAIJudge", "AnthropicJudge",
    "Attempt", "ScoreResult", "JudgeOutput",
    "ScoringService", "scoring_service", "compute_time_bonus", "get_quality_level",
]
