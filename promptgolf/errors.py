"""
Error taxonomy.

Loader errors (ParseError, SchemaError, ScoringRuleError) are recovered per file
during directory loads and raised directly from single-document calls. Scoring
errors (JudgeError, NotFoundError, ValidationError) are the terminal outcome of
a scoring request and are never retried here.
"""

from typing import Any, Dict, List, Optional


class PromptGolfError(Exception):
    """Base class for all Prompt Golf errors."""

    error_code = "ERROR"

    def __init__(
        self,
        message: str,
        violations: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.violations = violations or []
        self.details = details or {}
        if self.violations:
            super().__init__(f"{message}: {'; '.join(self.violations)}")
        else:
            super().__init__(message)


# ============ Challenge documents ============

class ChallengeError(PromptGolfError):
    """A challenge document could not be turned into a ChallengeConfig."""

    error_code = "INVALID_CHALLENGE"


class ParseError(ChallengeError):
    """Input is not syntactically parseable at all."""

    error_code = "PARSE_ERROR"


class SchemaError(ChallengeError):
    """Document is well-formed but violates the challenge shape."""

    error_code = "SCHEMA_ERROR"


class ScoringRuleError(ChallengeError):
    """Structurally valid challenge whose scoring config breaks a business rule."""

    error_code = "SCORING_RULE_ERROR"


class ScoringWeightError(ScoringRuleError):
    """Dimension weights do not sum to 100."""

    error_code = "SCORING_WEIGHT_ERROR"


class MaxScoreError(ScoringRuleError):
    """scoring.maxScore differs from the sum of dimension maxPoints."""

    error_code = "MAX_SCORE_MISMATCH"


# ============ Scoring requests ============

class NotFoundError(PromptGolfError):
    """Referenced challenge id is not in the registry."""

    error_code = "CHALLENGE_NOT_FOUND"


class ValidationError(PromptGolfError):
    """Caller-supplied scoring request violates basic constraints."""

    error_code = "INVALID_REQUEST"


class RetryLimitError(PromptGolfError):
    """The challenge's retry policy forbids another attempt right now."""

    error_code = "RETRY_LIMITED"

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class JudgeError(PromptGolfError):
    """The judge invocation failed or its output could not be reconciled."""

    error_code = "JUDGE_ERROR"


class JudgeOutputError(JudgeError, ParseError):
    """Judge output is not valid structured data, even after tolerant parsing."""

    error_code = "JUDGE_OUTPUT_ERROR"
