"""Challenge definitions: schema, loader and registry."""

from .schema import ChallengeConfig, ScoringDimension, Category, validate_challenge
from .loader import ChallengeLoader, challenge_loader
from .registry import ChallengeRegistry, challenge_registry

__all__ = [
    "ChallengeConfig", "ScoringDimension", "Category", "validate_challenge",
    "ChallengeLoader", "challenge_loader",
    "ChallengeRegistry", "challenge_registry",
]
