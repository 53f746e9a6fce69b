"""Load challenge documents from YAML text, files and directories."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from ..errors import ChallengeError, ParseError
from .schema import REQUIRED_WEIGHT_TOTAL, ChallengeConfig, validate_challenge

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".yaml", ".yml")


class ChallengeLoader:
    """
    Parses challenge documents into validated ChallengeConfig objects.

    Successfully loaded challenges are cached by id. The cache is replaced,
    never mutated, when cleared, so challenge objects already handed out
    stay valid.
    """

    def __init__(self):
        self._cache: Dict[str, ChallengeConfig] = {}

    def parse(self, text: str) -> ChallengeConfig:
        """
        Parse a YAML challenge document.

        Raises:
            ParseError: the text is not valid YAML
            SchemaError: the document does not have the challenge shape
            ScoringWeightError, MaxScoreError: scoring rules are broken
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError("Challenge document is not valid YAML", [str(e)]) from e
        return validate_challenge(data)

    def load_file(self, path: Union[str, Path]) -> ChallengeConfig:
        """Load a single challenge file. Errors propagate to the caller."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"{path.name} is not UTF-8 text", [str(e)]) from e
        return self.parse(text)

    def load_directory(self, dir_path: Union[str, Path]) -> List[ChallengeConfig]:
        """
        Load every YAML document in a directory.

        A broken file is logged and skipped; it never aborts the batch.
        Challenges with flags.isActive explicitly false are left out.
        """
        dir_path = Path(dir_path)
        if not dir_path.is_dir():
            logger.warning("Challenge directory %s does not exist", dir_path)
            return []

        files = sorted(p for p in dir_path.iterdir() if p.is_file() and p.suffix in DOCUMENT_SUFFIXES)

        challenges: List[ChallengeConfig] = []
        seen: Dict[str, Path] = {}
        for file in files:
            try:
                challenge = self.load_file(file)
            except (ChallengeError, OSError) as e:
                logger.warning("Failed to load challenge from %s: %s", file.name, e)
                continue

            if not challenge.is_active:
                logger.info("Skipping inactive challenge %s (%s)", challenge.id, file.name)
                continue
            if challenge.id in seen:
                logger.warning(
                    "Duplicate challenge id %r in %s (already loaded from %s), skipping",
                    challenge.id, file.name, seen[challenge.id].name,
                )
                continue

            seen[challenge.id] = file
            challenges.append(challenge)
            self._cache[challenge.id] = challenge

        return challenges

    def get_cached(self, challenge_id: str) -> Optional[ChallengeConfig]:
        return self._cache.get(challenge_id)

    @staticmethod
    def validate_scoring(config: ChallengeConfig) -> bool:
        """True when the dimension weights sum to 100."""
        return config.scoring.total_weight == REQUIRED_WEIGHT_TOTAL

    def clear_cache(self) -> None:
        """Drop all cached challenges (hot reload)."""
        self._cache = {}


challenge_loader = ChallengeLoader()
