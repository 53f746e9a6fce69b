"""Configuration for Prompt Golf."""

import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("PROMPTGOLF_DATA_DIR", BASE_DIR / "data"))
CHALLENGES_DIR = Path(os.getenv("PROMPTGOLF_CHALLENGES_DIR", BASE_DIR / "challenges"))
DATABASE_URL = os.getenv("PROMPTGOLF_DATABASE_URL", f"sqlite:///{DATA_DIR / 'promptgolf.db'}")

# Judge
JUDGE_DEFAULT_MODEL = os.getenv("JUDGE_DEFAULT_MODEL", "claude-sonnet-4-20250514")
JUDGE_TIMEOUT_SECONDS = float(os.getenv("JUDGE_TIMEOUT_SECONDS", "60"))
JUDGE_MAX_TOKENS = int(os.getenv("JUDGE_MAX_TOKENS", "2048"))

# Scoring requests
PROMPT_MIN_LENGTH = int(os.getenv("PROMPT_MIN_LENGTH", "1"))
PROMPT_MAX_LENGTH = int(os.getenv("PROMPT_MAX_LENGTH", "10000"))

# Auth is stubbed; every attempt belongs to this user unless one is given
DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "local-user")

# Admin endpoints require "Authorization: Bearer <token>" when set
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# API
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
