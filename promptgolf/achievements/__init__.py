"""Achievements and progress aggregation."""

from .catalog import ACHIEVEMENTS, AchievementConfig, get_achievement
from .evaluator import ProgressSnapshot, evaluate
from .progress import build_progress, build_leaderboard, best_scores

__all__ = [
    "ACHIEVEMENTS", "AchievementConfig", "get_achievement",
    "ProgressSnapshot", "evaluate",
    "build_progress", "build_leaderboard", "best_scores",
]
