"""Static achievement catalog."""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FirstChallenge(BaseModel):
    type: Literal["first_challenge"] = "first_challenge"


class ChallengeScore(BaseModel):
    type: Literal["challenge_score"] = "challenge_score"
    threshold: int
    challenge_id: Optional[str] = None


class TotalChallenges(BaseModel):
    type: Literal["total_challenges"] = "total_challenges"
    count: int


class TotalPoints(BaseModel):
    type: Literal["total_points"] = "total_points"
    points: int


class PerfectScore(BaseModel):
    type: Literal["perfect_score"] = "perfect_score"
    challenge_id: Optional[str] = None


class SpeedRun(BaseModel):
    type: Literal["speed_run"] = "speed_run"


class CategoryMastery(BaseModel):
    """`category` "any" means `count` distinct categories; otherwise `count` completions in it."""

    type: Literal["category_mastery"] = "category_mastery"
    category: str
    count: int = 1


class AllCategories(BaseModel):
    type: Literal["all_categories"] = "all_categories"


class Streak(BaseModel):
    type: Literal["streak"] = "streak"
    days: int


AchievementCriteria = Annotated[
    Union[
        FirstChallenge, ChallengeScore, TotalChallenges, TotalPoints, PerfectScore,
        SpeedRun, CategoryMastery, AllCategories, Streak,
    ],
    Field(discriminator="type"),
]


class AchievementConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str
    rarity: Literal["common", "rare", "epic", "legendary"]
    points: int
    criteria: AchievementCriteria


ACHIEVEMENTS: List[AchievementConfig] = [
    # Common
    AchievementConfig(
        id="first-swing", name="First Swing", description="Complete your first challenge",
        icon="⛳", rarity="common", points=10, criteria=FirstChallenge(),
    ),
    AchievementConfig(
        id="passing-grade", name="Passing Grade", description="Score 45+ on any challenge",
        icon="✅", rarity="common", points=10, criteria=ChallengeScore(threshold=45),
    ),
    AchievementConfig(
        id="three-peat", name="Three-Peat", description="Complete 3 different challenges",
        icon="🎯", rarity="common", points=20, criteria=TotalChallenges(count=3),
    ),
    AchievementConfig(
        id="getting-started", name="Getting Started", description="Earn 100 total points",
        icon="🌱", rarity="common", points=15, criteria=TotalPoints(points=100),
    ),

    # Rare
    AchievementConfig(
        id="good-form", name="Good Form", description="Score 65+ on any challenge",
        icon="👍", rarity="rare", points=25, criteria=ChallengeScore(threshold=65),
    ),
    AchievementConfig(
        id="half-way", name="Halfway There", description="Complete 5 different challenges",
        icon="🏔️", rarity="rare", points=30, criteria=TotalChallenges(count=5),
    ),
    AchievementConfig(
        id="speed-demon", name="Speed Demon", description="Beat the par time on any challenge",
        icon="⚡", rarity="rare", points=25, criteria=SpeedRun(),
    ),
    AchievementConfig(
        id="point-collector", name="Point Collector", description="Earn 300 total points",
        icon="💰", rarity="rare", points=30, criteria=TotalPoints(points=300),
    ),
    AchievementConfig(
        id="on-a-roll", name="On a Roll", description="Practice 3 days in a row",
        icon="📅", rarity="rare", points=25, criteria=Streak(days=3),
    ),

    # Epic
    AchievementConfig(
        id="excellent-craft", name="Excellent Craft", description="Score 85+ (Excellent) on any challenge",
        icon="🌟", rarity="epic", points=50, criteria=ChallengeScore(threshold=85),
    ),
    AchievementConfig(
        id="completionist", name="Completionist", description="Complete 8 different challenges",
        icon="🏆", rarity="epic", points=50, criteria=TotalChallenges(count=8),
    ),
    AchievementConfig(
        id="versatile", name="Versatile", description="Complete challenges in 3 different categories",
        icon="🎨", rarity="epic", points=40, criteria=CategoryMastery(category="any", count=3),
    ),
    AchievementConfig(
        id="big-scorer", name="Big Scorer", description="Earn 500 total points",
        icon="💎", rarity="epic", points=50, criteria=TotalPoints(points=500),
    ),
    AchievementConfig(
        id="week-warrior", name="Week Warrior", description="Practice 7 days in a row",
        icon="🔥", rarity="epic", points=50, criteria=Streak(days=7),
    ),

    # Legendary
    AchievementConfig(
        id="perfect-prompt", name="Perfect Prompt", description="Score 95+ on any challenge",
        icon="👑", rarity="legendary", points=100, criteria=ChallengeScore(threshold=95),
    ),
    AchievementConfig(
        id="flawless", name="Flawless", description="Earn the maximum judge score on any challenge",
        icon="💯", rarity="legendary", points=100, criteria=PerfectScore(),
    ),
    AchievementConfig(
        id="master-prompter", name="Master Prompter", description="Complete all 10 challenges",
        icon="🧙", rarity="legendary", points=100, criteria=TotalChallenges(count=10),
    ),
    AchievementConfig(
        id="renaissance", name="Renaissance", description="Complete a challenge in every available category",
        icon="🌈", rarity="legendary", points=75, criteria=AllCategories(),
    ),
    AchievementConfig(
        id="elite-scorer", name="Elite Scorer", description="Earn 800 total points",
        icon="🏅", rarity="legendary", points=100, criteria=TotalPoints(points=800),
    ),
]


def get_achievement(achievement_id: str) -> Optional[AchievementConfig]:
    return next((a for a in ACHIEVEMENTS if a.id == achievement_id), None)


def get_achievements_by_rarity(rarity: str) -> List[AchievementConfig]:
    return [a for a in ACHIEVEMENTS if a.rarity == rarity]
