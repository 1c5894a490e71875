"""Domain models for the user profile and daily targets."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum


class Sex(StrEnum):
    """Biological sex used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"


class Goal(StrEnum):
    """Body-weight goal."""

    REDUCE = "reduce"
    MAINTAIN = "maintain"
    GAIN = "gain"


class ActivityLevel(StrEnum):
    """Self-reported activity level."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


@dataclass(frozen=True)
class UserProfile:
    """Body metrics and goals owned by the user."""

    age: int
    sex: Sex
    height_cm: float
    weight_kg: float
    goal_weight_kg: float
    goal: Goal
    activity_level: ActivityLevel
    weekly_change_kg: float | None = None
    name: str | None = None


@dataclass(frozen=True)
class DailyTargets:
    """Daily calorie and macro targets derived from a profile."""

    calories: int
    protein_g: int
    carbs_min_g: int
    carbs_max_g: int
    fat_min_g: int
    fat_max_g: int


@dataclass(frozen=True)
class RateConsistency:
    """Comparison of the fixed goal adjustment with the weekly-rate one."""

    fixed_adjustment: int
    rate_adjustment: int | None
    consistent: bool


@dataclass(frozen=True)
class TodayProgress:
    """Progress of today's totals against the targets."""

    calories_remaining: float
    protein_remaining: float
    calories_progress: float
    protein_progress: float
    is_on_track: bool
    is_over: bool
    strong_protein: bool


@dataclass(frozen=True)
class WeightEntry:
    """Recorded body weight for a day."""

    day: date
    weight_kg: float
    recorded_at: datetime
