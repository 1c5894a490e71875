"""Daily calorie and macro target calculations.

Everything in this module is pure: no I/O, no clock reads, no logging.
"""

import math
from datetime import date, timedelta

from nutrilog.domain.entries import MacroTotals
from nutrilog.domain.profile import (
    ActivityLevel,
    DailyTargets,
    Goal,
    RateConsistency,
    Sex,
    TodayProgress,
    UserProfile,
)

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.LOW: 1.2,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.HIGH: 1.9,
}
GOAL_ADJUSTMENTS: dict[Goal, int] = {
    Goal.REDUCE: -500,
    Goal.MAINTAIN: 0,
    Goal.GAIN: 300,
}
MIN_CALORIES = 1200
PROTEIN_G_PER_KG = 2.2
FAT_SHARE = 0.25
MACRO_TOLERANCE = 0.15
KCAL_PER_KG = 7700
RATE_TOLERANCE_KCAL = 1

_KCAL_PER_G_PROTEIN = 4
_KCAL_PER_G_CARBS = 4
_KCAL_PER_G_FAT = 9


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def calculate_bmr(weight_kg: float, height_cm: float, age: int, sex: Sex) -> float:
    """Basal metabolic rate via Mifflin-St Jeor."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def calculate_tdee(profile: UserProfile) -> float:
    """Total daily energy expenditure for the profile's activity level."""
    bmr = calculate_bmr(
        profile.weight_kg, profile.height_cm, profile.age, profile.sex
    )
    return bmr * ACTIVITY_MULTIPLIERS[profile.activity_level]


def goal_adjustment(goal: Goal) -> int:
    """Fixed daily calorie adjustment for a goal."""
    return GOAL_ADJUSTMENTS[goal]


def rate_adjustment(profile: UserProfile) -> int | None:
    """Daily adjustment implied by the signed weekly weight-change rate, if any."""
    if profile.weekly_change_kg is None:
        return None
    return round_half_up(profile.weekly_change_kg * KCAL_PER_KG / 7)


def check_rate_consistency(profile: UserProfile) -> RateConsistency:
    """Compare the fixed goal adjustment with the weekly-rate adjustment.

    Targets always use the fixed adjustment. A profile without a rate is
    consistent by definition.
    """
    fixed = goal_adjustment(profile.goal)
    from_rate = rate_adjustment(profile)
    if from_rate is None:
        return RateConsistency(fixed, None, consistent=True)
    return RateConsistency(
        fixed_adjustment=fixed,
        rate_adjustment=from_rate,
        consistent=abs(fixed - from_rate) <= RATE_TOLERANCE_KCAL,
    )


def compute_targets(profile: UserProfile) -> DailyTargets:
    """Compute daily calorie and macro targets for a profile."""
    calories = max(
        MIN_CALORIES,
        round_half_up(calculate_tdee(profile) + goal_adjustment(profile.goal)),
    )
    protein_g = max(0, round_half_up(profile.weight_kg * PROTEIN_G_PER_KG))
    fat_calories = calories * FAT_SHARE
    fat_g = fat_calories / _KCAL_PER_G_FAT
    remaining = calories - protein_g * _KCAL_PER_G_PROTEIN - fat_calories
    carbs_g = max(0.0, remaining / _KCAL_PER_G_CARBS)
    fat_min, fat_max = _tolerance_range(fat_g)
    carbs_min, carbs_max = _tolerance_range(carbs_g)
    return DailyTargets(
        calories=calories,
        protein_g=protein_g,
        carbs_min_g=carbs_min,
        carbs_max_g=carbs_max,
        fat_min_g=fat_min,
        fat_max_g=fat_max,
    )


def _tolerance_range(grams: float) -> tuple[int, int]:
    low = max(0, round_half_up(grams * (1 - MACRO_TOLERANCE)))
    high = max(low, round_half_up(grams * (1 + MACRO_TOLERANCE)))
    return low, high


def weeks_to_goal(current_kg: float, goal_kg: float, weekly_change_kg: float) -> int:
    """Weeks needed to reach the goal weight at the given weekly rate."""
    if weekly_change_kg == 0 or current_kg == goal_kg:
        return 0
    return math.ceil(abs(goal_kg - current_kg) / abs(weekly_change_kg))


def projected_goal_date(
    current_kg: float, goal_kg: float, weekly_change_kg: float, today: date
) -> date | None:
    """Projected date the goal weight is reached, or None if not moving."""
    if weekly_change_kg == 0 or current_kg == goal_kg:
        return None
    weeks = weeks_to_goal(current_kg, goal_kg, weekly_change_kg)
    return today + timedelta(weeks=weeks)


def today_progress(targets: DailyTargets, totals: MacroTotals) -> TodayProgress:
    """Evaluate today's totals against the targets."""
    calories_remaining = targets.calories - totals.calories
    protein_remaining = targets.protein_g - totals.protein_g
    calories_progress = _percent(totals.calories, targets.calories)
    protein_progress = _percent(totals.protein_g, targets.protein_g)
    return TodayProgress(
        calories_remaining=calories_remaining,
        protein_remaining=protein_remaining,
        calories_progress=calories_progress,
        protein_progress=protein_progress,
        is_on_track=0 <= calories_remaining < targets.calories * 0.2,
        is_over=calories_remaining < 0,
        strong_protein=protein_progress >= 90,  # noqa: PLR2004
    )


def _percent(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return value / target * 100
