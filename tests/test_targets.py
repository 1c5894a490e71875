"""Tests for daily target calculations."""

from datetime import date

import pytest

from nutrilog.domain.entries import MacroTotals
from nutrilog.domain.profile import ActivityLevel, DailyTargets, Goal, Sex, UserProfile
from nutrilog.services.targets import (
    MIN_CALORIES,
    calculate_bmr,
    check_rate_consistency,
    compute_targets,
    projected_goal_date,
    rate_adjustment,
    round_half_up,
    today_progress,
    weeks_to_goal,
)


def _profile(**overrides: object) -> UserProfile:
    values: dict[str, object] = {
        "age": 30,
        "sex": Sex.MALE,
        "height_cm": 180,
        "weight_kg": 80,
        "goal_weight_kg": 75,
        "goal": Goal.MAINTAIN,
        "activity_level": ActivityLevel.MODERATE,
    }
    values.update(overrides)
    return UserProfile(**values)  # type: ignore[arg-type]


def test_compute_targets_maintain_moderate_male() -> None:
    targets = compute_targets(_profile())

    assert targets == DailyTargets(
        calories=2759,
        protein_g=176,
        carbs_min_g=290,
        carbs_max_g=393,
        fat_min_g=65,
        fat_max_g=88,
    )


def test_compute_targets_applies_calorie_floor() -> None:
    profile = _profile(
        age=25,
        sex=Sex.FEMALE,
        height_cm=165,
        weight_kg=60,
        goal=Goal.REDUCE,
        activity_level=ActivityLevel.LOW,
    )

    targets = compute_targets(profile)

    assert targets.calories == MIN_CALORIES
    assert targets.protein_g == 132
    assert (targets.fat_min_g, targets.fat_max_g) == (28, 38)
    assert (targets.carbs_min_g, targets.carbs_max_g) == (79, 107)


def test_compute_targets_high_activity_gain() -> None:
    profile = _profile(
        age=40,
        height_cm=175,
        weight_kg=70,
        goal=Goal.GAIN,
        activity_level=ActivityLevel.HIGH,
    )

    assert compute_targets(profile).calories == 3338


def test_compute_targets_clamps_carbs_when_protein_dominates() -> None:
    profile = _profile(
        age=80,
        sex=Sex.FEMALE,
        height_cm=150,
        weight_kg=150,
        goal=Goal.REDUCE,
        activity_level=ActivityLevel.LOW,
    )

    targets = compute_targets(profile)

    assert targets.calories == 1752
    assert targets.protein_g == 330
    assert (targets.carbs_min_g, targets.carbs_max_g) == (0, 0)


@pytest.mark.parametrize("goal", list(Goal))
@pytest.mark.parametrize("activity", list(ActivityLevel))
@pytest.mark.parametrize("sex", list(Sex))
def test_compute_targets_invariants(
    goal: Goal, activity: ActivityLevel, sex: Sex
) -> None:
    targets = compute_targets(
        _profile(goal=goal, activity_level=activity, sex=sex, weight_kg=55, age=70)
    )

    assert targets.calories >= MIN_CALORIES
    assert 0 <= targets.carbs_min_g <= targets.carbs_max_g
    assert 0 <= targets.fat_min_g <= targets.fat_max_g
    assert all(
        isinstance(value, int)
        for value in (
            targets.calories,
            targets.protein_g,
            targets.carbs_min_g,
            targets.carbs_max_g,
            targets.fat_min_g,
            targets.fat_max_g,
        )
    )


def test_calculate_bmr_sex_offsets() -> None:
    assert calculate_bmr(80, 180, 30, Sex.MALE) == 1780
    assert calculate_bmr(80, 180, 30, Sex.FEMALE) == 1614


def test_round_half_up_rounds_halves_away_from_even() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(1.49) == 1


def test_rate_adjustment_uses_signed_rate() -> None:
    assert rate_adjustment(_profile()) is None
    assert rate_adjustment(_profile(goal=Goal.REDUCE, weekly_change_kg=-0.5)) == -550
    assert rate_adjustment(_profile(goal=Goal.GAIN, weekly_change_kg=0.25)) == 275


def test_check_rate_consistency() -> None:
    consistent = check_rate_consistency(
        _profile(goal=Goal.REDUCE, weekly_change_kg=-500 / 1100)
    )
    inconsistent = check_rate_consistency(
        _profile(goal=Goal.REDUCE, weekly_change_kg=-0.5)
    )

    assert consistent.consistent is True
    assert inconsistent.consistent is False
    assert inconsistent.fixed_adjustment == -500
    assert inconsistent.rate_adjustment == -550


def test_rate_never_changes_targets() -> None:
    with_rate = compute_targets(_profile(goal=Goal.REDUCE, weekly_change_kg=-1.0))
    without_rate = compute_targets(_profile(goal=Goal.REDUCE))

    assert with_rate == without_rate


def test_goal_projection() -> None:
    assert weeks_to_goal(80, 70, 0.5) == 20
    assert weeks_to_goal(80, 80, 0.5) == 0
    assert projected_goal_date(80, 70, 0.5, date(2026, 10, 18)) == date(2027, 3, 7)
    assert projected_goal_date(80, 70, 0, date(2026, 10, 18)) is None


def test_today_progress_on_track_with_strong_protein() -> None:
    targets = DailyTargets(2000, 150, 200, 250, 50, 70)

    progress = today_progress(targets, MacroTotals(1700, 140, 180, 60))

    assert progress.calories_remaining == 300
    assert progress.is_on_track is True
    assert progress.is_over is False
    assert progress.strong_protein is True


def test_today_progress_over_target() -> None:
    targets = DailyTargets(2000, 150, 200, 250, 50, 70)

    progress = today_progress(targets, MacroTotals(2100, 60, 180, 60))

    assert progress.is_over is True
    assert progress.is_on_track is False
    assert progress.strong_protein is False
    assert progress.calories_progress == pytest.approx(105.0)
