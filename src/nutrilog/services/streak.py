"""Consecutive-day logging streak with a weekly grace day."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

from nutrilog.domain.streak import StreakState, StreakStatus

_logger = logging.getLogger(__name__)

GRACE_GAP_DAYS = 2


class StreakRepository(Protocol):
    """Persistence interface for the single streak record."""

    def get_streak(self) -> StreakState | None:
        """Return the stored streak state, if any."""

    def save_streak(self, state: StreakState) -> None:
        """Persist the streak state."""


def week_start(day: date) -> date:
    """Return the Sunday that starts the calendar week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def advance_streak(state: StreakState, date_key: date) -> StreakState:
    """Return the streak state after logging on ``date_key``.

    Logging twice on the same day changes nothing, and dates before the last
    logged date are ignored. The grace flag renews when the previous log falls
    before the week of ``date_key``; it is reset before the gap is evaluated.
    """
    last = state.last_logged_date
    if last is not None and date_key <= last:
        return state

    grace_used = state.grace_used_this_week
    if last is not None and last < week_start(date_key):
        grace_used = False

    if last is None:
        current = 1
    else:
        gap = (date_key - last).days
        if gap == 1:
            current = state.current_streak + 1
        elif gap == GRACE_GAP_DAYS and not grace_used:
            current = state.current_streak + 1
            grace_used = True
        else:
            current = 1

    return StreakState(
        current_streak=current,
        best_streak=max(state.best_streak, current),
        last_logged_date=date_key,
        grace_used_this_week=grace_used,
    )


def streak_message(current_streak: int) -> str:
    """Motivational message for a streak length."""
    if current_streak == 0:
        return "Log a meal to start your streak."
    if current_streak == 1:
        return "1 day down. Keep it going."
    if current_streak < 7:  # noqa: PLR2004
        return f"{current_streak} day streak. You're on a roll."
    if current_streak < 30:  # noqa: PLR2004
        return f"{current_streak} days in a row. You're building a habit."
    return f"{current_streak} day streak. Outstanding consistency."


@dataclass
class StreakService:
    """Sole mutator of the streak record."""

    repository: StreakRepository

    def current(self) -> StreakState:
        """Return the stored state or an empty one."""
        return self.repository.get_streak() or StreakState()

    def record_log(self, date_key: date) -> StreakState:
        """Apply a "logged on date" event, persisting only real changes."""
        previous = self.current()
        updated = advance_streak(previous, date_key)
        if updated != previous:
            self.repository.save_streak(updated)
            _logger.info(
                "Streak updated: day=%s current=%s best=%s grace_used=%s",
                date_key,
                updated.current_streak,
                updated.best_streak,
                updated.grace_used_this_week,
            )
        return updated

    def rebuild(self, days: Iterable[date]) -> StreakState:
        """Recompute the streak from the days that have entries.

        The best streak never decreases below the stored value.
        """
        previous = self.current()
        state = StreakState()
        for day in sorted(set(days)):
            state = advance_streak(state, day)
        rebuilt = StreakState(
            current_streak=state.current_streak,
            best_streak=max(state.best_streak, previous.best_streak),
            last_logged_date=state.last_logged_date,
            grace_used_this_week=state.grace_used_this_week,
        )
        if rebuilt != previous:
            self.repository.save_streak(rebuilt)
        return rebuilt

    def status(self, today: date) -> StreakStatus:
        """Describe the streak relative to ``today``."""
        state = self.current()
        last = state.last_logged_date
        if last is None:
            label = "new"
        elif last >= today:
            label = "logged_today"
        elif (today - last).days == 1 or (
            (today - last).days == GRACE_GAP_DAYS
            and not (state.grace_used_this_week and last >= week_start(today))
        ):
            label = "at_risk"
        else:
            label = "broken"
        current = 0 if label == "broken" else state.current_streak
        return StreakStatus(state=state, status=label, message=streak_message(current))
