"""Domain models for logging streaks."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class StreakState:
    """Consecutive-day logging state."""

    current_streak: int = 0
    best_streak: int = 0
    last_logged_date: date | None = None
    grace_used_this_week: bool = False


@dataclass(frozen=True)
class StreakStatus:
    """Display view of the streak relative to today."""

    state: StreakState
    status: str
    message: str
