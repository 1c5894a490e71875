"""Domain models for favorite and recent meals."""

from dataclasses import dataclass
from datetime import datetime


def normalize_name(name: str) -> str:
    """Return the key used to match meals by name."""
    return name.strip().lower()


@dataclass(frozen=True)
class FavoriteMeal:
    """Meal pinned by the user for quick logging."""

    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    created_at: datetime

    @property
    def key(self) -> str:
        return normalize_name(self.name)


@dataclass(frozen=True)
class RecentMeal:
    """Recently logged meal with usage frequency."""

    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    last_logged_at: datetime
    log_count: int

    @property
    def key(self) -> str:
        return normalize_name(self.name)
