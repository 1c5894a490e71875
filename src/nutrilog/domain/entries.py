"""Domain models for committed log entries."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, field_validator


@dataclass(frozen=True)
class MacroTotals:
    """Calories and macros for an entry or a meal."""

    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float

    def __add__(self, other: "MacroTotals") -> "MacroTotals":
        return MacroTotals(
            calories=self.calories + other.calories,
            protein_g=self.protein_g + other.protein_g,
            carbs_g=self.carbs_g + other.carbs_g,
            fat_g=self.fat_g + other.fat_g,
        )


ZERO_TOTALS = MacroTotals(0, 0, 0, 0)


@dataclass(frozen=True)
class LogEntry:
    """Immutable committed food log entry."""

    id: UUID
    day: date
    logged_at: datetime
    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    image_ref: str | None = None

    @property
    def totals(self) -> MacroTotals:
        return MacroTotals(
            calories=self.calories,
            protein_g=self.protein_g,
            carbs_g=self.carbs_g,
            fat_g=self.fat_g,
        )


class EditedItem(BaseModel):
    """User-edited meal item.

    Numbers that are missing, non-numeric, not finite or negative are read
    as zero so they never reach a committed entry.
    """

    name: str
    portion: str = ""
    calories: float = 0
    protein_g: float = 0
    carbs_g: float = 0
    fat_g: float = 0

    @field_validator("calories", "protein_g", "carbs_g", "fat_g", mode="before")
    @classmethod
    def _sanitize_number(cls, value: object) -> float:
        return _to_non_negative(value)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: object) -> str:
        cleaned = str(value or "").strip()
        return cleaned or "Meal"


@dataclass(frozen=True)
class DailyTotals:
    """Daily totals across committed entries."""

    day: date
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float


def _to_non_negative(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number
