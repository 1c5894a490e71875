"""Domain models for statistics."""

from dataclasses import dataclass

from nutrilog.domain.entries import DailyTotals


@dataclass(frozen=True)
class PeriodSummary:
    """Aggregated totals for a period."""

    daily: list[DailyTotals]
    avg_calories: float
    avg_protein_g: float
    avg_carbs_g: float
    avg_fat_g: float
    logged_days: int
