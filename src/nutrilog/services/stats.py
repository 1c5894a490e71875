"""Statistics over committed log entries."""

from dataclasses import dataclass
from datetime import date, timedelta

from nutrilog.domain.entries import DailyTotals, LogEntry
from nutrilog.domain.stats import PeriodSummary
from nutrilog.services.log_store import LogStore
from nutrilog.services.streak import week_start

DECEMBER = 12


@dataclass
class StatsService:
    """Service for daily, weekly and monthly totals."""

    log_store: LogStore

    def get_today(self, today: date) -> DailyTotals:
        """Return the totals for a day."""
        return _aggregate_day(today, self.log_store.entries_for_day(today))

    def get_today_with_entries(
        self, today: date
    ) -> tuple[DailyTotals, list[LogEntry]]:
        """Return a day's totals and its entries."""
        entries = self.log_store.entries_for_day(today)
        return _aggregate_day(today, entries), entries

    def get_week(self, today: date) -> PeriodSummary:
        """Return week-to-date totals and averages, weeks starting Sunday."""
        start = week_start(today)
        return self._period(start, 7)

    def get_month(self, today: date) -> PeriodSummary:
        """Return month totals and averages."""
        start = today.replace(day=1)
        if start.month == DECEMBER:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return self._period(start, (end - start).days)

    def get_history(self, limit: int = 10) -> list[LogEntry]:
        """Return recent entries."""
        return self.log_store.recent_entries(limit)

    def _period(self, start: date, days: int) -> PeriodSummary:
        entries = self.log_store.entries_between(start, start + timedelta(days=days))
        return _aggregate_period(start, days, entries)


def _aggregate_day(day: date, entries: list[LogEntry]) -> DailyTotals:
    total = DailyTotals(day=day, calories=0, protein_g=0, carbs_g=0, fat_g=0)
    for entry in entries:
        if entry.day != day:
            continue
        total = DailyTotals(
            day=day,
            calories=total.calories + entry.calories,
            protein_g=total.protein_g + entry.protein_g,
            carbs_g=total.carbs_g + entry.carbs_g,
            fat_g=total.fat_g + entry.fat_g,
        )
    return total


def _aggregate_period(
    start: date, days: int, entries: list[LogEntry]
) -> PeriodSummary:
    daily = [
        _aggregate_day(start + timedelta(days=offset), entries)
        for offset in range(days)
    ]
    logged_days = len({entry.day for entry in entries})
    total_days = max(len(daily), 1)
    return PeriodSummary(
        daily=daily,
        avg_calories=sum(day.calories for day in daily) / total_days,
        avg_protein_g=sum(day.protein_g for day in daily) / total_days,
        avg_carbs_g=sum(day.carbs_g for day in daily) / total_days,
        avg_fat_g=sum(day.fat_g for day in daily) / total_days,
        logged_days=logged_days,
    )
