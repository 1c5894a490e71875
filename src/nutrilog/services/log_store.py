"""Log store facade over committed entries, favorites and recent meals."""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from nutrilog.domain.entries import ZERO_TOTALS, LogEntry, MacroTotals
from nutrilog.domain.library import FavoriteMeal, RecentMeal, normalize_name

RECENT_MEALS_LIMIT = 50
_ONE_DAY = timedelta(days=1)


class LogRepository(Protocol):
    """Persistence interface for the food log."""

    def add_entry(self, entry: LogEntry) -> None:
        """Persist a new entry."""

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        """Return an entry by id, if present."""

    def update_entry(self, entry: LogEntry) -> None:
        """Overwrite the fields of an existing entry."""

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry, returning True when a row was removed."""

    def list_entries(self, start: date, end: date) -> list[LogEntry]:
        """Return entries with start <= day < end, oldest first."""

    def list_recent_entries(self, limit: int) -> list[LogEntry]:
        """Return the most recently logged entries."""

    def list_logged_days(self) -> list[date]:
        """Return every distinct day with at least one entry."""

    def list_favorites(self) -> list[FavoriteMeal]:
        """Return favorite meals."""

    def add_favorite(self, favorite: FavoriteMeal) -> None:
        """Persist a favorite meal."""

    def delete_favorite(self, key: str) -> None:
        """Delete a favorite meal by normalized name."""

    def list_recent_meals(self) -> list[RecentMeal]:
        """Return recent meals, most recently logged first."""

    def upsert_recent_meal(self, meal: RecentMeal) -> None:
        """Insert or overwrite one recent meal by normalized name."""

    def delete_recent_meals(self, keys: list[str]) -> None:
        """Delete recent meals by normalized name."""


@dataclass
class LogStore:
    """Sole mutator of log entries, favorites and recent meals."""

    repository: LogRepository
    recent_limit: int = RECENT_MEALS_LIMIT

    def add_entry(self, entry: LogEntry) -> LogEntry:
        """Persist a committed entry."""
        self.repository.add_entry(entry)
        return entry

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        """Return an entry by id."""
        return self.repository.get_entry(entry_id)

    def update_entry(self, entry: LogEntry) -> LogEntry:
        """Overwrite an entry in place."""
        self.repository.update_entry(entry)
        return entry

    def replace_entry(self, previous_id: UUID, replacement: LogEntry) -> LogEntry:
        """Add a replacement entry, then delete the one it supersedes.

        A failed add leaves the previous entry in place.
        """
        self.repository.add_entry(replacement)
        self.repository.delete_entry(previous_id)
        return replacement

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry."""
        return self.repository.delete_entry(entry_id)

    def entries_for_day(self, day: date) -> list[LogEntry]:
        """Return the entries logged on a calendar day."""
        return self.entries_between(day, day + _ONE_DAY)

    def entries_between(self, start: date, end: date) -> list[LogEntry]:
        """Return entries for days in [start, end)."""
        return self.repository.list_entries(start, end)

    def totals_for_day(self, day: date) -> MacroTotals:
        """Sum the macros of a day's entries."""
        total = ZERO_TOTALS
        for entry in self.entries_for_day(day):
            total = total + entry.totals
        return total

    def recent_entries(self, limit: int = 10) -> list[LogEntry]:
        """Return the latest entries."""
        return self.repository.list_recent_entries(limit)

    def logged_days(self) -> list[date]:
        """Return sorted distinct days with entries."""
        return sorted(set(self.repository.list_logged_days()))

    def favorites(self) -> list[FavoriteMeal]:
        """Return favorite meals."""
        return self.repository.list_favorites()

    def is_favorite(self, name: str) -> bool:
        """Return True if a meal with the normalized name is a favorite."""
        key = normalize_name(name)
        return any(favorite.key == key for favorite in self.favorites())

    def add_favorite(self, favorite: FavoriteMeal) -> bool:
        """Add a favorite unless one with the same name exists."""
        if self.is_favorite(favorite.name):
            return False
        self.repository.add_favorite(favorite)
        return True

    def remove_favorite(self, name: str) -> bool:
        """Remove a favorite by name."""
        if not self.is_favorite(name):
            return False
        self.repository.delete_favorite(normalize_name(name))
        return True

    def recent_meals(self) -> list[RecentMeal]:
        """Return recent meals, most recent first."""
        return self.repository.list_recent_meals()

    def record_recent(
        self, name: str, totals: MacroTotals, logged_at: datetime
    ) -> RecentMeal:
        """Move a meal to the front of recents, bumping its log count."""
        key = normalize_name(name)
        meals = self.recent_meals()
        existing = next((meal for meal in meals if meal.key == key), None)
        if existing is None:
            updated = RecentMeal(
                name=name,
                calories=totals.calories,
                protein_g=totals.protein_g,
                carbs_g=totals.carbs_g,
                fat_g=totals.fat_g,
                last_logged_at=logged_at,
                log_count=1,
            )
        else:
            updated = replace(
                existing,
                calories=totals.calories,
                protein_g=totals.protein_g,
                carbs_g=totals.carbs_g,
                fat_g=totals.fat_g,
                last_logged_at=logged_at,
                log_count=existing.log_count + 1,
            )
        others = [meal for meal in meals if meal.key != key]
        self.repository.upsert_recent_meal(updated)
        overflow = [meal.key for meal in [updated, *others][self.recent_limit :]]
        if overflow:
            self.repository.delete_recent_meals(overflow)
        return updated

    def favorite_suggestions(self, threshold: int) -> list[RecentMeal]:
        """Recent meals logged often enough to suggest as favorites."""
        favorite_keys = {favorite.key for favorite in self.favorites()}
        return [
            meal
            for meal in self.recent_meals()
            if meal.log_count >= threshold and meal.key not in favorite_keys
        ]
