"""Supabase repository for log entries, favorites and recent meals."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from nutrilog.domain.entries import LogEntry
from nutrilog.domain.library import FavoriteMeal, RecentMeal
from nutrilog.services.log_store import LogRepository

_ENTRY_COLUMNS = (
    "id, logged_on, logged_at, name, calories, protein_g, carbs_g, fat_g, image_ref"
)


@dataclass
class SupabaseLogRepository(LogRepository):
    """Supabase implementation for the food log."""

    client: Client

    def add_entry(self, entry: LogEntry) -> None:
        """Insert a log entry row."""
        response = (
            self.client.table("food_entries").insert(_entry_payload(entry)).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create log entry")

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        """Return a log entry by id."""
        response = (
            self.client.table("food_entries")
            .select(_ENTRY_COLUMNS)
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def update_entry(self, entry: LogEntry) -> None:
        """Overwrite a log entry row."""
        payload = _entry_payload(entry)
        payload.pop("id")
        response = (
            self.client.table("food_entries")
            .update(payload)
            .eq("id", str(entry.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update log entry")

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete a log entry row."""
        response = (
            self.client.table("food_entries").delete().eq("id", str(entry_id)).execute()
        )
        return bool(response.data)

    def list_entries(self, start: date, end: date) -> list[LogEntry]:
        """Return entries with start <= logged_on < end."""
        response = (
            self.client.table("food_entries")
            .select(_ENTRY_COLUMNS)
            .gte("logged_on", start.isoformat())
            .lt("logged_on", end.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_recent_entries(self, limit: int) -> list[LogEntry]:
        """Return the latest log entries."""
        response = (
            self.client.table("food_entries")
            .select(_ENTRY_COLUMNS)
            .order("logged_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def list_logged_days(self) -> list[date]:
        """Return the days that have entries."""
        response = self.client.table("food_entries").select("logged_on").execute()
        return sorted(
            {date.fromisoformat(str(row["logged_on"])) for row in response.data or []}
        )

    def list_favorites(self) -> list[FavoriteMeal]:
        """Return favorite meals, newest first."""
        response = (
            self.client.table("favorite_meals")
            .select("name, calories, protein_g, carbs_g, fat_g, created_at")
            .order("created_at", desc=True)
            .execute()
        )
        return [
            FavoriteMeal(
                name=str(row["name"]),
                calories=float(row.get("calories", 0.0)),
                protein_g=float(row.get("protein_g", 0.0)),
                carbs_g=float(row.get("carbs_g", 0.0)),
                fat_g=float(row.get("fat_g", 0.0)),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in response.data or []
        ]

    def add_favorite(self, favorite: FavoriteMeal) -> None:
        """Insert a favorite meal row."""
        self.client.table("favorite_meals").insert(
            {
                "name_key": favorite.key,
                "name": favorite.name,
                "calories": favorite.calories,
                "protein_g": favorite.protein_g,
                "carbs_g": favorite.carbs_g,
                "fat_g": favorite.fat_g,
                "created_at": favorite.created_at.isoformat(),
            }
        ).execute()

    def delete_favorite(self, key: str) -> None:
        """Delete a favorite meal by normalized name."""
        self.client.table("favorite_meals").delete().eq("name_key", key).execute()

    def list_recent_meals(self) -> list[RecentMeal]:
        """Return recent meals, most recently logged first."""
        response = (
            self.client.table("recent_meals")
            .select(
                "name, calories, protein_g, carbs_g, fat_g, last_logged_at, log_count"
            )
            .order("last_logged_at", desc=True)
            .execute()
        )
        return [
            RecentMeal(
                name=str(row["name"]),
                calories=float(row.get("calories", 0.0)),
                protein_g=float(row.get("protein_g", 0.0)),
                carbs_g=float(row.get("carbs_g", 0.0)),
                fat_g=float(row.get("fat_g", 0.0)),
                last_logged_at=datetime.fromisoformat(row["last_logged_at"]),
                log_count=int(row.get("log_count", 1)),
            )
            for row in response.data or []
        ]

    def upsert_recent_meal(self, meal: RecentMeal) -> None:
        """Insert or overwrite a recent meal row keyed by normalized name."""
        response = (
            self.client.table("recent_meals")
            .upsert(
                {
                    "name_key": meal.key,
                    "name": meal.name,
                    "calories": meal.calories,
                    "protein_g": meal.protein_g,
                    "carbs_g": meal.carbs_g,
                    "fat_g": meal.fat_g,
                    "last_logged_at": meal.last_logged_at.isoformat(),
                    "log_count": meal.log_count,
                },
                on_conflict="name_key",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save recent meal")

    def delete_recent_meals(self, keys: list[str]) -> None:
        """Delete recent meal rows by normalized name."""
        self.client.table("recent_meals").delete().in_("name_key", keys).execute()


def _entry_payload(entry: LogEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "logged_on": entry.day.isoformat(),
        "logged_at": entry.logged_at.isoformat(),
        "name": entry.name,
        "calories": entry.calories,
        "protein_g": entry.protein_g,
        "carbs_g": entry.carbs_g,
        "fat_g": entry.fat_g,
        "image_ref": entry.image_ref,
    }


def _parse_entry(row: dict[str, object]) -> LogEntry:
    return LogEntry(
        id=UUID(str(row["id"])),
        day=date.fromisoformat(str(row["logged_on"])),
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        name=str(row.get("name", "")),
        calories=float(row.get("calories", 0.0)),
        protein_g=float(row.get("protein_g", 0.0)),
        carbs_g=float(row.get("carbs_g", 0.0)),
        fat_g=float(row.get("fat_g", 0.0)),
        image_ref=row.get("image_ref"),
    )
