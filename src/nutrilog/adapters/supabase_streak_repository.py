"""Supabase repository for the streak record."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from nutrilog.domain.streak import StreakState
from nutrilog.services.streak import StreakRepository

_STREAK_ROW_ID = 1


@dataclass
class SupabaseStreakRepository(StreakRepository):
    """Supabase implementation for the single streak row."""

    client: Client

    def get_streak(self) -> StreakState | None:
        """Return the stored streak state."""
        response = (
            self.client.table("streaks")
            .select(
                "current_streak, best_streak, last_logged_date, grace_used_this_week"
            )
            .eq("id", _STREAK_ROW_ID)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        last_logged = row.get("last_logged_date")
        return StreakState(
            current_streak=int(row.get("current_streak", 0)),
            best_streak=int(row.get("best_streak", 0)),
            last_logged_date=date.fromisoformat(last_logged) if last_logged else None,
            grace_used_this_week=bool(row.get("grace_used_this_week", False)),
        )

    def save_streak(self, state: StreakState) -> None:
        """Upsert the streak row."""
        self.client.table("streaks").upsert(
            {
                "id": _STREAK_ROW_ID,
                "current_streak": state.current_streak,
                "best_streak": state.best_streak,
                "last_logged_date": (
                    state.last_logged_date.isoformat()
                    if state.last_logged_date
                    else None
                ),
                "grace_used_this_week": state.grace_used_this_week,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()
