"""Supabase repository for the profile and weight history."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from nutrilog.domain.profile import (
    ActivityLevel,
    Goal,
    Sex,
    UserProfile,
    WeightEntry,
)
from nutrilog.services.profile import ProfileRepository

_PROFILE_ROW_ID = 1


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the single profile row."""

    client: Client

    def get_profile(self) -> UserProfile | None:
        """Return the stored profile."""
        response = (
            self.client.table("profiles")
            .select(
                "name, age, sex, height_cm, weight_kg, goal_weight_kg, goal, "
                "activity_level, weekly_change_kg"
            )
            .eq("id", _PROFILE_ROW_ID)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        weekly_change = row.get("weekly_change_kg")
        return UserProfile(
            name=row.get("name"),
            age=int(row["age"]),
            sex=Sex(row["sex"]),
            height_cm=float(row["height_cm"]),
            weight_kg=float(row["weight_kg"]),
            goal_weight_kg=float(row["goal_weight_kg"]),
            goal=Goal(row["goal"]),
            activity_level=ActivityLevel(row["activity_level"]),
            weekly_change_kg=float(weekly_change) if weekly_change is not None else None,
        )

    def save_profile(self, profile: UserProfile) -> None:
        """Upsert the profile row."""
        self.client.table("profiles").upsert(
            {
                "id": _PROFILE_ROW_ID,
                "name": profile.name,
                "age": profile.age,
                "sex": str(profile.sex),
                "height_cm": profile.height_cm,
                "weight_kg": profile.weight_kg,
                "goal_weight_kg": profile.goal_weight_kg,
                "goal": str(profile.goal),
                "activity_level": str(profile.activity_level),
                "weekly_change_kg": profile.weekly_change_kg,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def list_weight_history(self) -> list[WeightEntry]:
        """Return weight entries, oldest first."""
        response = (
            self.client.table("weight_history")
            .select("day, weight_kg, recorded_at")
            .order("day", desc=False)
            .execute()
        )
        return [
            WeightEntry(
                day=date.fromisoformat(str(row["day"])),
                weight_kg=float(row["weight_kg"]),
                recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
            )
            for row in response.data or []
        ]

    def upsert_weight_entry(self, entry: WeightEntry) -> None:
        """Insert or replace the weight for a day."""
        self.client.table("weight_history").upsert(
            {
                "day": entry.day.isoformat(),
                "weight_kg": entry.weight_kg,
                "recorded_at": entry.recorded_at.isoformat(),
            },
            on_conflict="day",
        ).execute()
