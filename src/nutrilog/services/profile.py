"""User profile service."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from nutrilog.domain.profile import DailyTargets, UserProfile, WeightEntry
from nutrilog.services.targets import check_rate_consistency, compute_targets

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for the profile and weight history."""

    def get_profile(self) -> UserProfile | None:
        """Return the stored profile, if any."""

    def save_profile(self, profile: UserProfile) -> None:
        """Persist the profile."""

    def list_weight_history(self) -> list[WeightEntry]:
        """Return weight entries, oldest first."""

    def upsert_weight_entry(self, entry: WeightEntry) -> None:
        """Insert or replace the weight entry for its day."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ProfileService:
    """Profile updates, weight history and target derivation."""

    repository: ProfileRepository
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = _utcnow

    def get_profile(self) -> UserProfile | None:
        """Return the stored profile."""
        return self.repository.get_profile()

    def update_profile(self, profile: UserProfile) -> DailyTargets:
        """Persist a profile and return the recomputed targets.

        A weight change is recorded in the weight history once per day; later
        changes on the same day overwrite that day's entry.
        """
        previous = self.repository.get_profile()
        self.repository.save_profile(profile)
        self._record_weight(previous, profile)
        consistency = check_rate_consistency(profile)
        if not consistency.consistent:
            _logger.warning(
                "Weekly rate disagrees with goal adjustment: fixed=%s rate=%s",
                consistency.fixed_adjustment,
                consistency.rate_adjustment,
            )
        return compute_targets(profile)

    def targets(self) -> DailyTargets | None:
        """Return targets for the stored profile, if one exists."""
        profile = self.repository.get_profile()
        if profile is None:
            return None
        return compute_targets(profile)

    def weight_history(self) -> list[WeightEntry]:
        """Return recorded weights."""
        return self.repository.list_weight_history()

    def _record_weight(self, previous: UserProfile | None, profile: UserProfile) -> None:
        now = self.clock()
        today = now.astimezone(ZoneInfo(self.timezone_name)).date()
        history = self.repository.list_weight_history()
        existing = next((entry for entry in history if entry.day == today), None)
        if existing is not None:
            if existing.weight_kg == profile.weight_kg:
                return
        elif previous is None or previous.weight_kg == profile.weight_kg:
            return
        self.repository.upsert_weight_entry(
            WeightEntry(day=today, weight_kg=profile.weight_kg, recorded_at=now)
        )
