"""Shared test fixtures."""

import asyncio
import base64
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID

import pytest

from nutrilog.config import Settings
from nutrilog.containers import AppContainer
from nutrilog.domain.entries import LogEntry
from nutrilog.domain.library import FavoriteMeal, RecentMeal
from nutrilog.domain.profile import UserProfile, WeightEntry
from nutrilog.domain.streak import StreakState
from nutrilog.services.analysis import AnalysisService, VisionClient
from nutrilog.services.events import EventBus
from nutrilog.services.jobs import AnalysisJobQueue
from nutrilog.services.log_store import LogRepository, LogStore
from nutrilog.services.profile import ProfileRepository, ProfileService
from nutrilog.services.reconciliation import ReconciliationService
from nutrilog.services.stats import StatsService
from nutrilog.services.streak import StreakRepository, StreakService

FIXED_NOW = datetime(2026, 10, 18, 12, 30, tzinfo=UTC)


def meal_payload(confidence: str = "high") -> dict[str, object]:
    """Classifier payload for a two-item meal totalling 800 kcal at midpoints."""
    return {
        "items": [
            {
                "name": "Rice",
                "portion": "1 cup",
                "calories_min": 450,
                "calories_max": 550,
                "protein_min": 8,
                "protein_max": 12,
                "carbs_min": 100,
                "carbs_max": 120,
                "fat_min": 1,
                "fat_max": 3,
                "sugar_min": 0,
                "sugar_max": 1,
                "fiber_min": 1,
                "fiber_max": 2,
                "sodium_min": 0,
                "sodium_max": 10,
            },
            {
                "name": "Chicken",
                "portion": "150 g",
                "calories_min": 250,
                "calories_max": 350,
                "protein_min": 30,
                "protein_max": 40,
                "carbs_min": 0,
                "carbs_max": 0,
                "fat_min": 5,
                "fat_max": 9,
                "sugar_min": 0,
                "sugar_max": 0,
                "fiber_min": 0,
                "fiber_max": 0,
                "sodium_min": 60,
                "sodium_max": 90,
            },
        ],
        "total_calories_min": 700,
        "total_calories_max": 900,
        "total_protein_min": 38,
        "total_protein_max": 52,
        "confidence": confidence,
        "tips": ["Shoot from above"],
    }


@dataclass
class FixedClock:
    """Clock returning a settable instant."""

    now: datetime = FIXED_NOW

    def __call__(self) -> datetime:
        return self.now


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(default_factory=meal_payload)
    calls: int = 0

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls += 1
        return self.payload


@dataclass
class FailingVisionClient(VisionClient):
    """Vision client whose calls fail with the configured exception."""

    error: Exception = field(default_factory=lambda: RuntimeError("network down"))
    calls: int = 0

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        self.calls += 1
        raise self.error


@dataclass
class GatedVisionClient(VisionClient):
    """Vision client that answers only once its gate for a payload opens.

    Each image payload gets its own gate, so tests control the order in which
    concurrent analyses resolve.
    """

    responses: dict[bytes, dict[str, object] | Exception] = field(
        default_factory=dict
    )
    gates: dict[bytes, asyncio.Event] = field(default_factory=dict)

    def gate(self, payload: bytes) -> asyncio.Event:
        return self.gates.setdefault(payload, asyncio.Event())

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        payload = _payload_from_data_url(image_data_url)
        await self.gate(payload).wait()
        response = self.responses.get(payload, meal_payload())
        if isinstance(response, Exception):
            raise response
        return response


def _payload_from_data_url(data_url: str) -> bytes:
    return base64.b64decode(data_url.split(",", 1)[1])


@dataclass
class InMemoryLogRepository(LogRepository):
    """In-memory log repository for tests."""

    entries: dict[UUID, LogEntry] = field(default_factory=dict)
    favorites: list[FavoriteMeal] = field(default_factory=list)
    recents: list[RecentMeal] = field(default_factory=list)
    fail_writes: bool = False
    fail_recents: bool = False

    def add_entry(self, entry: LogEntry) -> None:
        if self.fail_writes:
            raise RuntimeError("Failed to create log entry")
        self.entries[entry.id] = entry

    def get_entry(self, entry_id: UUID) -> LogEntry | None:
        return self.entries.get(entry_id)

    def update_entry(self, entry: LogEntry) -> None:
        if self.fail_writes:
            raise RuntimeError("Failed to update log entry")
        self.entries[entry.id] = entry

    def delete_entry(self, entry_id: UUID) -> bool:
        return self.entries.pop(entry_id, None) is not None

    def list_entries(self, start: date, end: date) -> list[LogEntry]:
        return sorted(
            (entry for entry in self.entries.values() if start <= entry.day < end),
            key=lambda entry: entry.logged_at,
        )

    def list_recent_entries(self, limit: int) -> list[LogEntry]:
        return sorted(
            self.entries.values(), key=lambda entry: entry.logged_at, reverse=True
        )[:limit]

    def list_logged_days(self) -> list[date]:
        return sorted({entry.day for entry in self.entries.values()})

    def list_favorites(self) -> list[FavoriteMeal]:
        return list(self.favorites)

    def add_favorite(self, favorite: FavoriteMeal) -> None:
        self.favorites.append(favorite)

    def delete_favorite(self, key: str) -> None:
        self.favorites = [meal for meal in self.favorites if meal.key != key]

    def list_recent_meals(self) -> list[RecentMeal]:
        return list(self.recents)

    def upsert_recent_meal(self, meal: RecentMeal) -> None:
        if self.fail_recents:
            raise RuntimeError("Failed to save recent meal")
        others = [recent for recent in self.recents if recent.key != meal.key]
        self.recents = [meal, *others]

    def delete_recent_meals(self, keys: list[str]) -> None:
        if self.fail_recents:
            raise RuntimeError("Failed to delete recent meals")
        self.recents = [meal for meal in self.recents if meal.key not in keys]


@dataclass
class InMemoryStreakRepository(StreakRepository):
    """In-memory streak repository for tests."""

    state: StreakState | None = None
    saves: int = 0
    fail_writes: bool = False

    def get_streak(self) -> StreakState | None:
        return self.state

    def save_streak(self, state: StreakState) -> None:
        if self.fail_writes:
            raise RuntimeError("Failed to save streak")
        self.saves += 1
        self.state = state


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profile: UserProfile | None = None
    weights: dict[date, WeightEntry] = field(default_factory=dict)

    def get_profile(self) -> UserProfile | None:
        return self.profile

    def save_profile(self, profile: UserProfile) -> None:
        self.profile = profile

    def list_weight_history(self) -> list[WeightEntry]:
        return [self.weights[day] for day in sorted(self.weights)]

    def upsert_weight_entry(self, entry: WeightEntry) -> None:
        self.weights[entry.day] = entry


def build_test_container(
    settings: Settings,
    vision_client: VisionClient | None = None,
    clock: FixedClock | None = None,
) -> AppContainer:
    """Wire the application services over in-memory repositories."""
    resolved_clock = clock or FixedClock()
    analysis_service = AnalysisService(
        client=vision_client or FakeVisionClient(),
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )
    event_bus = EventBus()
    job_queue = AnalysisJobQueue(
        analysis_service=analysis_service, events=event_bus, clock=resolved_clock
    )
    log_store = LogStore(
        InMemoryLogRepository(), recent_limit=settings.recent_meals_limit
    )
    streak_service = StreakService(InMemoryStreakRepository())
    reconciliation_service = ReconciliationService(
        queue=job_queue,
        log_store=log_store,
        streak_service=streak_service,
        events=event_bus,
        timezone_name=settings.timezone,
        clock=resolved_clock,
    )
    profile_service = ProfileService(
        InMemoryProfileRepository(),
        timezone_name=settings.timezone,
        clock=resolved_clock,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        event_bus=event_bus,
        analysis_service=analysis_service,
        job_queue=job_queue,
        log_store=log_store,
        streak_service=streak_service,
        reconciliation_service=reconciliation_service,
        stats_service=StatsService(log_store),
        profile_service=profile_service,
        close_resources=close_resources,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        api_token="api-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(
    settings: Settings, vision_client: FakeVisionClient, clock: FixedClock
) -> AppContainer:
    return build_test_container(settings, vision_client, clock)


@pytest.fixture
def log_repository(container: AppContainer) -> InMemoryLogRepository:
    repository = container.log_store.repository
    assert isinstance(repository, InMemoryLogRepository)
    return repository


@pytest.fixture
def streak_repository(container: AppContainer) -> InMemoryStreakRepository:
    repository = container.streak_service.repository
    assert isinstance(repository, InMemoryStreakRepository)
    return repository
