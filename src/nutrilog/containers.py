"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrilog.adapters.openai_vision_client import OpenAIVisionClient
from nutrilog.adapters.supabase_log_repository import SupabaseLogRepository
from nutrilog.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutrilog.adapters.supabase_streak_repository import SupabaseStreakRepository
from nutrilog.config import Settings, parse_auto_commit_confidence
from nutrilog.services.analysis import AnalysisService
from nutrilog.services.events import AnalysisFinished, EventBus
from nutrilog.services.jobs import AnalysisJobQueue
from nutrilog.services.log_store import LogStore
from nutrilog.services.profile import ProfileService
from nutrilog.services.reconciliation import AutoCommitPolicy, ReconciliationService
from nutrilog.services.stats import StatsService
from nutrilog.services.streak import StreakService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    event_bus: EventBus
    analysis_service: AnalysisService
    job_queue: AnalysisJobQueue
    log_store: LogStore
    streak_service: StreakService
    reconciliation_service: ReconciliationService
    stats_service: StatsService
    profile_service: ProfileService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    log_repository = SupabaseLogRepository(supabase_client)
    streak_repository = SupabaseStreakRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
    analysis_service = AnalysisService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    event_bus = EventBus()
    job_queue = AnalysisJobQueue(analysis_service=analysis_service, events=event_bus)
    log_store = LogStore(
        log_repository, recent_limit=resolved_settings.recent_meals_limit
    )
    streak_service = StreakService(streak_repository)
    reconciliation_service = ReconciliationService(
        queue=job_queue,
        log_store=log_store,
        streak_service=streak_service,
        events=event_bus,
        timezone_name=resolved_settings.timezone,
    )
    auto_commit = parse_auto_commit_confidence(
        resolved_settings.auto_commit_confidence
    )
    if auto_commit is not None:
        event_bus.subscribe(
            AnalysisFinished,
            AutoCommitPolicy(reconciliation_service, min_confidence=auto_commit),
        )
    stats_service = StatsService(log_store)
    profile_service = ProfileService(
        profile_repository, timezone_name=resolved_settings.timezone
    )

    async def close_resources() -> None:
        await job_queue.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        event_bus=event_bus,
        analysis_service=analysis_service,
        job_queue=job_queue,
        log_store=log_store,
        streak_service=streak_service,
        reconciliation_service=reconciliation_service,
        stats_service=stats_service,
        profile_service=profile_service,
        close_resources=close_resources,
    )
