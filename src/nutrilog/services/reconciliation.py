"""Turns finished analyses and manual edits into committed log entries."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from nutrilog.domain.analysis import MealAnalysis
from nutrilog.domain.entries import ZERO_TOTALS, EditedItem, LogEntry, MacroTotals
from nutrilog.domain.errors import (
    EmptyMealError,
    EntryNotFoundError,
    JobNotFoundError,
    JobNotReadyError,
    MealNotFoundError,
)
from nutrilog.domain.jobs import JobStatus, PendingJob
from nutrilog.domain.library import FavoriteMeal, normalize_name
from nutrilog.services.events import AnalysisFinished, EventBus, FoodEntryAdded
from nutrilog.services.jobs import AnalysisJobQueue
from nutrilog.services.log_store import LogStore
from nutrilog.services.streak import StreakService
from nutrilog.services.targets import round_half_up

_logger = logging.getLogger(__name__)

_CONFIDENCE_RANK = {"low": 0, "medium": 1, "high": 2}


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def items_from_analysis(analysis: MealAnalysis) -> list[EditedItem]:
    """Resolve each analysed item to the midpoint of its ranges."""
    return [
        EditedItem(
            name=item.name,
            portion=item.portion,
            calories=_midpoint(item.calories_min, item.calories_max),
            protein_g=_midpoint(item.protein_min, item.protein_max),
            carbs_g=_midpoint(item.carbs_min, item.carbs_max),
            fat_g=_midpoint(item.fat_min, item.fat_max),
        )
        for item in analysis.items
    ]


def summarize(items: list[EditedItem]) -> tuple[str, MacroTotals]:
    """Return the committed name and aggregate totals for items."""
    if not items:
        raise EmptyMealError("A meal needs at least one item")
    total = ZERO_TOTALS
    for item in items:
        total = total + MacroTotals(
            calories=item.calories,
            protein_g=item.protein_g,
            carbs_g=item.carbs_g,
            fat_g=item.fat_g,
        )
    return ", ".join(item.name for item in items), total


def _midpoint(low: float, high: float) -> int:
    return round_half_up((low + high) / 2)


@dataclass
class ReconciliationService:
    """Commits meals to the log and feeds recents and the streak."""

    queue: AnalysisJobQueue
    log_store: LogStore
    streak_service: StreakService
    events: EventBus
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = _utcnow

    async def commit_job(
        self, job_id: UUID, edits: list[EditedItem] | None = None
    ) -> LogEntry:
        """Commit a pending job, optionally with user-edited items.

        Without edits the job must be Done. With edits it may be Done or
        Error. An empty item list is rejected; discard the job instead.
        """
        job = self.queue.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        items = self._resolve_items(job, edits)
        name, totals = summarize(items)

        if job.source_entry_id is not None:
            return await self._reconcile_existing(
                job, name, totals, edited=edits is not None
            )
        return await self._commit_new(job, name, totals)

    async def record_manual_entry(
        self, items: list[EditedItem], image_ref: str | None = None
    ) -> LogEntry:
        """Commit a manually entered meal without a pending job."""
        name, totals = summarize(items)
        entry = self._build_entry(name, totals, image_ref)
        self.log_store.add_entry(entry)
        await self._after_commit(entry)
        return entry

    async def log_saved_meal(self, name: str) -> LogEntry:
        """Log a favorite or recent meal again by name."""
        key = normalize_name(name)
        saved = next(
            (meal for meal in self.log_store.favorites() if meal.key == key), None
        ) or next(
            (meal for meal in self.log_store.recent_meals() if meal.key == key), None
        )
        if saved is None:
            raise MealNotFoundError(f"No saved meal named {name!r}")
        item = EditedItem(
            name=saved.name,
            calories=saved.calories,
            protein_g=saved.protein_g,
            carbs_g=saved.carbs_g,
            fat_g=saved.fat_g,
        )
        return await self.record_manual_entry([item])

    def update_entry(self, entry_id: UUID, edits: list[EditedItem]) -> LogEntry:
        """Replace every field of an entry except its identity and time."""
        previous = self.log_store.get_entry(entry_id)
        if previous is None:
            raise EntryNotFoundError(entry_id)
        name, totals = summarize(edits)
        updated = _with_totals(previous, name, totals)
        return self.log_store.update_entry(updated)

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete a committed entry."""
        deleted = self.log_store.delete_entry(entry_id)
        if deleted:
            _logger.info("Entry deleted: entry_id=%s", entry_id)
        return deleted

    def toggle_favorite(self, name: str, totals: MacroTotals) -> bool:
        """Toggle favorite membership, returning True if now a favorite."""
        if self.log_store.remove_favorite(name):
            return False
        self.add_favorite(name, totals)
        return True

    def add_favorite(self, name: str, totals: MacroTotals) -> bool:
        """Add a favorite; a name that is already present is a no-op."""
        return self.log_store.add_favorite(
            FavoriteMeal(
                name=name.strip(),
                calories=totals.calories,
                protein_g=totals.protein_g,
                carbs_g=totals.carbs_g,
                fat_g=totals.fat_g,
                created_at=self.clock(),
            )
        )

    def today(self) -> date:
        """Current calendar date in the configured timezone."""
        return self._local_day(self.clock())

    def _resolve_items(
        self, job: PendingJob, edits: list[EditedItem] | None
    ) -> list[EditedItem]:
        if edits is not None:
            if job.status == JobStatus.ANALYZING:
                raise JobNotReadyError("Job is still being analyzed")
            return list(edits)
        if job.status != JobStatus.DONE or job.result is None:
            raise JobNotReadyError(f"Job is {job.status}, not done")
        return items_from_analysis(job.result)

    async def _commit_new(
        self, job: PendingJob, name: str, totals: MacroTotals
    ) -> LogEntry:
        entry = self._build_entry(name, totals, job.image_ref)
        self.log_store.add_entry(entry)
        self.queue.discard(job.id)
        await self._after_commit(entry)
        return entry

    async def _reconcile_existing(
        self, job: PendingJob, name: str, totals: MacroTotals, *, edited: bool
    ) -> LogEntry:
        entry_id = job.source_entry_id
        previous = self.log_store.get_entry(entry_id) if entry_id else None
        if previous is None:
            if edited:
                # Entry was deleted while open; keep the edit as a new entry.
                return await self._commit_new(job, name, totals)
            self.queue.discard(job.id)
            raise EntryNotFoundError(entry_id or job.id)
        if not edited or (name == previous.name and totals == previous.totals):
            self.queue.discard(job.id)
            return previous
        replacement = replace(_with_totals(previous, name, totals), id=uuid4())
        self.log_store.replace_entry(previous.id, replacement)
        self.queue.discard(job.id)
        _logger.info(
            "Entry replaced: previous_id=%s entry_id=%s", previous.id, replacement.id
        )
        await self.events.publish(FoodEntryAdded(replacement))
        return replacement

    def _build_entry(
        self, name: str, totals: MacroTotals, image_ref: str | None
    ) -> LogEntry:
        now = self.clock()
        return LogEntry(
            id=uuid4(),
            day=self._local_day(now),
            logged_at=now,
            name=name,
            calories=totals.calories,
            protein_g=totals.protein_g,
            carbs_g=totals.carbs_g,
            fat_g=totals.fat_g,
            image_ref=image_ref,
        )

    async def _after_commit(self, entry: LogEntry) -> None:
        _logger.info(
            "Entry committed: entry_id=%s day=%s calories=%s",
            entry.id,
            entry.day,
            entry.calories,
        )
        try:
            self.log_store.record_recent(entry.name, entry.totals, entry.logged_at)
        except Exception:
            _logger.exception("Failed to update recent meals: entry_id=%s", entry.id)
        try:
            self.streak_service.record_log(entry.day)
        except Exception:
            _logger.exception("Failed to update streak: day=%s", entry.day)
        await self.events.publish(FoodEntryAdded(entry))

    def _local_day(self, moment: datetime) -> date:
        return moment.astimezone(ZoneInfo(self.timezone_name)).date()


def _with_totals(entry: LogEntry, name: str, totals: MacroTotals) -> LogEntry:
    return replace(
        entry,
        name=name,
        calories=totals.calories,
        protein_g=totals.protein_g,
        carbs_g=totals.carbs_g,
        fat_g=totals.fat_g,
    )


@dataclass
class AutoCommitPolicy:
    """Commits finished analyses whose confidence meets a threshold."""

    reconciliation: ReconciliationService
    min_confidence: str = "high"

    async def __call__(self, event: AnalysisFinished) -> None:
        job = event.job
        if (
            job.status != JobStatus.DONE
            or job.result is None
            or not job.result.items
            or job.source_entry_id is not None
        ):
            return
        if _CONFIDENCE_RANK[job.result.confidence] < _CONFIDENCE_RANK.get(
            self.min_confidence, len(_CONFIDENCE_RANK)
        ):
            return
        await self.reconciliation.commit_job(job.id)
