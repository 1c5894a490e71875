"""Pending analysis job queue.

Each dispatch runs as its own asyncio task. When the classifier resolves, the
task hands a ``JobResolved`` message to the queue's reducer, which is the only
place job state changes after submission. Transitions are synchronous, so no
partially applied state is ever visible.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from nutrilog.domain.analysis import AnalysisOutcome, FoodItemEstimate, MealAnalysis
from nutrilog.domain.entries import LogEntry
from nutrilog.domain.jobs import JobStatus, PendingJob
from nutrilog.services.analysis import AnalysisService
from nutrilog.services.events import AnalysisFinished, EventBus

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class JobResolved:
    """Classifier outcome for one dispatch attempt of a job."""

    job_id: UUID
    attempt: int
    outcome: AnalysisOutcome


@dataclass
class AnalysisJobQueue:
    """Tracks pending jobs and drives each through its state machine."""

    analysis_service: AnalysisService
    events: EventBus
    clock: Callable[[], datetime] = _utcnow
    _jobs: dict[UUID, PendingJob] = field(default_factory=dict, init=False)
    _inflight: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def submit(self, image_ref: str | None, payload: bytes) -> UUID:
        """Create a job in Analyzing and dispatch it without waiting."""
        job = PendingJob(
            id=uuid4(),
            image_ref=image_ref,
            payload=payload,
            created_at=self.clock(),
            status=JobStatus.ANALYZING,
        )
        self._jobs[job.id] = job
        self._dispatch(job)
        _logger.info("Job submitted: job_id=%s", job.id)
        return job.id

    def retry(self, job_id: UUID) -> bool:
        """Re-dispatch an Error job with its stored payload.

        Returns False without changing anything when the job is gone or not in
        Error, since the caller may already have retried or discarded it.
        """
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.ERROR:
            return False
        retried = replace(
            job,
            status=JobStatus.ANALYZING,
            attempt=job.attempt + 1,
            result=None,
            error=None,
        )
        self._jobs[job_id] = retried
        self._dispatch(retried)
        _logger.info("Job retried: job_id=%s attempt=%s", job_id, retried.attempt)
        return True

    def discard(self, job_id: UUID) -> bool:
        """Remove a job regardless of its state."""
        removed = self._jobs.pop(job_id, None)
        if removed is not None:
            _logger.info("Job discarded: job_id=%s status=%s", job_id, removed.status)
        return removed is not None

    def open_entry(self, entry: LogEntry) -> UUID:
        """Create a Done job mirroring a committed entry for viewing or editing."""
        item = FoodItemEstimate(
            name=entry.name,
            portion="",
            calories_min=entry.calories,
            calories_max=entry.calories,
            protein_min=entry.protein_g,
            protein_max=entry.protein_g,
            carbs_min=entry.carbs_g,
            carbs_max=entry.carbs_g,
            fat_min=entry.fat_g,
            fat_max=entry.fat_g,
        )
        analysis = MealAnalysis(
            items=[item],
            total_calories_min=entry.calories,
            total_calories_max=entry.calories,
            total_protein_min=entry.protein_g,
            total_protein_max=entry.protein_g,
            confidence="high",
        )
        job = PendingJob(
            id=uuid4(),
            image_ref=entry.image_ref,
            payload=b"",
            created_at=self.clock(),
            status=JobStatus.DONE,
            result=analysis,
            source_entry_id=entry.id,
        )
        self._jobs[job.id] = job
        return job.id

    def get(self, job_id: UUID) -> PendingJob | None:
        """Return a job snapshot, if present."""
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[PendingJob]:
        """Return job snapshots, oldest first."""
        return sorted(self._jobs.values(), key=lambda job: job.created_at)

    async def wait(self, job_id: UUID) -> PendingJob | None:
        """Wait until the job leaves Analyzing (or disappears)."""
        while True:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.ANALYZING or not self._inflight:
                return job
            await asyncio.wait(set(self._inflight), return_when=asyncio.FIRST_COMPLETED)

    async def drain(self) -> None:
        """Wait for every in-flight classifier call to finish."""
        while self._inflight:
            await asyncio.gather(*set(self._inflight))

    async def close(self) -> None:
        """Cancel outstanding classifier calls."""
        tasks = set(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def apply(self, message: JobResolved) -> PendingJob | None:
        """Apply a classifier resolution, returning the updated job.

        Resolutions for discarded jobs or superseded attempts are dropped.
        """
        job = self._jobs.get(message.job_id)
        if (
            job is None
            or job.status != JobStatus.ANALYZING
            or job.attempt != message.attempt
        ):
            _logger.info(
                "Dropping stale resolution: job_id=%s attempt=%s",
                message.job_id,
                message.attempt,
            )
            return None
        outcome = message.outcome
        if outcome.ok:
            updated = replace(job, status=JobStatus.DONE, result=outcome.analysis)
        else:
            updated = replace(
                job,
                status=JobStatus.ERROR,
                error=outcome.error or "Analysis failed.",
            )
        self._jobs[job.id] = updated
        _logger.info("Job resolved: job_id=%s status=%s", job.id, updated.status)
        return updated

    def _dispatch(self, job: PendingJob) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run(job.id, job.attempt, job.payload)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run(self, job_id: UUID, attempt: int, payload: bytes) -> None:
        outcome = await self.analysis_service.analyze(payload)
        updated = self.apply(JobResolved(job_id, attempt, outcome))
        if updated is not None:
            await self.events.publish(AnalysisFinished(updated))
