"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutrilog.api.models import (
    CommitJobRequest,
    EntryItemsRequest,
    FavoriteRequest,
    ProfileRequest,
    SavedMealRequest,
    SubmitPhotoRequest,
)
from nutrilog.api.security import require_api_token
from nutrilog.app_logging import configure_logging
from nutrilog.containers import AppContainer
from nutrilog.domain.entries import LogEntry
from nutrilog.domain.errors import EmptyMealError, EntryNotFoundError, JobNotReadyError
from nutrilog.domain.jobs import PendingJob
from nutrilog.services.targets import projected_goal_date, today_progress


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    router = APIRouter(dependencies=[Depends(require_api_token)])

    @app.exception_handler(LookupError)
    async def not_found(request: Request, exc: LookupError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(JobNotReadyError)
    async def not_ready(request: Request, exc: JobNotReadyError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(EmptyMealError)
    async def empty_meal(request: Request, exc: EmptyMealError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @router.post("/jobs", status_code=status.HTTP_202_ACCEPTED)
    async def submit_photo(body: SubmitPhotoRequest) -> dict[str, object]:
        """Queue a meal photo for analysis and return its job id at once."""
        try:
            payload = base64.b64decode(body.image_base64, validate=True)
        except binascii.Error as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="image_base64 is not valid base64",
            ) from exc
        job_id = container.job_queue.submit(body.image_ref, payload)
        return {"job_id": job_id}

    @router.get("/jobs")
    async def list_jobs() -> dict[str, object]:
        """Return pending jobs, oldest first."""
        return {"jobs": [_job_payload(job) for job in container.job_queue.list_jobs()]}

    @router.get("/jobs/{job_id}")
    async def get_job(job_id: UUID, wait: bool = False) -> dict[str, object]:
        """Return a pending job, optionally waiting for its analysis."""
        if wait:
            job = await container.job_queue.wait(job_id)
        else:
            job = container.job_queue.get(job_id)
        if job is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return _job_payload(job)

    @router.post("/jobs/{job_id}/retry")
    async def retry_job(job_id: UUID) -> dict[str, object]:
        """Retry a failed job; other states are left untouched."""
        return {"retried": container.job_queue.retry(job_id)}

    @router.delete("/jobs/{job_id}")
    async def discard_job(job_id: UUID) -> dict[str, object]:
        """Discard a pending job in any state."""
        return {"discarded": container.job_queue.discard(job_id)}

    @router.post("/jobs/{job_id}/commit")
    async def commit_job(
        job_id: UUID, body: CommitJobRequest | None = None
    ) -> dict[str, object]:
        """Commit a pending job to the food log."""
        edits = body.items if body is not None else None
        entry = await container.reconciliation_service.commit_job(job_id, edits)
        return _entry_payload(entry)

    @router.post("/entries/{entry_id}/open")
    async def open_entry(entry_id: UUID) -> dict[str, object]:
        """Open a committed entry as a Done job for viewing or editing."""
        entry = container.log_store.get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        job_id = container.job_queue.open_entry(entry)
        job = container.job_queue.get(job_id)
        return _job_payload(job) if job else {"job_id": job_id}

    @router.post("/entries", status_code=status.HTTP_201_CREATED)
    async def create_entry(body: EntryItemsRequest) -> dict[str, object]:
        """Log a manually entered meal."""
        entry = await container.reconciliation_service.record_manual_entry(
            body.items, body.image_ref
        )
        return _entry_payload(entry)

    @router.post("/entries/saved", status_code=status.HTTP_201_CREATED)
    async def log_saved_meal(body: SavedMealRequest) -> dict[str, object]:
        """Log a favorite or recent meal again."""
        entry = await container.reconciliation_service.log_saved_meal(body.name)
        return _entry_payload(entry)

    @router.put("/entries/{entry_id}")
    async def update_entry(
        entry_id: UUID, body: EntryItemsRequest
    ) -> dict[str, object]:
        """Overwrite a committed entry."""
        entry = container.reconciliation_service.update_entry(entry_id, body.items)
        return _entry_payload(entry)

    @router.delete("/entries/{entry_id}")
    async def delete_entry(entry_id: UUID) -> dict[str, object]:
        """Delete a committed entry."""
        if not container.reconciliation_service.delete_entry(entry_id):
            raise EntryNotFoundError(entry_id)
        return {"deleted": True}

    @router.get("/today")
    async def today() -> dict[str, object]:
        """Return today's totals, entries, targets and streak."""
        day = container.reconciliation_service.today()
        totals, entries = container.stats_service.get_today_with_entries(day)
        targets = container.profile_service.targets()
        progress = (
            today_progress(targets, container.log_store.totals_for_day(day))
            if targets
            else None
        )
        return {
            "totals": totals,
            "entries": [_entry_payload(entry) for entry in entries],
            "targets": targets,
            "progress": progress,
            "streak": container.streak_service.status(day),
        }

    @router.get("/week")
    async def week() -> dict[str, object]:
        """Return week-to-date totals and averages."""
        day = container.reconciliation_service.today()
        return {"summary": container.stats_service.get_week(day)}

    @router.get("/month")
    async def month() -> dict[str, object]:
        """Return month totals and averages."""
        day = container.reconciliation_service.today()
        return {"summary": container.stats_service.get_month(day)}

    @router.get("/history")
    async def history(limit: int = 10) -> dict[str, object]:
        """Return the latest log entries."""
        entries = container.stats_service.get_history(max(1, min(limit, 100)))
        return {"entries": [_entry_payload(entry) for entry in entries]}

    @router.get("/streak")
    async def streak() -> dict[str, object]:
        """Return the streak status for today."""
        day = container.reconciliation_service.today()
        return {"streak": container.streak_service.status(day)}

    @router.post("/streak/rebuild")
    async def rebuild_streak() -> dict[str, object]:
        """Recompute the streak from the logged days."""
        state = container.streak_service.rebuild(container.log_store.logged_days())
        logger.info("Streak rebuilt: current=%s", state.current_streak)
        return {"streak": state}

    @router.get("/favorites")
    async def favorites() -> dict[str, object]:
        """Return favorite meals."""
        return {"favorites": container.log_store.favorites()}

    @router.post("/favorites")
    async def toggle_favorite(body: FavoriteRequest) -> dict[str, object]:
        """Toggle a meal's favorite membership."""
        is_favorite = container.reconciliation_service.toggle_favorite(
            body.name, body.totals()
        )
        return {"name": body.name, "favorite": is_favorite}

    @router.get("/favorites/suggestions")
    async def favorite_suggestions() -> dict[str, object]:
        """Return recent meals often logged but not yet favorites."""
        threshold = container.settings.favorite_suggestion_threshold
        return {"suggestions": container.log_store.favorite_suggestions(threshold)}

    @router.get("/recents")
    async def recents() -> dict[str, object]:
        """Return recent meals, most recent first."""
        return {"recents": container.log_store.recent_meals()}

    @router.get("/profile")
    async def get_profile() -> dict[str, object]:
        """Return the stored profile and goal projection."""
        profile = container.profile_service.get_profile()
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        projected = None
        if profile.weekly_change_kg:
            projected = projected_goal_date(
                profile.weight_kg,
                profile.goal_weight_kg,
                profile.weekly_change_kg,
                container.reconciliation_service.today(),
            )
        return {"profile": profile, "projected_goal_date": projected}

    @router.put("/profile")
    async def update_profile(body: ProfileRequest) -> dict[str, object]:
        """Save the profile and return the recomputed targets."""
        profile = body.to_profile()
        targets = container.profile_service.update_profile(profile)
        return {"profile": profile, "targets": targets}

    @router.get("/targets")
    async def targets() -> dict[str, object]:
        """Return daily targets for the stored profile."""
        daily_targets = container.profile_service.targets()
        if daily_targets is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"targets": daily_targets}

    @router.get("/weight-history")
    async def weight_history() -> dict[str, object]:
        """Return recorded weights, oldest first."""
        return {"weights": container.profile_service.weight_history()}

    app.include_router(router)
    return app


def _job_payload(job: PendingJob) -> dict[str, object]:
    return {
        "id": job.id,
        "status": job.status,
        "attempt": job.attempt,
        "image_ref": job.image_ref,
        "created_at": job.created_at,
        "result": job.result.model_dump() if job.result else None,
        "error": job.error,
        "source_entry_id": job.source_entry_id,
    }


def _entry_payload(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "day": entry.day,
        "logged_at": entry.logged_at,
        "name": entry.name,
        "calories": entry.calories,
        "protein_g": entry.protein_g,
        "carbs_g": entry.carbs_g,
        "fat_g": entry.fat_g,
        "image_ref": entry.image_ref,
    }
