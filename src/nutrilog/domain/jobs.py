"""Domain models for pending analysis jobs."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from nutrilog.domain.analysis import MealAnalysis


class JobStatus(StrEnum):
    """Lifecycle state of a pending job."""

    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class PendingJob:
    """A photo analysis that has not been committed to the log yet.

    ``result`` is present iff the job is Done and ``error`` iff it is in Error.
    ``attempt`` increases on every dispatch so late classifier resolutions for
    an earlier attempt can be recognised and dropped.
    """

    id: UUID
    image_ref: str | None
    payload: bytes
    created_at: datetime
    status: JobStatus
    attempt: int = 1
    result: MealAnalysis | None = None
    error: str | None = None
    source_entry_id: UUID | None = None
