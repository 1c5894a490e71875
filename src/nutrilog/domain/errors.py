"""Domain errors raised by the meal pipeline."""

from uuid import UUID


class JobNotFoundError(LookupError):
    """Raised when a pending job does not exist."""

    def __init__(self, job_id: UUID) -> None:
        super().__init__(f"Pending job {job_id} not found")
        self.job_id = job_id


class EntryNotFoundError(LookupError):
    """Raised when a committed log entry does not exist."""

    def __init__(self, entry_id: UUID) -> None:
        super().__init__(f"Log entry {entry_id} not found")
        self.entry_id = entry_id


class JobNotReadyError(ValueError):
    """Raised when a job is not in a state that allows the operation."""


class EmptyMealError(ValueError):
    """Raised when a commit has no items."""


class MealNotFoundError(LookupError):
    """Raised when no favorite or recent meal matches a name."""
