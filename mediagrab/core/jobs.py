"""Job store and job state machine.

A job moves ``starting -> downloading* -> completed`` or into ``error`` from
any non-terminal state. Stored states are immutable snapshots, so readers
never observe a half-written update.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from ..errors import JobNotFoundError, JobStateError
from ..logging import get_logger

logger = get_logger(__name__)

STARTING_MESSAGE = "Iniciando download…"
COMPLETED_MESSAGE = "Download concluído!"


class JobStatus(str, Enum):
    """Lifecycle states of a download job."""

    STARTING = "starting"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


ALLOWED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.STARTING: frozenset(
        {JobStatus.DOWNLOADING, JobStatus.COMPLETED, JobStatus.ERROR}
    ),
    JobStatus.DOWNLOADING: frozenset(
        {JobStatus.DOWNLOADING, JobStatus.COMPLETED, JobStatus.ERROR}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.ERROR: frozenset(),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass(frozen=True)
class JobState:
    """Snapshot of a job at one point in time."""

    status: JobStatus
    message: str
    timestamp: datetime = field(default_factory=utc_now)
    output_file: Optional[str] = None

    @classmethod
    def starting(cls) -> "JobState":
        return cls(JobStatus.STARTING, STARTING_MESSAGE)

    @classmethod
    def downloading(cls, message: str) -> "JobState":
        return cls(JobStatus.DOWNLOADING, message)

    @classmethod
    def completed(cls, filename: str) -> "JobState":
        return cls(JobStatus.COMPLETED, COMPLETED_MESSAGE, output_file=filename)

    @classmethod
    def failed(cls, message: str) -> "JobState":
        return cls(JobStatus.ERROR, message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the status endpoint (``file`` only once completed)."""
        data: Dict[str, Any] = {
            "status": self.status.value,
            "message": self.message,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.output_file is not None:
            data["file"] = self.output_file
        return data


class JobStore(ABC):
    """Storage contract for job states, keyed by job ID."""

    @abstractmethod
    def create(self, job_id: str) -> None:
        """Register a new job in the ``starting`` state."""

    @abstractmethod
    def update(self, job_id: str, state: JobState) -> None:
        """Replace the state of an existing job."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[JobState]:
        """Return the current state, or None for unknown IDs."""

    @staticmethod
    def check_transition(job_id: str, current: JobState, new: JobState) -> None:
        """Raise JobStateError if ``current -> new`` is not allowed."""
        if new.status not in ALLOWED_TRANSITIONS[current.status]:
            raise JobStateError(
                f"Job {job_id} cannot move from {current.status.value} "
                f"to {new.status.value}"
            )


class InMemoryJobStore(JobStore):
    """Process-local job store.

    Entries are never evicted; they live until the process exits.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, JobState] = {}

    def create(self, job_id: str) -> None:
        if job_id in self._jobs:
            raise JobStateError(f"Job {job_id} already exists")
        self._jobs[job_id] = JobState.starting()

    def update(self, job_id: str, state: JobState) -> None:
        current = self._jobs.get(job_id)
        if current is None:
            raise JobNotFoundError(job_id)
        self.check_transition(job_id, current, state)
        self._jobs[job_id] = state
        if state.status.is_terminal:
            logger.info(
                "Job finished",
                job_id=job_id,
                status=state.status.value,
                message=state.message,
            )

    def get(self, job_id: str) -> Optional[JobState]:
        return self._jobs.get(job_id)

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs
