"""Jobs and the typed payloads carried by simulation events."""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Union


class JobState(IntEnum):
    """Lifecycle stage recorded on a job.

    Advisory only: where a job really is follows from the queue or table that
    holds it.
    """
    ARRIVED = 1
    ENTERED = 2
    MEMORY_READY = 3
    RUNNING = 4
    CPU_FREED = 5
    MEMORY_FREED = 6


@dataclass
class Job:
    """A job competing for memory and CPU time.

    Attributes:
        id: Job identifier
        state: Last lifecycle stage reached
        memory_size: Contiguous memory the job needs
        cpu_time: Total CPU demand in time units
    """
    id: int
    state: JobState
    memory_size: int
    cpu_time: int

    def __post_init__(self):
        """Validate job demands."""
        if self.memory_size <= 0:
            raise ValueError("memory_size must be positive")
        if self.cpu_time <= 0:
            raise ValueError("cpu_time must be positive")

    def copy(self) -> "Job":
        """Return an independent copy of this job."""
        return replace(self)

    def __repr__(self) -> str:
        return (f"Job(id={self.id}, state={self.state.name}, "
                f"mem={self.memory_size}, cpu={self.cpu_time})")


@dataclass(frozen=True)
class JobArrival:
    """A new job shows up; the job object is built by the handler."""
    job_id: int
    memory_size: int
    cpu_time: int


@dataclass(frozen=True)
class JobPayload:
    """Base for payloads that carry a job snapshot."""
    job: Job


class JobEntrance(JobPayload):
    pass


class RequestMemory(JobPayload):
    pass


class RequestCPU(JobPayload):
    pass


class PauseJob(JobPayload):
    pass


class EndProcess(JobPayload):
    pass


class FreeCPU(JobPayload):
    pass


class FreeMemory(JobPayload):
    pass


class ExitSystem(JobPayload):
    pass


@dataclass(frozen=True)
class Default:
    """Payload of events that carry nothing (markers, unknown names)."""


Payload = Union[
    JobArrival,
    JobEntrance,
    RequestMemory,
    RequestCPU,
    PauseJob,
    EndProcess,
    FreeCPU,
    FreeMemory,
    ExitSystem,
    Default,
]
