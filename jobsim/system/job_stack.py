"""Last-in-first-out waiting lists used to move jobs between stages."""

from typing import List, Optional

from ..core.payloads import Job


class EmptyQueueError(IndexError):
    """Raised when taking a job from an empty stack.

    Callers are expected to check ``is_empty`` first, so this signals a bug.
    """


class JobStack:
    """Stack of waiting jobs: the most recently pushed job is served first.

    Jobs are stored by value; mutating a job after pushing it does not change
    the stored copy.
    """

    def __init__(self, name: str):
        """Initialize an empty stack.

        Args:
            name: Human readable name used in errors and snapshots
        """
        self.name = name
        self._jobs: List[Job] = []

    def push(self, job: Job) -> None:
        self._jobs.append(job.copy())

    def pop(self) -> Job:
        """Remove and return the most recently pushed job.

        Raises:
            EmptyQueueError: If the stack is empty
        """
        if not self._jobs:
            raise EmptyQueueError(f"Cannot remove a job from empty {self.name} queue")
        return self._jobs.pop()

    def pop_if(self, job_id: int) -> Optional[Job]:
        """Pop the top job only if it is ``job_id``.

        Returns:
            The removed job, or None if the top is another job or the stack is
            empty
        """
        if self._jobs and self._jobs[-1].id == job_id:
            return self._jobs.pop()
        return None

    def peek(self) -> Optional[Job]:
        return self._jobs[-1].copy() if self._jobs else None

    def is_empty(self) -> bool:
        return not self._jobs

    def job_ids(self) -> List[int]:
        """Ids from bottom to top."""
        return [job.id for job in self._jobs]

    def __len__(self) -> int:
        return len(self._jobs)

    def __repr__(self) -> str:
        return f"JobStack({self.name!r}, jobs={self.job_ids()})"
