"""Round-robin bookkeeping: remaining CPU time per dispatched job."""

from typing import Dict, List

NOT_FOUND = -1


class SchedulingTable:
    """Remaining CPU time of every job that has been on the CPU.

    A job is registered on its first dispatch, charged one time slice per
    preemption and forgotten when it completes.
    """

    def __init__(self):
        self._remaining: Dict[int, int] = {}

    def register(self, job_id: int, total_cpu_time: int) -> None:
        self._remaining[job_id] = total_cpu_time

    def consume(self, job_id: int, time_slice: int) -> int:
        """Charge a time slice to a registered job.

        Args:
            job_id: Job identifier
            time_slice: Units of CPU time used

        Returns:
            Remaining CPU time after the charge

        Raises:
            KeyError: If the job was never registered
        """
        if job_id not in self._remaining:
            raise KeyError(f"Job {job_id} is not in the scheduling table")
        self._remaining[job_id] -= time_slice
        return self._remaining[job_id]

    def remaining(self, job_id: int) -> int:
        """Remaining CPU time, or ``NOT_FOUND`` for unregistered jobs."""
        return self._remaining.get(job_id, NOT_FOUND)

    def forget(self, job_id: int) -> None:
        self._remaining.pop(job_id, None)

    def job_ids(self) -> List[int]:
        return list(self._remaining)

    def as_dict(self) -> Dict[int, int]:
        return dict(self._remaining)

    def __contains__(self, job_id: int) -> bool:
        return job_id in self._remaining

    def __len__(self) -> int:
        return len(self._remaining)

    def __repr__(self) -> str:
        return f"SchedulingTable({self._remaining})"
