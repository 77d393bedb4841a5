"""Variable-partition memory with first-fit placement."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core.payloads import Job
from ..utils.logger import setup_logger


class AllocationError(Exception):
    """No free gap is large enough for the request."""

    def __init__(self, job_id: int, size: int, available: int, largest_gap: int):
        self.job_id = job_id
        self.size = size
        self.available = available
        self.largest_gap = largest_gap
        super().__init__(
            f"insufficient space: job {job_id} needs {size}, "
            f"largest gap {largest_gap} ({available} free in total)"
        )


@dataclass
class Segment:
    """A contiguous allocated region of memory.

    Attributes:
        id: Segment identifier, increasing with each allocation
        start_address: First address of the region
        size: Region length
        owner: Job holding the region
    """
    id: int
    start_address: int
    size: int
    owner: Optional[Job] = None

    @property
    def end_address(self) -> int:
        """Address just past the region."""
        return self.start_address + self.size


class MemoryAllocator:
    """Contiguous memory of fixed capacity handed out to jobs.

    Only occupied segments are stored. Free gaps are derived from them in
    address order whenever they are needed. There is no compaction: a request
    succeeds only if a single gap already fits it.
    """

    def __init__(self, capacity: int):
        """Initialize allocator.

        Args:
            capacity: Total memory size
        """
        if capacity <= 0:
            raise ValueError("Memory capacity must be positive")
        self.capacity = capacity
        self.logger = setup_logger(self.__class__.__name__)

        self._segments: List[Segment] = []
        self._next_segment_id = 0

    def allocate(self, job: Job, size: int) -> Segment:
        """Place ``size`` units for ``job`` in the first gap that fits.

        Args:
            job: Requesting job
            size: Number of units

        Returns:
            The new segment

        Raises:
            AllocationError: If no single gap is at least ``size`` long
        """
        if size <= 0:
            raise ValueError("Allocation size must be positive")

        start = self._first_fit(size)
        if start is None:
            raise AllocationError(job.id, size, self.available_memory(), self.largest_gap())

        segment = Segment(
            id=self._next_segment_id,
            start_address=start,
            size=size,
            owner=job.copy(),
        )
        self._next_segment_id += 1
        self._segments.append(segment)
        self._segments.sort(key=lambda s: s.start_address)

        self.logger.debug(
            f"Allocated [{segment.start_address}, {segment.end_address}) to job {job.id}, "
            f"{self.available_memory()} left"
        )
        return segment

    def deallocate(self, job: Job) -> int:
        """Release every segment owned by ``job``.

        Args:
            job: Owning job

        Returns:
            Number of segments released
        """
        kept = [s for s in self._segments
                if s.owner is None or s.owner.id != job.id]
        released = len(self._segments) - len(kept)
        self._segments = kept
        if released:
            self.logger.debug(f"Released {released} segment(s) of job {job.id}")
        return released

    def available_memory(self) -> int:
        """Capacity minus the size of every allocated segment."""
        return self.capacity - self.used_memory()

    def used_memory(self) -> int:
        """Total size of all allocated segments."""
        return sum(s.size for s in self._segments)

    def utilization(self) -> float:
        """Fraction of capacity currently allocated."""
        return self.used_memory() / self.capacity

    def free_gaps(self) -> List[Tuple[int, int]]:
        """List free regions in address order.

        Returns:
            ``(start_address, size)`` pairs, empty gaps omitted
        """
        gaps = []
        cursor = 0
        for segment in self._segments:
            if segment.start_address > cursor:
                gaps.append((cursor, segment.start_address - cursor))
            cursor = segment.end_address
        if self.capacity > cursor:
            gaps.append((cursor, self.capacity - cursor))
        return gaps

    def largest_gap(self) -> int:
        return max((size for _, size in self.free_gaps()), default=0)

    def owner_of(self, job_id: int) -> List[Segment]:
        """Segments currently held by a job."""
        return [s for s in self._segments if s.owner is not None and s.owner.id == job_id]

    @property
    def segments(self) -> List[Segment]:
        """Allocated segments sorted by start address."""
        return list(self._segments)

    def _first_fit(self, size: int) -> Optional[int]:
        for start, gap in self.free_gaps():
            if gap >= size:
                return start
        return None

    def __repr__(self) -> str:
        return (f"MemoryAllocator(capacity={self.capacity}, "
                f"segments={len(self._segments)}, available={self.available_memory()})")
