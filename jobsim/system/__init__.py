"""Simulated machine resources: memory, job stacks, scheduling table."""

from .control import ControlModule
from .job_stack import EmptyQueueError, JobStack
from .memory import AllocationError, MemoryAllocator, Segment
from .scheduling_table import NOT_FOUND, SchedulingTable

__all__ = [
    "ControlModule",
    "EmptyQueueError",
    "JobStack",
    "AllocationError",
    "MemoryAllocator",
    "Segment",
    "NOT_FOUND",
    "SchedulingTable",
]
