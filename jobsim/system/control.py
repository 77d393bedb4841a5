"""Shared simulation state and the operations handlers may perform on it."""

import threading
from typing import Dict, List, Optional

from ..core.event_queue import Event, EventQueue
from ..core.payloads import Job, Payload
from ..utils.logger import setup_logger
from .job_stack import JobStack
from .memory import MemoryAllocator, Segment
from .scheduling_table import SchedulingTable

DEFAULT_TIME_SLICE = 10
DEFAULT_MULTIPROGRAMMING_LIMIT = 2


class ControlModule:
    """Facade over the event queue, the four job stacks, memory and the
    scheduling table.

    Each structure has its own lock and every method holds exactly one lock
    for one read or mutation, so a reader on another thread (a live display,
    for instance) never sees a half-applied change and no two locks are ever
    nested. Scheduling decisions live in the routines, not here.

    Stacks:
        seq: system entry, jobs waiting to be admitted
        maq: memory allocation wait
        caq: CPU allocation wait
        eq: execution, the job holding the CPU
    """

    def __init__(
        self,
        event_queue: Optional[EventQueue] = None,
        memory_capacity: int = 128,
        time_slice: int = DEFAULT_TIME_SLICE,
        multiprogramming_limit: int = DEFAULT_MULTIPROGRAMMING_LIMIT,
        current_timestep: int = 0,
    ):
        """Initialize control module.

        Args:
            event_queue: Seeded event queue, empty if omitted
            memory_capacity: Total memory size
            time_slice: CPU quantum per scheduling turn
            multiprogramming_limit: Max jobs with scheduling table entries
            current_timestep: Initial simulated time
        """
        if time_slice <= 0:
            raise ValueError("time_slice must be positive")
        if multiprogramming_limit <= 0:
            raise ValueError("multiprogramming_limit must be positive")

        self.logger = setup_logger(self.__class__.__name__)
        self.time_slice = time_slice
        self.multiprogramming_limit = multiprogramming_limit

        self._events = event_queue if event_queue is not None else EventQueue()
        self._memory = MemoryAllocator(memory_capacity)
        self._table = SchedulingTable()
        self._stacks = {
            "seq": JobStack("system entry"),
            "maq": JobStack("memory allocation"),
            "caq": JobStack("CPU allocation"),
            "eq": JobStack("execution"),
        }
        self._current_timestep = current_timestep

        self._events_lock = threading.Lock()
        self._memory_lock = threading.Lock()
        self._table_lock = threading.Lock()
        self._clock_lock = threading.Lock()
        self._stack_locks = {key: threading.Lock() for key in self._stacks}

    # Event queue

    def add_event(self, time: int, name: str, payload: Optional[Payload] = None) -> Event:
        with self._events_lock:
            return self._events.push(time, name, payload)

    def add_immediate_event(self, name: str, payload: Optional[Payload] = None) -> Event:
        """Queue a follow-up due in the current instant, ahead of pending events."""
        with self._events_lock:
            return self._events.push_immediate(name, payload)

    def pop_event(self) -> Optional[Event]:
        with self._events_lock:
            return self._events.pop()

    def push_back_event(self, event: Event) -> None:
        with self._events_lock:
            self._events.push_back(event)

    def has_events(self) -> bool:
        with self._events_lock:
            return not self._events.is_empty()

    def pending_events(self) -> List[Event]:
        with self._events_lock:
            return list(self._events)

    # Job stacks

    def _push(self, key: str, job: Job) -> None:
        with self._stack_locks[key]:
            self._stacks[key].push(job)

    def _pop(self, key: str) -> Job:
        with self._stack_locks[key]:
            return self._stacks[key].pop()

    def _pop_if(self, key: str, job: Job) -> Optional[Job]:
        with self._stack_locks[key]:
            return self._stacks[key].pop_if(job.id)

    def _is_empty(self, key: str) -> bool:
        with self._stack_locks[key]:
            return self._stacks[key].is_empty()

    def add_seq(self, job: Job) -> None:
        self._push("seq", job)

    def remove_seq(self) -> Job:
        return self._pop("seq")

    def take_seq(self, job: Job) -> Optional[Job]:
        return self._pop_if("seq", job)

    def seq_is_empty(self) -> bool:
        return self._is_empty("seq")

    def add_maq(self, job: Job) -> None:
        self._push("maq", job)

    def remove_maq(self) -> Job:
        return self._pop("maq")

    def take_maq(self, job: Job) -> Optional[Job]:
        return self._pop_if("maq", job)

    def maq_is_empty(self) -> bool:
        return self._is_empty("maq")

    def add_caq(self, job: Job) -> None:
        self._push("caq", job)

    def remove_caq(self) -> Job:
        return self._pop("caq")

    def take_caq(self, job: Job) -> Optional[Job]:
        return self._pop_if("caq", job)

    def caq_is_empty(self) -> bool:
        return self._is_empty("caq")

    def add_eq(self, job: Job) -> None:
        self._push("eq", job)

    def remove_eq(self) -> Job:
        return self._pop("eq")

    def take_eq(self, job: Job) -> Optional[Job]:
        return self._pop_if("eq", job)

    def eq_is_empty(self) -> bool:
        return self._is_empty("eq")

    # Memory

    def allocate_memory(self, job: Job, size: int) -> Segment:
        """Allocate memory for a job; raises ``AllocationError`` if it does not fit."""
        with self._memory_lock:
            return self._memory.allocate(job, size)

    def deallocate_memory(self, job: Job) -> int:
        with self._memory_lock:
            return self._memory.deallocate(job)

    def available_memory(self) -> int:
        with self._memory_lock:
            return self._memory.available_memory()

    @property
    def memory_capacity(self) -> int:
        return self._memory.capacity

    # Scheduling table

    def register_job(self, job_id: int, total_cpu_time: int) -> None:
        with self._table_lock:
            self._table.register(job_id, total_cpu_time)

    def consume_quantum(self, job_id: int, time_slice: int) -> int:
        with self._table_lock:
            return self._table.consume(job_id, time_slice)

    def remaining_quantum(self, job_id: int) -> int:
        with self._table_lock:
            return self._table.remaining(job_id)

    def forget_job(self, job_id: int) -> None:
        with self._table_lock:
            self._table.forget(job_id)

    def registered_jobs(self) -> int:
        """Number of jobs currently holding a scheduling table entry."""
        with self._table_lock:
            return len(self._table)

    # Clock

    def get_current_timestep(self) -> int:
        with self._clock_lock:
            return self._current_timestep

    def set_current_timestep(self, current_timestep: int) -> None:
        with self._clock_lock:
            self._current_timestep = current_timestep

    def snapshot(self) -> Dict:
        """Copy of the whole shared state as plain data.

        Each structure is read under its own lock, one after the other.

        Returns:
            Dictionary with time, queue contents, memory and table entries
        """
        state = {"time": self.get_current_timestep()}
        for key in self._stacks:
            with self._stack_locks[key]:
                state[key] = self._stacks[key].job_ids()
        with self._memory_lock:
            state["segments"] = [
                {
                    "id": s.id,
                    "start_address": s.start_address,
                    "size": s.size,
                    "job_id": s.owner.id if s.owner is not None else None,
                }
                for s in self._memory.segments
            ]
            state["available_memory"] = self._memory.available_memory()
        with self._table_lock:
            state["scheduling_table"] = self._table.as_dict()
        with self._events_lock:
            state["pending_events"] = len(self._events)
        return state
