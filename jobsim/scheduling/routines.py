"""Event routines: one job lifecycle transition per event.

Every event name is looked up in a name table to find its kind, the routine
class for that kind is instantiated with a copy of the event payload, and
``run`` applies the transition through the control module. Routines may
schedule follow-up events. Those due in the current instant carry time
``IMMEDIATE`` (0) and are queued ahead of every pending seeded or timed
event, so a transition and its follow-ups complete before anything else is
dispatched.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from ..core.event_queue import IMMEDIATE, EventType
from ..core.payloads import (
    Default,
    EndProcess,
    ExitSystem,
    FreeCPU,
    FreeMemory,
    Job,
    JobArrival,
    JobEntrance,
    JobState,
    PauseJob,
    Payload,
    RequestCPU,
    RequestMemory,
)
from ..system.control import ControlModule
from ..system.memory import AllocationError
from ..system.scheduling_table import NOT_FOUND
from ..utils.logger import setup_logger


class Routine(ABC):
    """Base class of event routines."""

    payload_type: Type = Default

    def __init__(self, payload: Payload):
        """Bind the routine to its event payload.

        Args:
            payload: Payload of the event being handled

        Raises:
            TypeError: If the payload does not belong to this kind of event
        """
        if not isinstance(payload, self.payload_type):
            raise TypeError(
                f"{self.__class__.__name__} expects {self.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        self.payload = payload
        self.logger = setup_logger(self.__class__.__name__)

    @abstractmethod
    def run(self, control: ControlModule) -> None:
        """Apply the transition to the shared state."""

    @staticmethod
    def schedule(control: ControlModule, time: int, kind: EventType, payload: Payload) -> None:
        """Queue a follow-up event of ``kind`` at simulated ``time``."""
        control.add_event(time, kind.value, payload)

    @staticmethod
    def schedule_now(control: ControlModule, kind: EventType, payload: Payload) -> None:
        """Queue a follow-up event of ``kind`` for the current instant.

        Follow-ups run in the order they were queued and before any other
        pending event, so the transition they continue completes first.
        """
        control.add_immediate_event(kind.value, payload)


class JobRoutine(Routine):
    """Routine whose payload carries a job snapshot."""

    @property
    def job(self) -> Job:
        return self.payload.job


class DefaultRoutine(Routine):
    """Fallback for names without a routine; changes nothing."""

    payload_type = object

    def run(self, control: ControlModule) -> None:
        self.logger.debug(
            f"No routine for payload {self.payload!r} at t={control.get_current_timestep()}"
        )


class JobArrivalRoutine(Routine):
    """Create the job; enter at once if the CPU is free, otherwise queue it."""

    payload_type = JobArrival

    def run(self, control: ControlModule) -> None:
        job = Job(
            id=self.payload.job_id,
            state=JobState.ARRIVED,
            memory_size=self.payload.memory_size,
            cpu_time=self.payload.cpu_time,
        )
        if control.eq_is_empty():
            self.schedule_now(control, EventType.JOB_ENTRANCE, JobEntrance(job.copy()))
        else:
            control.add_seq(job)
            self.logger.debug(f"Job {job.id} waits for system entry")


class JobEntranceRoutine(JobRoutine):
    payload_type = JobEntrance

    def run(self, control: ControlModule) -> None:
        job = self.job
        control.take_seq(job)
        job.state = JobState.ENTERED
        self.schedule_now(control, EventType.REQUEST_MEMORY, RequestMemory(job.copy()))


class RequestMemoryRoutine(JobRoutine):
    """Allocate the job's memory, or park it and keep the CPU busy."""

    payload_type = RequestMemory

    def run(self, control: ControlModule) -> None:
        job = self.job
        try:
            control.allocate_memory(job, job.memory_size)
        except AllocationError as e:
            self.logger.info(f"t={control.get_current_timestep()}: {e}")
            control.add_maq(job)
            if control.caq_is_empty():
                self.logger.debug("No job waiting for the CPU, CPU idles")
                return
            other = control.remove_caq()
            self.schedule_now(control, EventType.REQUEST_CPU, RequestCPU(other))
            return

        job.state = JobState.MEMORY_READY
        control.add_caq(job)
        self.schedule_now(control, EventType.REQUEST_CPU, RequestCPU(job.copy()))


class RequestCPURoutine(JobRoutine):
    """Put the job on the CPU for one time slice or until it finishes."""

    payload_type = RequestCPU

    def run(self, control: ControlModule) -> None:
        job = self.job
        time_slice = control.time_slice
        now = control.get_current_timestep()

        control.take_caq(job)
        remaining = control.remaining_quantum(job.id)

        if remaining == NOT_FOUND:
            job.state = JobState.RUNNING
            control.register_job(job.id, job.cpu_time)
            control.add_eq(job)
            if job.cpu_time > time_slice:
                self.schedule(control, now + time_slice, EventType.PAUSE_JOB, PauseJob(job.copy()))
            else:
                self.schedule(control, now + job.cpu_time, EventType.END_PROCESS, EndProcess(job.copy()))
        else:
            control.add_eq(job)
            if remaining <= time_slice:
                self.schedule(control, now + remaining, EventType.END_PROCESS, EndProcess(job.copy()))
            else:
                self.schedule(control, now + time_slice, EventType.PAUSE_JOB, PauseJob(job.copy()))


class PauseJobRoutine(JobRoutine):
    """Preempt the job at the end of its slice.

    Below the multiprogramming limit a waiting job is admitted; otherwise the
    CPU goes to the next job waiting for it and the preempted job takes its
    place on the CPU wait stack.
    """

    payload_type = PauseJob

    def run(self, control: ControlModule) -> None:
        job = self.job
        control.consume_quantum(job.id, control.time_slice)
        job.state = JobState.MEMORY_READY
        control.take_eq(job)

        if (control.registered_jobs() < control.multiprogramming_limit
                and not control.seq_is_empty()):
            control.add_caq(job)
            admitted = control.remove_seq()
            admitted.state = JobState.ENTERED
            self.logger.debug(f"Job {admitted.id} admitted while job {job.id} waits")
            self.schedule_now(control, EventType.REQUEST_MEMORY, RequestMemory(admitted))
            return

        # Popping before pushing: on a stack the reverse would always resume
        # the job just preempted.
        if control.caq_is_empty():
            next_job = job
        else:
            next_job = control.remove_caq()
            control.add_caq(job)
        self.schedule_now(control, EventType.REQUEST_CPU, RequestCPU(next_job.copy()))


class EndProcessRoutine(JobRoutine):
    payload_type = EndProcess

    def run(self, control: ControlModule) -> None:
        job = self.job
        control.forget_job(job.id)
        control.take_eq(job)
        self.schedule_now(control, EventType.FREE_CPU, FreeCPU(job.copy()))


class FreeCPURoutine(JobRoutine):
    payload_type = FreeCPU

    def run(self, control: ControlModule) -> None:
        job = self.job
        job.state = JobState.CPU_FREED
        control.take_eq(job)
        self.schedule_now(control, EventType.FREE_MEMORY, FreeMemory(job.copy()))


class FreeMemoryRoutine(JobRoutine):
    payload_type = FreeMemory

    def run(self, control: ControlModule) -> None:
        job = self.job
        job.state = JobState.MEMORY_FREED
        control.deallocate_memory(job)
        self.schedule_now(control, EventType.EXIT_SYSTEM, ExitSystem(job.copy()))


class ExitSystemRoutine(JobRoutine):
    """Hand the released resources to whoever waits for them."""

    payload_type = ExitSystem

    def run(self, control: ControlModule) -> None:
        if not control.maq_is_empty():
            retry = control.remove_maq()
            self.schedule_now(control, EventType.REQUEST_MEMORY, RequestMemory(retry))
        elif not control.seq_is_empty():
            admitted = control.remove_seq()
            admitted.state = JobState.ENTERED
            self.schedule_now(control, EventType.REQUEST_MEMORY, RequestMemory(admitted))
        elif not control.caq_is_empty():
            resumed = control.remove_caq()
            self.schedule_now(control, EventType.REQUEST_CPU, RequestCPU(resumed))
        else:
            self.logger.debug(
                f"Job {self.job.id} left an idle system at t={control.get_current_timestep()}"
            )


ROUTINES: Dict[EventType, Type[Routine]] = {
    EventType.JOB_ARRIVAL: JobArrivalRoutine,
    EventType.JOB_ENTRANCE: JobEntranceRoutine,
    EventType.REQUEST_MEMORY: RequestMemoryRoutine,
    EventType.REQUEST_CPU: RequestCPURoutine,
    EventType.PAUSE_JOB: PauseJobRoutine,
    EventType.END_PROCESS: EndProcessRoutine,
    EventType.FREE_CPU: FreeCPURoutine,
    EventType.FREE_MEMORY: FreeMemoryRoutine,
    EventType.EXIT_SYSTEM: ExitSystemRoutine,
    EventType.DEFAULT: DefaultRoutine,
}


def create_event_routines(aliases: Optional[Dict[str, str]] = None) -> Dict[str, EventType]:
    """Build the event name to routine kind table.

    Every canonical name (the ``EventType`` values) maps to its kind. Aliases
    add further labels, e.g. ``{"Chegada de job": "job_arrival"}``.

    Args:
        aliases: Extra event name to kind name mapping

    Returns:
        Name table

    Raises:
        ValueError: If an alias points at an unknown kind
    """
    table = {kind.value: kind for kind in EventType}
    for name, kind_name in (aliases or {}).items():
        try:
            table[name] = EventType(kind_name)
        except ValueError:
            raise ValueError(f"Unknown routine '{kind_name}' for event name '{name}'") from None
    return table


def select_routine(event_routines: Dict[str, EventType], event_name: str) -> EventType:
    """Resolve an event name, falling back to the default routine."""
    return event_routines.get(event_name, EventType.DEFAULT)


def create_routine(kind: EventType, payload: Payload) -> Routine:
    """Instantiate the routine for ``kind`` with its own copy of ``payload``."""
    return ROUTINES[kind](copy.deepcopy(payload))
