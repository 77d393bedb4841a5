"""Seed event lists: the jobs that arrive during a simulation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

from ..core.event_queue import EventQueue, EventType
from ..core.payloads import Default, JobArrival

END_OF_SIMULATION = "end_of_simulation"


@dataclass(frozen=True)
class JobSpec:
    """A job that arrives at a given time."""
    job_id: int
    arrival_time: int
    memory_size: int
    cpu_time: int

    def __post_init__(self):
        if self.arrival_time < 0:
            raise ValueError("arrival_time cannot be negative")
        if self.memory_size <= 0 or self.cpu_time <= 0:
            raise ValueError(f"Job {self.job_id}: memory_size and cpu_time must be positive")

    @classmethod
    def from_dict(cls, data: Dict) -> "JobSpec":
        return cls(
            job_id=int(data['id']),
            arrival_time=int(data['arrival_time']),
            memory_size=int(data['memory_size']),
            cpu_time=int(data['cpu_time']),
        )


def build_event_queue(jobs: Iterable[JobSpec], end_time: Optional[int] = None) -> EventQueue:
    """Seed an event queue with one arrival event per job.

    Args:
        jobs: Jobs to schedule
        end_time: If set, an end-of-simulation marker is added at this time;
            it has no routine and resolves to the default one

    Returns:
        Event queue ready for the simulator
    """
    queue = EventQueue()
    for spec in jobs:
        queue.push(
            spec.arrival_time,
            EventType.JOB_ARRIVAL.value,
            JobArrival(job_id=spec.job_id, memory_size=spec.memory_size, cpu_time=spec.cpu_time),
        )
    if end_time is not None:
        queue.push(end_time, END_OF_SIMULATION, Default())
    return queue


def parse_jobs(entries: List[Dict]) -> List[JobSpec]:
    """Turn a list of job mappings (id, arrival_time, memory_size, cpu_time) into specs."""
    jobs = []
    for i, entry in enumerate(entries):
        try:
            jobs.append(JobSpec.from_dict(entry))
        except KeyError as e:
            raise ValueError(f"Job entry {i} is missing field {e}") from None
    return jobs


def load_scenario(path: Union[str, Path]) -> List[JobSpec]:
    """Load jobs from a YAML scenario file.

    The file holds either a list of jobs or a mapping with a ``jobs`` list.

    Args:
        path: Scenario file

    Returns:
        Job specs in file order
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get('jobs', [])
    return parse_jobs(data)


# Built-in scenarios, keyed by test case number

BUILTIN_SCENARIOS: Dict[int, Dict] = {
    1: {
        'end_time': 999,
        'jobs': [
            JobSpec(job_id=1, arrival_time=20, memory_size=30, cpu_time=25),
            JobSpec(job_id=2, arrival_time=20, memory_size=50, cpu_time=15),
            JobSpec(job_id=3, arrival_time=220, memory_size=80, cpu_time=40),
            JobSpec(job_id=4, arrival_time=240, memory_size=60, cpu_time=8),
        ],
    },
    2: {
        'end_time': None,
        'jobs': [
            JobSpec(job_id=1, arrival_time=0, memory_size=30, cpu_time=5),
        ],
    },
    3: {
        'end_time': None,
        'jobs': [
            JobSpec(job_id=1, arrival_time=0, memory_size=30, cpu_time=25),
            JobSpec(job_id=2, arrival_time=2, memory_size=30, cpu_time=25),
            JobSpec(job_id=3, arrival_time=12, memory_size=30, cpu_time=5),
        ],
    },
}


def populate_list(test_case: int) -> EventQueue:
    """Event queue for a built-in scenario; unknown cases give an empty queue.

    1: four jobs around t=20 and t=220 with an end marker at 999
    2: a single short job
    3: two long jobs sharing the CPU and a third held at system entry
    """
    scenario = BUILTIN_SCENARIOS.get(test_case)
    if scenario is None:
        return EventQueue()
    return build_event_queue(scenario['jobs'], end_time=scenario['end_time'])
