"""Workload generation: the job arrivals that seed a simulation."""

from .scenario import JobSpec, build_event_queue, load_scenario, parse_jobs, populate_list
from .job_generator import JobGenerator

__all__ = [
    "JobSpec",
    "JobGenerator",
    "build_event_queue",
    "load_scenario",
    "parse_jobs",
    "populate_list",
]
