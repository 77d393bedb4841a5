"""Event trace recording and job statistics."""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dataclasses_json import dataclass_json

from .event_queue import Event, EventType
from ..utils.logger import setup_logger


@dataclass_json
@dataclass
class TraceRecord:
    """One dispatched event, with the state right after its routine ran."""
    time: int
    name: str
    routine: str
    job_id: Optional[int]
    available_memory: int
    registered_jobs: int


@dataclass_json
@dataclass
class JobRecord:
    """Lifecycle timestamps of a single job."""
    job_id: int
    arrival_time: int
    memory_size: int
    cpu_time: int
    first_dispatch_time: Optional[int] = None
    finish_time: Optional[int] = None
    exit_time: Optional[int] = None
    preemptions: int = 0
    run_intervals: List[List[int]] = field(default_factory=list)

    @property
    def turnaround_time(self) -> Optional[int]:
        if self.finish_time is None:
            return None
        return self.finish_time - self.arrival_time

    @property
    def wait_time(self) -> Optional[int]:
        """Time from arrival to first CPU dispatch."""
        if self.first_dispatch_time is None:
            return None
        return self.first_dispatch_time - self.arrival_time


def event_job_id(event: Event) -> Optional[int]:
    """Job id carried by an event payload, if any."""
    payload = event.payload
    if hasattr(payload, 'job_id'):
        return payload.job_id
    job = getattr(payload, 'job', None)
    return job.id if job is not None else None


class MetricsCollector:
    """Collect the event trace and per-job timings of a run.

    Memory usage is sampled after every dispatched event, so the timeline has
    one point per event rather than per timestep.
    """

    def __init__(self, config: Dict):
        """Initialize metrics collector.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)

        self.trace: List[TraceRecord] = []
        self.jobs: Dict[int, JobRecord] = {}
        self._running_since: Dict[int, int] = {}

        self.memory_capacity = config.get('memory', {}).get('capacity', 128)
        self.percentiles = config.get('metrics', {}).get('percentiles', [50, 90, 95, 99])

    def record_event(self, event: Event, kind: EventType, now: int,
                     available_memory: int, registered_jobs: int) -> None:
        """Record a dispatched event.

        Args:
            event: Event that was dispatched
            kind: Routine it resolved to
            now: Simulated time at dispatch
            available_memory: Free memory after the routine ran
            registered_jobs: Scheduling table size after the routine ran
        """
        job_id = event_job_id(event)
        self.trace.append(TraceRecord(
            time=now,
            name=event.name,
            routine=kind.value,
            job_id=job_id,
            available_memory=available_memory,
            registered_jobs=registered_jobs,
        ))
        if job_id is not None:
            self._update_job(kind, event, job_id, now)

    def _update_job(self, kind: EventType, event: Event, job_id: int, now: int) -> None:
        if kind == EventType.JOB_ARRIVAL:
            self.jobs[job_id] = JobRecord(
                job_id=job_id,
                arrival_time=now,
                memory_size=event.payload.memory_size,
                cpu_time=event.payload.cpu_time,
            )
            return

        record = self.jobs.get(job_id)
        if record is None:
            return

        if kind == EventType.REQUEST_CPU:
            if record.first_dispatch_time is None:
                record.first_dispatch_time = now
            self._running_since[job_id] = now
        elif kind == EventType.PAUSE_JOB:
            record.preemptions += 1
            self._close_interval(record, now)
        elif kind == EventType.END_PROCESS:
            record.finish_time = now
            self._close_interval(record, now)
        elif kind == EventType.EXIT_SYSTEM:
            record.exit_time = now

    def _close_interval(self, record: JobRecord, now: int) -> None:
        start = self._running_since.pop(record.job_id, None)
        if start is not None:
            record.run_intervals.append([start, now])

    def events_named(self, routine: EventType) -> List[TraceRecord]:
        return [r for r in self.trace if r.routine == routine.value]

    def compute_metrics(self) -> Dict:
        """Compute aggregate metrics from collected data.

        Returns:
            Dictionary of computed metrics
        """
        results = {
            'dispatched_events': len(self.trace),
            'completed_jobs': sum(1 for r in self.jobs.values() if r.finish_time is not None),
            'preemptions': sum(r.preemptions for r in self.jobs.values()),
        }

        turnarounds = [r.turnaround_time for r in self.jobs.values() if r.turnaround_time is not None]
        waits = [r.wait_time for r in self.jobs.values() if r.wait_time is not None]

        if turnarounds:
            results.update(self._compute_distribution_metrics('turnaround', turnarounds))
        if waits:
            results.update(self._compute_distribution_metrics('wait', waits))

        finish_times = [r.finish_time for r in self.jobs.values() if r.finish_time is not None]
        arrivals = [r.arrival_time for r in self.jobs.values()]
        if finish_times and arrivals:
            makespan = max(finish_times) - min(arrivals)
            results['makespan'] = makespan
            results['throughput'] = len(finish_times) / makespan if makespan > 0 else 0.0

            busy = sum(end - start for r in self.jobs.values() for start, end in r.run_intervals)
            results['cpu_utilization'] = busy / makespan if makespan > 0 else 0.0

        if self.trace:
            used = [self.memory_capacity - r.available_memory for r in self.trace]
            results['mean_memory_util'] = float(np.mean(used)) / self.memory_capacity
            results['max_memory_util'] = float(np.max(used)) / self.memory_capacity

        return results

    def _compute_distribution_metrics(self, name: str, values: List[float]) -> Dict:
        """Compute distribution statistics for a metric.

        Args:
            name: Metric name
            values: List of values

        Returns:
            Dictionary with mean, median, and percentiles
        """
        results = {
            f'mean_{name}': float(np.mean(values)),
            f'median_{name}': float(np.median(values)),
            f'max_{name}': float(np.max(values)),
        }
        for p in self.percentiles:
            results[f'p{p}_{name}'] = float(np.percentile(values, p))
        return results

    def get_summary(self) -> str:
        """Get human-readable summary of metrics."""
        metrics = self.compute_metrics()
        if not metrics['completed_jobs']:
            return "No jobs completed"

        summary = [
            "=== Metrics Summary ===",
            f"Jobs completed: {metrics['completed_jobs']}/{len(self.jobs)}",
            f"Mean turnaround: {metrics['mean_turnaround']:.2f}",
            f"Mean wait: {metrics.get('mean_wait', 0.0):.2f}",
            f"Preemptions: {metrics['preemptions']}",
            f"CPU utilization: {metrics.get('cpu_utilization', 0.0):.1%}",
        ]
        return "\n".join(summary)
