"""Main simulator class driving the event loop."""

import time
from typing import Dict, Iterable, Optional

from tqdm import tqdm

from .event_queue import Event, EventQueue
from .metrics_collector import MetricsCollector
from .payloads import JobArrival
from ..scheduling.routines import create_event_routines, create_routine, select_routine
from ..system.control import (
    ControlModule,
    DEFAULT_MULTIPROGRAMMING_LIMIT,
    DEFAULT_TIME_SLICE,
)
from ..utils.logger import setup_logger
from ..workload import JobGenerator, JobSpec, build_event_queue


class Simulator:
    """Discrete event simulator of a round-robin job scheduler.

    This class owns:
    - The control module (event queue, job stacks, memory, scheduling table)
    - The event name table
    - Metrics collection

    ``advance`` is the event loop proper; ``run`` paces it over simulated
    timesteps.
    """

    def __init__(self, config: Dict, event_queue: Optional[EventQueue] = None):
        """Initialize simulator.

        Args:
            config: Simulation configuration dictionary
            event_queue: Seeded event queue; built from ``config['workload']``
                if omitted
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)

        sim_config = config.get('simulation', {})
        self.simulation_duration = sim_config.get('duration', 1000)
        self.timestep = sim_config.get('timestep', 1)
        self.tick_interval = sim_config.get('tick_interval', 0.0)
        self.show_progress = sim_config.get('progress', False)
        if self.timestep <= 0:
            raise ValueError("simulation.timestep must be positive")
        if self.tick_interval < 0:
            raise ValueError("simulation.tick_interval cannot be negative")

        if event_queue is None:
            generator = JobGenerator(
                config.get('workload', {}),
                random_seed=sim_config.get('random_seed', 42),
            )
            event_queue = generator.generate()
        self.total_jobs = sum(
            1 for event in event_queue if isinstance(event.payload, JobArrival)
        )

        scheduler_config = config.get('scheduler', {})
        self.control = ControlModule(
            event_queue=event_queue,
            memory_capacity=config.get('memory', {}).get('capacity', 128),
            time_slice=scheduler_config.get('time_slice', DEFAULT_TIME_SLICE),
            multiprogramming_limit=scheduler_config.get(
                'multiprogramming_limit', DEFAULT_MULTIPROGRAMMING_LIMIT
            ),
        )
        self.event_routines = create_event_routines(config.get('routines'))
        self.metrics_collector = MetricsCollector(config)

        self.logger.info("Simulator initialized")
        self.logger.info(f"Memory: {self.control.memory_capacity}, "
                         f"time slice: {self.control.time_slice}, "
                         f"multiprogramming limit: {self.control.multiprogramming_limit}")

    @classmethod
    def from_jobs(cls, jobs: Iterable[JobSpec], config: Optional[Dict] = None,
                  end_time: Optional[int] = None) -> "Simulator":
        """Build a simulator seeded with the given jobs."""
        return cls(config or {}, build_event_queue(jobs, end_time=end_time))

    def advance(self, current_timestep: int) -> Optional[int]:
        """Dispatch every pending event up to ``current_timestep``.

        Follow-up events created along the way are dispatched too when they
        fall within the boundary. The first event past it is pushed back to
        the head of the queue.

        Args:
            current_timestep: Last simulated time to process

        Returns:
            Time of the first event past the boundary, or None if the queue
            ran empty
        """
        while True:
            event = self.control.pop_event()
            if event is None:
                self._sync_clock(current_timestep)
                return None
            if event.time > current_timestep:
                self.control.push_back_event(event)
                self._sync_clock(current_timestep)
                return event.time
            self._dispatch(event)

    def run(self) -> Dict:
        """Run the simulation.

        Steps the clock from 0 to the configured duration, sleeping
        ``tick_interval`` wall-clock seconds between steps, and stops early
        once no events are left.

        Returns:
            Dictionary containing simulation results and metrics
        """
        start_time = time.time()
        self.logger.info("Starting simulation...")

        timesteps = range(0, self.simulation_duration + 1, self.timestep)
        for timestep in tqdm(timesteps, desc="Simulating", unit="step",
                             disable=not self.show_progress):
            next_time = self.advance(timestep)
            if next_time is None:
                self.logger.info(f"Event queue drained at t={timestep}")
                break
            if self.tick_interval:
                time.sleep(self.tick_interval)

        results = self._finalize()

        elapsed_time = time.time() - start_time
        self.logger.info(f"Simulation completed in {elapsed_time:.2f}s")
        return results

    def _dispatch(self, event: Event) -> None:
        """Run the routine an event resolves to.

        The clock moves forward to the event time; it never moves back for
        immediate (time 0) events.
        """
        now = self.control.get_current_timestep()
        if event.time > now:
            now = event.time
            self.control.set_current_timestep(now)

        kind = select_routine(self.event_routines, event.name)
        routine = create_routine(kind, event.payload)
        self.logger.debug(f"t={now} {event.name} -> {routine.__class__.__name__}")
        routine.run(self.control)

        self.metrics_collector.record_event(
            event,
            kind,
            now,
            available_memory=self.control.available_memory(),
            registered_jobs=self.control.registered_jobs(),
        )

    def _sync_clock(self, current_timestep: int) -> None:
        if current_timestep > self.control.get_current_timestep():
            self.control.set_current_timestep(current_timestep)

    def _finalize(self) -> Dict:
        """Finalize simulation and compute results.

        Returns:
            Dictionary containing all results and metrics
        """
        self.logger.info("Finalizing simulation...")

        metrics = self.metrics_collector.compute_metrics()
        state = self.control.snapshot()

        results = {
            'total_jobs': self.total_jobs,
            'completion_rate': (metrics['completed_jobs'] / self.total_jobs
                                if self.total_jobs > 0 else 0),
            **metrics,
            'final_time': state['time'],
            'available_memory': state['available_memory'],
            'pending_events': state['pending_events'],
            'waiting_jobs': {key: state[key] for key in ('seq', 'maq', 'caq', 'eq')},
        }

        self.logger.info(f"Completed {metrics['completed_jobs']}/{self.total_jobs} jobs")
        return results
