"""Job generation for simulation workloads."""

import numpy as np
from typing import Dict, List

from ..core.event_queue import EventQueue
from ..utils.logger import setup_logger
from .scenario import (
    JobSpec,
    build_event_queue,
    load_scenario,
    parse_jobs,
    populate_list,
)


class JobGenerator:
    """Generate the seed event queue for a simulation.

    Supports:
    - builtin: one of the numbered scenarios
    - jobs: a job list given inline in the config
    - file: a YAML scenario file
    - poisson: random arrivals with uniform memory and CPU demands
    """

    def __init__(self, config: Dict, random_seed: int = 42):
        """Initialize job generator.

        Args:
            config: Workload configuration
            random_seed: Seed for the poisson workload
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)

        self.workload_type = config.get('type', 'builtin')
        self.end_time = config.get('end_time')
        self.rng = np.random.default_rng(random_seed)

    def generate(self) -> EventQueue:
        """Build the seed event queue.

        Returns:
            Event queue with one arrival per job
        """
        self.logger.info(f"Generating {self.workload_type} workload...")

        if self.workload_type == 'builtin':
            return populate_list(int(self.config.get('scenario', 1)))
        elif self.workload_type == 'jobs':
            jobs = parse_jobs(self.config.get('jobs', []))
        elif self.workload_type == 'file':
            path = self.config.get('path')
            if not path:
                raise ValueError("path required for file workload")
            jobs = load_scenario(path)
        elif self.workload_type == 'poisson':
            jobs = self.generate_poisson()
        else:
            raise ValueError(f"Unknown workload type: {self.workload_type}")

        self.logger.info(f"Generated {len(jobs)} jobs")
        return build_event_queue(jobs, end_time=self.end_time)

    def generate_poisson(self) -> List[JobSpec]:
        """Jobs with exponential inter-arrival times.

        Returns:
            Job specs ordered by arrival time
        """
        arrival_rate = self.config.get('arrival_rate', 0.05)
        num_jobs = self.config.get('num_jobs', 10)
        if arrival_rate <= 0:
            raise ValueError("arrival_rate must be positive")

        mem_min, mem_max = self._range('memory_size', (10, 60))
        cpu_min, cpu_max = self._range('cpu_time', (5, 40))

        gaps = self.rng.exponential(1.0 / arrival_rate, size=num_jobs)
        arrivals = np.floor(np.cumsum(gaps)).astype(int)
        memory_sizes = self.rng.integers(mem_min, mem_max + 1, size=num_jobs)
        cpu_times = self.rng.integers(cpu_min, cpu_max + 1, size=num_jobs)

        return [
            JobSpec(
                job_id=i + 1,
                arrival_time=int(arrivals[i]),
                memory_size=int(memory_sizes[i]),
                cpu_time=int(cpu_times[i]),
            )
            for i in range(num_jobs)
        ]

    def _range(self, key: str, default: tuple) -> tuple:
        spec = self.config.get(key, {})
        low = int(spec.get('min', default[0]))
        high = int(spec.get('max', default[1]))
        if low <= 0 or high < low:
            raise ValueError(f"{key} range must satisfy 0 < min <= max")
        return low, high
