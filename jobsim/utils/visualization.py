"""Visualization utilities for simulation results."""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
from typing import Iterable, List

from ..core.metrics_collector import JobRecord, TraceRecord

sns.set_style("whitegrid")
sns.set_palette("husl")


def plot_results(trace: List[TraceRecord], jobs: Iterable[JobRecord],
                 memory_capacity: int, output_dir: Path) -> None:
    """Generate all visualization plots.

    Args:
        trace: Dispatched events
        jobs: Per-job records
        memory_capacity: Total memory, for the utilization axis
        output_dir: Directory to save plots
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plot_job_timeline(list(jobs), output_dir / "job_timeline.png")
    plot_memory_timeline(trace, memory_capacity, output_dir / "memory_timeline.png")


def plot_job_timeline(jobs: List[JobRecord], output_path: Path) -> None:
    """Gantt chart: CPU slices per job, arrival and exit markers.

    Args:
        jobs: Per-job records
        output_path: Output file path
    """
    fig, ax = plt.subplots(figsize=(12, max(3, 0.6 * len(jobs) + 1)))
    colors = sns.color_palette("husl", max(len(jobs), 1))

    for row, record in enumerate(sorted(jobs, key=lambda r: r.job_id)):
        spans = [(start, end - start) for start, end in record.run_intervals]
        if spans:
            ax.broken_barh(spans, (row - 0.35, 0.7), facecolors=colors[row])
        ax.plot(record.arrival_time, row, marker='v', color='black')
        if record.exit_time is not None:
            ax.plot(record.exit_time, row, marker='x', color='black')

    ax.set_yticks(range(len(jobs)))
    ax.set_yticklabels([f"Job {r.job_id}" for r in sorted(jobs, key=lambda r: r.job_id)])
    ax.set_xlabel('Simulated time')
    ax.set_title('CPU Time Slices per Job')
    ax.grid(axis='x', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close(fig)


def plot_memory_timeline(trace: List[TraceRecord], memory_capacity: int,
                         output_path: Path) -> None:
    """Memory in use after each dispatched event.

    Args:
        trace: Dispatched events
        memory_capacity: Total memory
        output_path: Output file path
    """
    fig, ax = plt.subplots(figsize=(12, 4))

    times = [r.time for r in trace]
    used = [memory_capacity - r.available_memory for r in trace]
    ax.step(times, used, where='post', color='steelblue')
    ax.axhline(memory_capacity, color='coral', linestyle='--', label='Capacity')

    ax.set_xlabel('Simulated time')
    ax.set_ylabel('Memory in use')
    ax.set_title('Memory Usage')
    ax.legend()

    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close(fig)

