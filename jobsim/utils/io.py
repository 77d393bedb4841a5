# jobsim/utils/io.py
"""
IO helpers for simulation results and event traces.
"""
import json
from pathlib import Path
from typing import Any, Iterable, Union

import pandas as pd

from ..core.metrics_collector import JobRecord, TraceRecord


def save_json(obj: Any, file_path: Union[str, Path], indent: int = 2):
    """Save object as JSON."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(obj, f, indent=indent, default=str)


def load_json(file_path: Union[str, Path]) -> Any:
    """Load JSON file."""
    with open(file_path, 'r') as f:
        return json.load(f)


def trace_to_dataframe(trace: Iterable[TraceRecord]) -> pd.DataFrame:
    """One row per dispatched event."""
    columns = ['time', 'name', 'routine', 'job_id', 'available_memory', 'registered_jobs']
    return pd.DataFrame([record.to_dict() for record in trace], columns=columns)


def jobs_to_dataframe(jobs: Iterable[JobRecord]) -> pd.DataFrame:
    """One row per job, with derived turnaround and wait times."""
    rows = []
    for record in jobs:
        row = record.to_dict()
        row.pop('run_intervals', None)
        row['turnaround_time'] = record.turnaround_time
        row['wait_time'] = record.wait_time
        rows.append(row)
    return pd.DataFrame(rows)


def save_trace_csv(trace: Iterable[TraceRecord], file_path: Union[str, Path]) -> Path:
    """Write the event trace as CSV."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    trace_to_dataframe(trace).to_csv(path, index=False)
    return path


def save_jobs_json(jobs: Iterable[JobRecord], file_path: Union[str, Path]) -> Path:
    """Write per-job records, run intervals included, as JSON."""
    path = Path(file_path)
    save_json([record.to_dict() for record in jobs], path)
    return path
