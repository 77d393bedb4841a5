"""jobsim: event-driven simulator of a round-robin OS job scheduler."""

from .core.simulator import Simulator
from .core.event_queue import Event, EventType, EventQueue
from .core.metrics_collector import MetricsCollector
from .core.payloads import Job, JobState
from .system.control import ControlModule
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Simulator",
    "Event",
    "EventType",
    "EventQueue",
    "MetricsCollector",
    "Job",
    "JobState",
    "ControlModule",
    "setup_logger",
]
