"""Event routines implementing the job lifecycle."""

from .routines import (
    IMMEDIATE,
    ROUTINES,
    Routine,
    create_event_routines,
    create_routine,
    select_routine,
)

__all__ = [
    "IMMEDIATE",
    "ROUTINES",
    "Routine",
    "create_event_routines",
    "create_routine",
    "select_routine",
]
