"""Event queue implementation for discrete event simulation."""

from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .payloads import Default, Payload

IMMEDIATE = 0


class EventType(Enum):
    """Kinds of events, one per lifecycle handler.

    The values double as the canonical event names.
    """
    # Job lifecycle events
    JOB_ARRIVAL = "job_arrival"
    JOB_ENTRANCE = "job_entrance"
    REQUEST_MEMORY = "request_memory"
    REQUEST_CPU = "request_cpu"
    PAUSE_JOB = "pause_job"
    END_PROCESS = "end_process"

    # Resource release events
    FREE_CPU = "free_cpu"
    FREE_MEMORY = "free_memory"
    EXIT_SYSTEM = "exit_system"

    # Anything else
    DEFAULT = "default"


@dataclass
class Event:
    """Event in the discrete event simulation.

    Attributes:
        time: Simulated delivery time
        name: Symbolic label resolved to a handler at dispatch
        payload: Event-specific data
        immediate: Follow-up of an event being processed, due in the same
            instant
    """
    time: int
    name: str
    payload: Payload = field(default_factory=Default)
    immediate: bool = False

    def __post_init__(self):
        """Validate event after initialization."""
        if self.time < 0:
            raise ValueError("Event time cannot be negative")


class EventQueue:
    """Time-ordered list of pending events.

    Events are kept sorted by time; events with equal times keep insertion
    order. Insertion is a linear scan, which is fine at simulation scale.
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Event] = []

    def push(self, time: int, name: str, payload: Optional[Payload] = None) -> Event:
        """Create an event and insert it in time order.

        The event goes after every queued event whose time is less than or
        equal to ``time``.

        Args:
            time: Delivery time
            name: Event name
            payload: Event payload, ``Default()`` if omitted

        Returns:
            The queued event
        """
        event = Event(time=time, name=name,
                      payload=payload if payload is not None else Default())
        index = len(self._queue)
        for i, queued in enumerate(self._queue):
            if queued.time > time:
                index = i
                break
        self._queue.insert(index, event)
        return event

    def push_immediate(self, name: str, payload: Optional[Payload] = None) -> Event:
        """Queue a follow-up event for the current instant.

        The event is stamped with time ``IMMEDIATE`` and goes after the
        follow-ups already queued but ahead of every seeded or timed event,
        including others due at time 0. A chain of follow-ups therefore runs
        to completion before the next pending event is popped.

        Args:
            name: Event name
            payload: Event payload, ``Default()`` if omitted

        Returns:
            The queued event
        """
        event = Event(time=IMMEDIATE, name=name,
                      payload=payload if payload is not None else Default(),
                      immediate=True)
        index = 0
        while index < len(self._queue) and self._queue[index].immediate:
            index += 1
        self._queue.insert(index, event)
        return event

    def pop(self) -> Optional[Event]:
        """Remove and return the head event.

        Returns:
            Earliest event, or None if queue is empty
        """
        if not self._queue:
            return None
        return self._queue.pop(0)

    def push_back(self, event: Event) -> None:
        """Put an already-popped event back at the head of the queue.

        Sort order is not checked: this is meant for returning the event that
        was just popped, which was the earliest one.

        Args:
            event: Event to reinsert
        """
        self._queue.insert(0, event)

    def peek(self) -> Optional[Event]:
        """Return the head event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        return self._queue[0] if self._queue else None

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self._queue) == 0

    def size(self) -> int:
        """Get number of events in queue."""
        return len(self._queue)

    def clear(self) -> None:
        """Remove all events from queue."""
        self._queue.clear()

    def __iter__(self) -> Iterator[Event]:
        """Walk pending events head first without consuming them."""
        return iter(list(self._queue))

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self._queue)}, next={self.peek()})"
