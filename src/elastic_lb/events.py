"""
Typed events emitted by the dispatcher.

One event per sub-step of a tick. Every event carries the tick it was emitted
in; tick 0 is the initial queue fill at construction. Rendering, persisting
or discarding events is up to the sink.
"""

from dataclasses import dataclass
from typing import Callable, Union

from .work_item import WorkItem


@dataclass(frozen=True)
class Blocked:
    """Arrival dropped by the admission filter."""

    tick: int
    origin: str


@dataclass(frozen=True)
class Arrived:
    """Arrival admitted and appended to the pending queue."""

    tick: int
    item: WorkItem


@dataclass(frozen=True)
class ScaledUp:
    """Worker appended to the pool."""

    tick: int
    new_active: int
    worker_index: int
    max_workers: int


@dataclass(frozen=True)
class ScaledDown:
    """Idle worker removed from the pool."""

    tick: int
    new_active: int
    worker_index: int
    max_workers: int


@dataclass(frozen=True)
class Completed:
    """Worker finished its item during advancement."""

    tick: int
    worker_index: int
    item: WorkItem


@dataclass(frozen=True)
class Processing:
    """Worker still busy after advancement."""

    tick: int
    worker_index: int
    remaining: int
    item: WorkItem


@dataclass(frozen=True)
class Assigned:
    """Idle worker took the front of the pending queue."""

    tick: int
    worker_index: int
    item: WorkItem


@dataclass(frozen=True)
class Idle:
    """Idle worker found nothing to take."""

    tick: int
    worker_index: int


@dataclass(frozen=True)
class TickSummary:
    """Pool and queue status at the end of a tick."""

    tick: int
    queue_length: int
    active: int
    max_workers: int
    idle: int


Event = Union[
    Blocked,
    Arrived,
    ScaledUp,
    ScaledDown,
    Completed,
    Processing,
    Assigned,
    Idle,
    TickSummary,
]

EventSink = Callable[[Event], None]
