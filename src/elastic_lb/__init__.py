"""
Elastic load balancer simulation advanced in discrete ticks.

Dispatches requests from a FIFO queue to an elastic pool of single-slot
workers, scaling the pool by at most one worker per tick and filtering
arrivals by origin against a static denylist.

Main components:
    - Dispatcher: Tick loop owning the worker pool and pending queue
    - DispatcherConfig: Configuration dataclass with pool bounds and load parameters
    - AdmissionFilter: Origin denylist, fail-open on unreadable sources
    - ScalingPolicy: Grow/shrink/hold decision per tick
    - Worker / WorkerPool: Single-slot processors and their elastic pool
    - PendingQueue: FIFO backlog of admitted work

Tick phases:
    1. Arrival: admitted items queued, denied items blocked
    2. Scaling: one worker added or removed at most
    3. Advancement: every busy worker advances one tick
    4. Assignment: idle workers take the queue front
    5. Summary: queue length and pool counts

Example:
    >>> from elastic_lb import DispatcherConfig, Dispatcher, EventRecorder
    >>> config = DispatcherConfig(
    ...     max_workers=4,
    ...     initial_queue_size=20,
    ...     denylist_source=["192.168.1.5"],
    ...     seed=42,
    ... )
    >>> recorder = EventRecorder()
    >>> dispatcher = Dispatcher(config, sink=recorder)
    >>> result = dispatcher.run(50)
    >>> 1 <= result.active_workers.min() <= result.active_workers.max() <= 4
    True
"""

from .admission_filter import AdmissionFilter
from .dispatcher import Dispatcher, create_dispatcher
from .dispatcher_config import (
    DispatcherConfig,
    create_dispatcher_custom,
    create_dispatcher_default,
)
from .event_log import EventRecorder, TextEventLog, configure_logging, format_event
from .events import (
    Arrived,
    Assigned,
    Blocked,
    Completed,
    Idle,
    Processing,
    ScaledDown,
    ScaledUp,
    TickSummary,
)
from .load_generator import (
    CallableLoad,
    LoadGenerator,
    RandomLoadGenerator,
    ScriptedLoad,
    as_load_generator,
)
from .pending_queue import PendingQueue
from .results import SimulationResult
from .scaling_policy import (
    SCALE_GROW,
    SCALE_HOLD,
    SCALE_SHRINK,
    ScalingPolicy,
    decide_scaling,
)
from .work_item import WorkItem
from .worker import Worker, WorkerPool

__all__ = [
    # Main dispatcher
    "Dispatcher",
    "create_dispatcher",
    # Configuration
    "DispatcherConfig",
    "create_dispatcher_default",
    "create_dispatcher_custom",
    # Components
    "AdmissionFilter",
    "PendingQueue",
    "ScalingPolicy",
    "decide_scaling",
    "Worker",
    "WorkerPool",
    "WorkItem",
    # Load generation
    "LoadGenerator",
    "RandomLoadGenerator",
    "ScriptedLoad",
    "CallableLoad",
    "as_load_generator",
    # Events and sinks
    "Blocked",
    "Arrived",
    "ScaledUp",
    "ScaledDown",
    "Completed",
    "Processing",
    "Assigned",
    "Idle",
    "TickSummary",
    "EventRecorder",
    "TextEventLog",
    "configure_logging",
    "format_event",
    # Results
    "SimulationResult",
    # Scaling decisions
    "SCALE_GROW",
    "SCALE_SHRINK",
    "SCALE_HOLD",
]

__version__ = "1.0.0"
