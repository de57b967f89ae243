"""
Tick-driven dispatcher over an elastic pool of single-slot workers.

Owns the worker pool and the pending FIFO queue. Every tick runs five phases
to completion, in order: arrival, scaling, worker advancement, assignment
and status summary.
"""

import logging
from typing import Iterable, List, Optional

from tqdm import tqdm

from .admission_filter import AdmissionFilter
from .dispatcher_config import DispatcherConfig
from .events import (
    Arrived,
    Assigned,
    Blocked,
    Completed,
    Event,
    EventSink,
    Idle,
    Processing,
    ScaledDown,
    ScaledUp,
    TickSummary,
)
from .load_generator import LoadSource, RandomLoadGenerator, as_load_generator
from .pending_queue import PendingQueue
from .results import SimulationResult
from .scaling_policy import SCALE_GROW, SCALE_SHRINK, ScalingPolicy
from .work_item import WorkItem
from .worker import Worker, WorkerPool

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Elastic load dispatcher advanced in discrete ticks.

    Tick phases:
        1. Arrival: new items from the load generator pass the admission
           filter; denied items emit Blocked, admitted ones are queued (Arrived)
        2. Scaling: one GROW/SHRINK/HOLD decision from the queue length after
           arrivals and the idle count left by the previous tick
        3. Advancement: every busy worker advances one tick, in pool order
           (Completed or Processing)
        4. Assignment: every worker idle after advancement takes the queue
           front (Assigned) or reports Idle, in pool order
        5. Summary: TickSummary with queue length and pool counts

    A worker that completes in phase 3 can take new work in phase 4 of the
    same tick.

    Example:
        >>> from elastic_lb import ScriptedLoad, WorkItem
        >>> items = [WorkItem("10.0.0.1", "10.0.0.2", 1) for _ in range(3)]
        >>> dispatcher = Dispatcher(
        ...     DispatcherConfig(max_workers=2),
        ...     load_generator=ScriptedLoad(),
        ...     initial_items=items,
        ... )
        >>> result = dispatcher.run(3)
        >>> result.residual_queue, result.busy_workers, result.completed
        (0, 0, 3)
    """

    def __init__(
        self,
        config: DispatcherConfig,
        load_generator: Optional[LoadSource] = None,
        sink: Optional[EventSink] = None,
        initial_items: Optional[Iterable[WorkItem]] = None,
        admission_filter: Optional[AdmissionFilter] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            config: Dispatcher configuration
            load_generator: Arrival source (LoadGenerator or callable tick -> items);
                          None uses RandomLoadGenerator(config)
            sink: Callable receiving every emitted event
            initial_items: Explicit initial backlog; None draws
                          config.resolved_initial_queue_size items from the load generator
            admission_filter: Pre-loaded filter; None builds one from
                          config.denylist_source
        """
        self.cfg = config
        self.sink = sink
        self.policy = ScalingPolicy(shrink_idle_threshold=config.shrink_idle_threshold)

        if admission_filter is None:
            admission_filter = AdmissionFilter(config.denylist_source)
        self.admission = admission_filter

        if load_generator is None:
            load_generator = RandomLoadGenerator(config)
        self.load_generator = as_load_generator(load_generator)

        self.pool = WorkerPool(config.resolved_initial_workers)
        self.queue = PendingQueue()
        self.current_tick = 0

        # Counters
        self.admitted = 0
        self.blocked = 0
        self.completed = 0
        self.scale_ups = 0
        self.scale_downs = 0

        # Per-tick history
        self._queue_history: List[int] = []
        self._active_history: List[int] = []
        self._idle_history: List[int] = []

        # Initial backlog is admitted at tick 0
        if initial_items is None:
            initial_items = self.load_generator.initial_items(
                config.resolved_initial_queue_size
            )
        initial_events: List[Event] = []
        offered = 0
        for item in initial_items:
            self._admit(item, initial_events)
            offered += 1

        logger.info(
            "Dispatcher initialized with %d/%d workers and %d initial requests "
            "(%d blocked)",
            len(self.pool),
            config.max_workers,
            offered,
            offered - self.queue.queue_length(),
        )

    # ================== Control surface ================== #

    def tick(self) -> List[Event]:
        """
        Advance the simulation by one tick.

        Returns:
            Events emitted during this tick, in emission order (also sent to the sink)
        """
        self.current_tick += 1
        tick = self.current_tick
        events: List[Event] = []

        # 1. Arrivals through the admission filter
        for item in self.load_generator.arrivals(tick):
            self._admit(item, events)

        # 2. One scaling decision per tick
        self._apply_scaling(events)

        # 3. Advance every worker in pool order
        for index, worker in enumerate(self.pool):
            if not worker.is_busy():
                continue
            finished = worker.advance()
            if finished is not None:
                self.completed += 1
                self._emit(Completed(tick, index, finished), events)
            else:
                self._emit(
                    Processing(tick, index, worker.remaining_ticks(), worker.current_item()),
                    events,
                )

        # 4. Hand queued work to every worker left idle
        for index, worker in enumerate(self.pool):
            if worker.is_busy():
                continue
            item = self.queue.dequeue()
            if item is None:
                self._emit(Idle(tick, index), events)
                continue
            worker.assign(item)
            self._emit(Assigned(tick, index, item), events)

        # 5. Status summary
        idle = self.pool.idle_count()
        self._queue_history.append(self.queue.queue_length())
        self._active_history.append(len(self.pool))
        self._idle_history.append(idle)
        self._emit(
            TickSummary(tick, self.queue.queue_length(), len(self.pool), self.cfg.max_workers, idle),
            events,
        )

        logger.debug(
            "Tick %d: queue=%d active=%d/%d idle=%d",
            tick,
            self.queue.queue_length(),
            len(self.pool),
            self.cfg.max_workers,
            idle,
        )
        return events

    def run(self, total_ticks: int, progress: bool = False) -> SimulationResult:
        """
        Run a fixed observation window.

        Calls tick() exactly total_ticks times. Remaining work is not drained.

        Args:
            total_ticks: Number of ticks to simulate (>= 0)
            progress: Show a tqdm progress bar

        Returns:
            SimulationResult covering every tick since construction

        Raises:
            ValueError: If total_ticks is negative
        """
        if total_ticks < 0:
            raise ValueError(f"total_ticks must be non-negative, got {total_ticks}")

        logger.info(
            "Starting simulation with %d workers for %d ticks", len(self.pool), total_ticks
        )

        ticks = range(total_ticks)
        if progress:
            ticks = tqdm(ticks, desc="ticks", ncols=80)
        for _ in ticks:
            self.tick()

        result = self.result()
        logger.info(
            "Simulation complete: %d requests remaining in queue, %d/%d workers still busy",
            result.residual_queue,
            result.busy_workers,
            len(self.pool),
        )
        return result

    def result(self) -> SimulationResult:
        """Snapshot of history and counters so far."""
        return SimulationResult(
            ticks=self.current_tick,
            queue_lengths=list(self._queue_history),
            active_workers=list(self._active_history),
            idle_workers=list(self._idle_history),
            residual_queue=self.queue.queue_length(),
            busy_workers=self.pool.busy_count(),
            admitted=self.admitted,
            blocked=self.blocked,
            completed=self.completed,
            scale_ups=self.scale_ups,
            scale_downs=self.scale_downs,
            metadata={
                "max_workers": self.cfg.max_workers,
                "initial_workers": self.cfg.resolved_initial_workers,
                "shrink_idle_threshold": self.cfg.shrink_idle_threshold,
                "denied_origins": self.admission.denied_count(),
                "load_generator": repr(self.load_generator),
            },
        )

    # ================== Observers ================== #

    def queue_length(self) -> int:
        return self.queue.queue_length()

    def active_workers(self) -> int:
        return len(self.pool)

    def idle_workers(self) -> int:
        return self.pool.idle_count()

    def busy_workers(self) -> int:
        return self.pool.busy_count()

    @property
    def workers(self) -> List[Worker]:
        """Workers in pool order (a copy of the pool's list)."""
        return list(self.pool)

    # ================== Internal helpers ================== #

    def _emit(self, event: Event, events: List[Event]) -> None:
        events.append(event)
        if self.sink is not None:
            self.sink(event)

    def _admit(self, item: WorkItem, events: List[Event]) -> None:
        """Queue item unless its origin is denied."""
        if self.admission.is_denied(item.origin):
            self.blocked += 1
            self._emit(Blocked(self.current_tick, item.origin), events)
            return
        self.queue.enqueue(item)
        self.admitted += 1
        self._emit(Arrived(self.current_tick, item), events)

    def _apply_scaling(self, events: List[Event]) -> None:
        """Apply at most one pool change for the current tick."""
        decision = self.policy.decide(
            queue_length=self.queue.queue_length(),
            idle_count=self.pool.idle_count(),
            active=len(self.pool),
            max_workers=self.cfg.max_workers,
        )

        if decision == SCALE_GROW:
            index = self.pool.add_worker()
            self.scale_ups += 1
            logger.debug(
                "Time %d: scaled up, added worker %d (%d/%d)",
                self.current_tick,
                index,
                len(self.pool),
                self.cfg.max_workers,
            )
            self._emit(
                ScaledUp(self.current_tick, len(self.pool), index, self.cfg.max_workers),
                events,
            )
        elif decision == SCALE_SHRINK:
            index = self.pool.remove_idle_worker()
            if index is None:
                # Policy only shrinks with idle workers present
                return
            self.scale_downs += 1
            logger.debug(
                "Time %d: scaled down, removed idle worker %d (%d/%d)",
                self.current_tick,
                index,
                len(self.pool),
                self.cfg.max_workers,
            )
            self._emit(
                ScaledDown(self.current_tick, len(self.pool), index, self.cfg.max_workers),
                events,
            )

    def __repr__(self) -> str:
        return (
            f"Dispatcher(tick={self.current_tick}, queue={self.queue.queue_length()}, "
            f"active={len(self.pool)}/{self.cfg.max_workers})"
        )


def create_dispatcher(
    max_workers: int,
    initial_queue_size: Optional[int] = None,
    denylist_source=None,
    **kwargs,
) -> Dispatcher:
    """
    Build a dispatcher from the three construction parameters.

    Args:
        max_workers: Pool ceiling (must be positive)
        initial_queue_size: Initial requests (None or -1 for max_workers * 100)
        denylist_source: Denylist path or iterable of origins (None denies nothing)
        **kwargs: Forwarded to Dispatcher (load_generator, sink, initial_items, ...)

    Returns:
        Dispatcher ready to tick()

    Raises:
        ValueError: If max_workers is not positive
    """
    config = DispatcherConfig(
        max_workers=max_workers,
        initial_queue_size=initial_queue_size,
        denylist_source=denylist_source,
    )
    return Dispatcher(config, **kwargs)
