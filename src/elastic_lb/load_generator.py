"""
Load generators feeding the dispatcher.

The dispatcher asks its load generator for new arrivals once per tick and for
an initial backlog once at construction. Random load draws from an independent
numpy stream; scripted load replays a fixed schedule for deterministic runs.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np

from .dispatcher_config import DispatcherConfig
from .work_item import WorkItem

logger = logging.getLogger(__name__)


class LoadGenerator(ABC):
    """
    Base class for arrival sources.

    Subclasses produce zero or more WorkItems per tick. Item count and
    duration are unbounded; callers should expect queue growth when arrivals
    outpace pool capacity.
    """

    @abstractmethod
    def arrivals(self, tick: int) -> List[WorkItem]:
        """
        Produce the arrivals for a tick.

        Args:
            tick: Tick number (1-based)

        Returns:
            New WorkItems in arrival order
        """
        pass

    def initial_items(self, count: int) -> List[WorkItem]:
        """Initial backlog of up to count items (none by default)."""
        return []


class RandomLoadGenerator(LoadGenerator):
    """
    Synthetic load with occasional traffic surges.

    Each tick has config.arrival_probability chance of arrivals; an arriving
    batch is a surge of config.surge_size with config.surge_probability,
    otherwise a single item.

    Example:
        >>> gen = RandomLoadGenerator(DispatcherConfig(seed=7))
        >>> items = gen.initial_items(3)
        >>> len(items)
        3
        >>> all(1 <= item.duration_ticks <= 10 for item in items)
        True
    """

    def __init__(self, config: DispatcherConfig, seed: Optional[int] = None):
        """
        Initialize random load.

        Args:
            config: Load parameters (probabilities, duration range, IP space)
            seed: Seed overriding config.seed (None uses config.seed)
        """
        self.cfg = config
        seed = config.seed if seed is None else seed

        # Independent RNG stream for reproducibility
        if seed is not None:
            self.rng = np.random.default_rng(seed=seed)
        else:
            self.rng = np.random.default_rng()

    def make_item(self) -> WorkItem:
        """Draw one random request."""
        octets = self.rng.integers(0, self.cfg.ip_octet_max, size=2, endpoint=True)
        duration = self.rng.integers(
            self.cfg.min_duration, self.cfg.max_duration, endpoint=True
        )
        return WorkItem(
            origin=f"{self.cfg.ip_prefix}{int(octets[0])}",
            destination=f"{self.cfg.ip_prefix}{int(octets[1])}",
            duration_ticks=int(duration),
        )

    def arrivals(self, tick: int) -> List[WorkItem]:
        if self.rng.random() >= self.cfg.arrival_probability:
            return []

        count = 1
        if self.rng.random() < self.cfg.surge_probability:
            count = self.cfg.surge_size
            logger.info("Time %d: TRAFFIC SURGE! Adding %d requests", tick, count)

        return [self.make_item() for _ in range(count)]

    def initial_items(self, count: int) -> List[WorkItem]:
        return [self.make_item() for _ in range(count)]

    def __repr__(self) -> str:
        return (
            f"RandomLoadGenerator(p_arrival={self.cfg.arrival_probability}, "
            f"p_surge={self.cfg.surge_probability}, surge_size={self.cfg.surge_size})"
        )


class ScriptedLoad(LoadGenerator):
    """
    Deterministic load replaying a fixed schedule.

    Example:
        >>> load = ScriptedLoad({2: [WorkItem("a", "b", 1)]})
        >>> load.arrivals(1)
        []
        >>> [item.origin for item in load.arrivals(2)]
        ['a']
    """

    def __init__(
        self,
        arrivals_by_tick: Optional[Mapping[int, Iterable[WorkItem]]] = None,
        preload: Iterable[WorkItem] = (),
    ):
        """
        Initialize scripted load.

        Args:
            arrivals_by_tick: Items arriving at each tick; missing ticks have none
            preload: Initial backlog returned by initial_items()
        """
        self.schedule: Dict[int, List[WorkItem]] = {
            int(tick): list(items) for tick, items in (arrivals_by_tick or {}).items()
        }
        self.preload: List[WorkItem] = list(preload)

    def arrivals(self, tick: int) -> List[WorkItem]:
        return list(self.schedule.get(tick, []))

    def initial_items(self, count: int) -> List[WorkItem]:
        return self.preload[:count]

    def total_arrivals(self) -> int:
        """Number of scheduled items (excluding preload)."""
        return sum(len(items) for items in self.schedule.values())

    def __repr__(self) -> str:
        return (
            f"ScriptedLoad(ticks={len(self.schedule)}, "
            f"arrivals={self.total_arrivals()}, preload={len(self.preload)})"
        )


class CallableLoad(LoadGenerator):
    """Adapter for a plain function mapping a tick to its arrivals."""

    def __init__(self, fn: Callable[[int], Iterable[WorkItem]]):
        self.fn = fn

    def arrivals(self, tick: int) -> List[WorkItem]:
        return list(self.fn(tick))


LoadSource = Union[LoadGenerator, Callable[[int], Iterable[WorkItem]]]


def as_load_generator(source: LoadSource) -> LoadGenerator:
    """
    Wrap a callable as a LoadGenerator (LoadGenerators pass through).

    Raises:
        TypeError: If source is neither a LoadGenerator nor callable
    """
    if isinstance(source, LoadGenerator):
        return source
    if callable(source):
        return CallableLoad(source)
    raise TypeError(
        f"load generator must be a LoadGenerator or callable, got {type(source).__name__}"
    )
