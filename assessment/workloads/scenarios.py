"""
Evaluation scenarios for elastic dispatcher benchmarking.

Deterministic workloads replayed through ScriptedLoad:
1. Backlog Drain - Preloaded queue, no further arrivals
2. Steady Trickle - Constant arrivals below pool capacity
3. Traffic Surge - Quiet baseline with a burst in the middle
4. Denylist Mix - Mixed traffic with a share of denied origins
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from elastic_lb import ScriptedLoad, WorkItem


@dataclass
class Workload:
    """
    Workload specification for the dispatcher.

    Attributes:
        arrivals_by_tick: Items arriving at each tick (ticks are 1-based)
        preload: Initial backlog queued at construction
        denylist: Origins the admission filter should deny
        description: Human-readable scenario description
    """

    arrivals_by_tick: Dict[int, List[WorkItem]]
    preload: List[WorkItem] = field(default_factory=list)
    denylist: List[str] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        """Validate workload consistency."""
        for tick in self.arrivals_by_tick:
            if tick < 1:
                raise ValueError(f"arrival ticks must be >= 1, got {tick}")

    @property
    def n_arrivals(self) -> int:
        """Items arriving after construction."""
        return sum(len(items) for items in self.arrivals_by_tick.values())

    @property
    def n_items(self) -> int:
        """All items offered, preload included."""
        return self.n_arrivals + len(self.preload)

    @property
    def last_arrival_tick(self) -> int:
        """Tick of the final arrival (0 if none)."""
        ticks = [t for t, items in self.arrivals_by_tick.items() if items]
        return max(ticks) if ticks else 0

    @property
    def n_denied(self) -> int:
        """Offered items whose origin is on the denylist."""
        denied = set(self.denylist)
        offered = list(self.preload)
        for items in self.arrivals_by_tick.values():
            offered.extend(items)
        return sum(1 for item in offered if item.origin in denied)

    @property
    def total_work(self) -> int:
        """Sum of durations of all offered items."""
        total = sum(item.duration_ticks for item in self.preload)
        for items in self.arrivals_by_tick.values():
            total += sum(item.duration_ticks for item in items)
        return total

    def to_load(self) -> ScriptedLoad:
        """Load generator replaying this workload."""
        return ScriptedLoad(self.arrivals_by_tick, preload=self.preload)


def _random_item(rng: np.random.Generator, max_duration: int, prefix: str = "10.0.0.") -> WorkItem:
    octets = rng.integers(1, 254, size=2, endpoint=True)
    return WorkItem(
        origin=f"{prefix}{int(octets[0])}",
        destination=f"{prefix}{int(octets[1])}",
        duration_ticks=int(rng.integers(1, max_duration, endpoint=True)),
    )


def generate_backlog_drain(
    n_items: int = 40,
    duration: int = 3,
) -> Workload:
    """
    Scenario 1: Backlog Drain.

    Tests pure service capacity: a preloaded queue of equal-duration items
    and no further arrivals. Total work is n_items * duration ticks.

    Args:
        n_items: Preloaded items
        duration: Duration of every item in ticks

    Returns:
        Workload with preload only

    Example:
        >>> workload = generate_backlog_drain(n_items=10, duration=2)
        >>> workload.n_items, workload.total_work
        (10, 20)
    """
    preload = [
        WorkItem(f"10.0.1.{i % 250 + 1}", "10.0.9.1", duration) for i in range(n_items)
    ]
    return Workload(
        arrivals_by_tick={},
        preload=preload,
        description=f"Backlog Drain: {n_items} items × {duration} ticks",
    )


def generate_steady_trickle(
    n_ticks: int = 200,
    arrival_interval: int = 2,
    max_duration: int = 4,
    seed: Optional[int] = None,
) -> Workload:
    """
    Scenario 2: Steady Trickle.

    Tests scale-down under light load: one arrival every arrival_interval
    ticks keeps a few workers busy while the rest of the pool should shrink
    away down to the idle hysteresis.

    Args:
        n_ticks: Ticks over which arrivals are spread
        arrival_interval: Ticks between arrivals
        max_duration: Longest item duration

    Returns:
        Workload with regular single arrivals
    """
    if arrival_interval < 1:
        raise ValueError(f"arrival_interval must be >= 1, got {arrival_interval}")

    rng = np.random.default_rng(seed)
    arrivals = {
        tick: [_random_item(rng, max_duration)]
        for tick in range(1, n_ticks + 1, arrival_interval)
    }
    return Workload(
        arrivals_by_tick=arrivals,
        description=(
            f"Steady Trickle: 1 item every {arrival_interval} ticks for {n_ticks} ticks "
            f"(durations 1-{max_duration})"
        ),
    )


def generate_traffic_surge(
    n_ticks: int = 200,
    surge_start: int = 80,
    surge_length: int = 20,
    surge_rate: int = 5,
    base_interval: int = 4,
    max_duration: int = 8,
    seed: Optional[int] = None,
) -> Workload:
    """
    Scenario 3: Traffic Surge.

    Tests scale-up rate limiting: a quiet baseline, then surge_rate arrivals
    per tick for surge_length ticks. The pool grows by at most one worker per
    tick, so the backlog peaks during the surge and drains afterwards.

    Args:
        n_ticks: Ticks over which arrivals are spread
        surge_start: First surge tick
        surge_length: Surge duration in ticks
        surge_rate: Arrivals per surge tick
        base_interval: Ticks between baseline arrivals
        max_duration: Longest item duration

    Returns:
        Workload with baseline + surge arrivals

    Example:
        >>> workload = generate_traffic_surge(n_ticks=100, surge_start=40, surge_length=10, surge_rate=5, seed=1)
        >>> len(workload.arrivals_by_tick[45])
        5
    """
    rng = np.random.default_rng(seed)
    arrivals: Dict[int, List[WorkItem]] = {}

    for tick in range(1, n_ticks + 1, base_interval):
        arrivals.setdefault(tick, []).append(_random_item(rng, max_duration))

    for tick in range(surge_start, surge_start + surge_length):
        arrivals[tick] = [_random_item(rng, max_duration) for _ in range(surge_rate)]

    return Workload(
        arrivals_by_tick=arrivals,
        description=(
            f"Traffic Surge: {surge_rate}/tick for {surge_length} ticks at t={surge_start}, "
            f"baseline 1 every {base_interval} ticks"
        ),
    )


def generate_denylist_mix(
    n_ticks: int = 100,
    arrivals_per_tick: int = 2,
    denied_fraction: float = 0.25,
    n_denied_origins: int = 5,
    max_duration: int = 5,
    seed: Optional[int] = None,
) -> Workload:
    """
    Scenario 4: Denylist Mix.

    Tests admission filtering: a fraction of arrivals come from a small set
    of denied origins and must never reach the queue or a worker.

    Args:
        n_ticks: Ticks with arrivals
        arrivals_per_tick: Arrivals per tick
        denied_fraction: Probability an arrival comes from a denied origin
        n_denied_origins: Size of the denylist
        max_duration: Longest item duration

    Returns:
        Workload with denylist populated
    """
    if not 0.0 <= denied_fraction <= 1.0:
        raise ValueError(f"denied_fraction must be in [0, 1], got {denied_fraction}")

    rng = np.random.default_rng(seed)
    denylist = [f"203.0.113.{i + 1}" for i in range(n_denied_origins)]

    arrivals: Dict[int, List[WorkItem]] = {}
    for tick in range(1, n_ticks + 1):
        items = []
        for _ in range(arrivals_per_tick):
            item = _random_item(rng, max_duration)
            if denylist and rng.random() < denied_fraction:
                origin = denylist[int(rng.integers(0, len(denylist)))]
                item = WorkItem(origin, item.destination, item.duration_ticks)
            items.append(item)
        arrivals[tick] = items

    return Workload(
        arrivals_by_tick=arrivals,
        denylist=denylist,
        description=(
            f"Denylist Mix: {arrivals_per_tick}/tick for {n_ticks} ticks, "
            f"{denied_fraction:.0%} from {n_denied_origins} denied origins"
        ),
    )
