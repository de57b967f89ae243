"""
Configuration for the elastic dispatcher.

Defines pool bounds, the scaling hysteresis, the denylist source and the
parameters of the synthetic random load.
"""

from dataclasses import dataclass
from typing import Optional

from .admission_filter import DenylistSource
from .scaling_policy import DEFAULT_SHRINK_IDLE_THRESHOLD

# Initial backlog per worker when no explicit initial queue size is given
DEFAULT_QUEUE_PER_WORKER = 100


@dataclass
class DispatcherConfig:
    """
    Configuration for the Dispatcher.

    Pool:
        The pool starts with initial_workers idle workers (default: the full
        max_workers) and stays within [1, max_workers] for the whole run.

    Initial queue:
        initial_queue_size items are drawn from the load generator at
        construction and passed through the admission filter. None or -1
        means max_workers * 100.

    Random load (per tick):
        - With probability arrival_probability, new requests arrive
        - Within that, with probability surge_probability a surge of
          surge_size requests arrives instead of one
        - Origins/destinations are ip_prefix + uniform octet in [0, ip_octet_max]
        - Durations are uniform integers in [min_duration, max_duration]
    """

    # === Pool ===
    max_workers: int = 10
    initial_workers: Optional[int] = None  # None → max_workers
    shrink_idle_threshold: int = DEFAULT_SHRINK_IDLE_THRESHOLD

    # === Initial queue and admission ===
    initial_queue_size: Optional[int] = None  # None or -1 → max_workers * 100
    denylist_source: Optional[DenylistSource] = None  # None → deny nothing

    # === Random load ===
    arrival_probability: float = 0.30
    surge_probability: float = 0.01
    surge_size: int = 5
    min_duration: int = 1
    max_duration: int = 10
    ip_prefix: str = "192.168.1."
    ip_octet_max: int = 254
    seed: Optional[int] = None  # None → non-deterministic

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

        if self.initial_workers is not None and not (
            1 <= self.initial_workers <= self.max_workers
        ):
            raise ValueError(
                f"initial_workers must be in [1, max_workers={self.max_workers}], "
                f"got {self.initial_workers}"
            )

        if self.shrink_idle_threshold < 0:
            raise ValueError(
                f"shrink_idle_threshold must be non-negative, got {self.shrink_idle_threshold}"
            )

        if self.initial_queue_size is not None and self.initial_queue_size < -1:
            raise ValueError(
                f"initial_queue_size must be >= 0 (or -1 for default), "
                f"got {self.initial_queue_size}"
            )

        for name, value in [
            ("arrival_probability", self.arrival_probability),
            ("surge_probability", self.surge_probability),
        ]:
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")

        if self.surge_size < 1:
            raise ValueError(f"surge_size must be >= 1, got {self.surge_size}")

        if self.min_duration < 1:
            raise ValueError(f"min_duration must be >= 1, got {self.min_duration}")
        if self.max_duration < self.min_duration:
            raise ValueError(
                f"max_duration ({self.max_duration}) must be >= "
                f"min_duration ({self.min_duration})"
            )

        if not 0 <= self.ip_octet_max <= 255:
            raise ValueError(f"ip_octet_max must be in [0, 255], got {self.ip_octet_max}")

    @property
    def resolved_initial_workers(self) -> int:
        """Pool size at construction."""
        if self.initial_workers is None:
            return self.max_workers
        return self.initial_workers

    @property
    def resolved_initial_queue_size(self) -> int:
        """Number of initial items to draw."""
        if self.initial_queue_size is None or self.initial_queue_size == -1:
            return self.max_workers * DEFAULT_QUEUE_PER_WORKER
        return self.initial_queue_size


# Convenience factory functions


def create_dispatcher_default() -> DispatcherConfig:
    """
    Create dispatcher configuration with the simulation defaults.

    Defaults:
        - 10 workers, all active at start
        - 1000 initial requests (100 per worker)
        - 30% arrival chance per tick, 1% of those a 5-request surge
        - Durations 1-10 ticks, origins 192.168.1.0-254
        - No denylist

    Returns:
        DispatcherConfig with default parameters
    """
    return DispatcherConfig()


def create_dispatcher_custom(
    max_workers: int = 10,
    initial_queue_size: Optional[int] = None,
    denylist_source: Optional[DenylistSource] = None,
    arrival_probability: float = 0.30,
    max_duration: int = 10,
    seed: Optional[int] = None,
) -> DispatcherConfig:
    """
    Create dispatcher configuration with custom parameters.

    Args:
        max_workers: Pool ceiling (also the starting pool size)
        initial_queue_size: Initial requests (None or -1 for max_workers * 100)
        denylist_source: Denylist path or iterable of origins
        arrival_probability: Chance of new arrivals per tick
        max_duration: Longest request duration in ticks
        seed: Seed for the random load stream

    Returns:
        DispatcherConfig with custom parameters
    """
    return DispatcherConfig(
        max_workers=max_workers,
        initial_queue_size=initial_queue_size,
        denylist_source=denylist_source,
        arrival_probability=arrival_probability,
        max_duration=max_duration,
        seed=seed,
    )
