"""
Static Pool Dispatcher (fixed-capacity baseline for elastic scaling evaluation).

Same tick loop, admission and FIFO assignment as the elastic dispatcher, but
the pool never grows or shrinks.
"""

from typing import List, Optional

from elastic_lb import Dispatcher, DispatcherConfig
from elastic_lb.events import Event


class StaticPoolDispatcher(Dispatcher):
    """
    Dispatcher with scaling disabled.

    The pool keeps config.resolved_initial_workers workers for the whole run:
        - With initial_workers == max_workers it bounds the elastic pool from above
          (best latency, no savings)
        - With a small initial_workers it shows the backlog an unscaled pool builds

    Example:
        >>> baseline = StaticPoolDispatcher(DispatcherConfig(max_workers=4, initial_queue_size=0, seed=1))
        >>> result = baseline.run(100)
        >>> result.scale_ups + result.scale_downs
        0
    """

    def _apply_scaling(self, events: List[Event]) -> None:
        return None

    def __repr__(self) -> str:
        return (
            f"StaticPoolDispatcher(tick={self.current_tick}, "
            f"queue={self.queue.queue_length()}, workers={len(self.pool)})"
        )


def create_static_pool(
    workers: int,
    initial_queue_size: Optional[int] = 0,
    **kwargs,
) -> StaticPoolDispatcher:
    """
    Build a static pool of a fixed size.

    Args:
        workers: Pool size for the whole run
        initial_queue_size: Initial requests drawn from the load generator
        **kwargs: Forwarded to StaticPoolDispatcher (load_generator, sink, ...)
    """
    config = DispatcherConfig(
        max_workers=workers,
        initial_workers=workers,
        initial_queue_size=initial_queue_size,
    )
    return StaticPoolDispatcher(config, **kwargs)
