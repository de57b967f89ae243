"""
Elastic scale-up/scale-down policy.

Evaluated once per tick, before work assignment, from the queue pressure
after that tick's arrivals and the idle count left by the previous tick.
"""

# Scaling decisions
SCALE_HOLD = "hold"  # No change
SCALE_GROW = "grow"  # Append one idle worker
SCALE_SHRINK = "shrink"  # Remove one idle worker

DEFAULT_SHRINK_IDLE_THRESHOLD = 2


def decide_scaling(
    queue_length: int,
    idle_count: int,
    active: int,
    max_workers: int,
    shrink_idle_threshold: int = DEFAULT_SHRINK_IDLE_THRESHOLD,
) -> str:
    """
    Decide the pool change for one tick.

    Rules, in precedence order:
        1. GROW if queue_length > idle_count and active < max_workers
        2. SHRINK if queue_length == 0 and idle_count > shrink_idle_threshold
           and active > 1
        3. HOLD otherwise

    At most one worker is added or removed per tick.

    Args:
        queue_length: Pending items after this tick's arrivals
        idle_count: Idle workers as of the end of the previous tick
        active: Current pool size
        max_workers: Pool ceiling
        shrink_idle_threshold: Idle workers that must be exceeded before shrinking

    Returns:
        One of SCALE_GROW, SCALE_SHRINK, SCALE_HOLD
    """
    if queue_length > idle_count and active < max_workers:
        return SCALE_GROW
    elif queue_length == 0 and idle_count > shrink_idle_threshold and active > 1:
        return SCALE_SHRINK
    return SCALE_HOLD


class ScalingPolicy:
    """
    Stateless wrapper around decide_scaling() holding the shrink threshold.

    Example:
        >>> policy = ScalingPolicy()
        >>> policy.decide(queue_length=5, idle_count=1, active=2, max_workers=4)
        'grow'
        >>> policy.decide(queue_length=0, idle_count=3, active=3, max_workers=4)
        'shrink'
        >>> policy.decide(queue_length=5, idle_count=0, active=1, max_workers=1)
        'hold'
    """

    def __init__(self, shrink_idle_threshold: int = DEFAULT_SHRINK_IDLE_THRESHOLD):
        if shrink_idle_threshold < 0:
            raise ValueError(
                f"shrink_idle_threshold must be non-negative, got {shrink_idle_threshold}"
            )
        self.shrink_idle_threshold = shrink_idle_threshold

    def decide(
        self, queue_length: int, idle_count: int, active: int, max_workers: int
    ) -> str:
        """Return the scaling decision for the given pool state."""
        return decide_scaling(
            queue_length,
            idle_count,
            active,
            max_workers,
            shrink_idle_threshold=self.shrink_idle_threshold,
        )

    def __repr__(self) -> str:
        return f"ScalingPolicy(shrink_idle_threshold={self.shrink_idle_threshold})"
