"""
Single-slot workers and the elastic pool that owns them.

A Worker is either idle or busy with exactly one WorkItem. It only changes
state through assign() (idle -> busy) and advance() (one tick of progress).
"""

from typing import Iterator, List, Optional

from .work_item import WorkItem


class Worker:
    """
    Single-slot processor advanced one tick at a time.

    States:
        - Idle: no item, remaining == 0
        - Busy: holds one item, 1 <= remaining <= item.duration_ticks

    Example:
        >>> worker = Worker()
        >>> worker.assign(WorkItem("10.0.0.1", "10.0.0.2", 2))
        True
        >>> worker.advance()  # 1 tick remaining
        >>> worker.advance().origin  # completes this tick
        '10.0.0.1'
        >>> worker.is_busy()
        False
    """

    def __init__(self):
        """Initialize an idle worker."""
        self._item: Optional[WorkItem] = None
        self._remaining = 0

    def assign(self, item: WorkItem) -> bool:
        """
        Start processing an item.

        Args:
            item: Work to hold until its duration elapses

        Returns:
            True if the item was taken, False if the worker was already busy
            (the item is ignored and the current one keeps running)
        """
        if self._item is not None:
            return False
        self._item = item
        self._remaining = item.duration_ticks
        return True

    def advance(self) -> Optional[WorkItem]:
        """
        Advance by one tick.

        Returns:
            The item that completed during this tick, or None if the worker is
            still busy or was idle to begin with
        """
        if self._item is None:
            return None

        self._remaining -= 1
        if self._remaining > 0:
            return None

        finished = self._item
        self._item = None
        self._remaining = 0
        return finished

    def is_busy(self) -> bool:
        return self._item is not None

    def remaining_ticks(self) -> int:
        """Ticks left on the current item (0 when idle)."""
        return self._remaining

    def current_item(self) -> Optional[WorkItem]:
        return self._item

    def __repr__(self) -> str:
        if self._item is None:
            return "Worker(idle)"
        return f"Worker(busy, item={self._item.describe()}, remaining={self._remaining})"


class WorkerPool:
    """
    Ordered, elastic collection of workers.

    Workers are appended at the tail on scale-up and removed on scale-down
    only while idle (first idle worker in pool order). Indices are positions
    in the pool and shift down when an earlier worker is removed.
    """

    def __init__(self, size: int = 0):
        """
        Initialize pool.

        Args:
            size: Number of idle workers to start with
        """
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self._workers: List[Worker] = [Worker() for _ in range(size)]

    def add_worker(self) -> int:
        """Append a new idle worker and return its index."""
        self._workers.append(Worker())
        return len(self._workers) - 1

    def remove_idle_worker(self) -> Optional[int]:
        """
        Remove the first idle worker.

        Returns:
            Index the removed worker had, or None if every worker is busy
        """
        for index, worker in enumerate(self._workers):
            if not worker.is_busy():
                del self._workers[index]
                return index
        return None

    def idle_count(self) -> int:
        return sum(1 for w in self._workers if not w.is_busy())

    def busy_count(self) -> int:
        return sum(1 for w in self._workers if w.is_busy())

    def __getitem__(self, index: int) -> Worker:
        return self._workers[index]

    def __iter__(self) -> Iterator[Worker]:
        return iter(self._workers)

    def __len__(self) -> int:
        return len(self._workers)

    def __repr__(self) -> str:
        return f"WorkerPool(active={len(self)}, busy={self.busy_count()})"
