"""
FIFO backlog of admitted work.

Insertion order is arrival order is service order: no priorities, no
reordering. Capacity is unbounded.
"""

from collections import deque
from typing import Deque, Iterable, Iterator, Optional

from .work_item import WorkItem


class PendingQueue:
    """
    First-in-first-out queue of WorkItems waiting for an idle worker.

    Example:
        >>> queue = PendingQueue()
        >>> queue.enqueue(WorkItem("a", "b", 1))
        >>> queue.enqueue(WorkItem("c", "d", 3))
        >>> queue.dequeue().origin
        'a'
        >>> queue.queue_length()
        1
    """

    def __init__(self, items: Iterable[WorkItem] = ()):
        self._items: Deque[WorkItem] = deque(items)

    def enqueue(self, item: WorkItem) -> None:
        """Append item at the back."""
        self._items.append(item)

    def dequeue(self) -> Optional[WorkItem]:
        """
        Remove and return the oldest item.

        Returns:
            Front item, or None if the queue is empty
        """
        if not self._items:
            return None
        return self._items.popleft()

    def peek(self) -> Optional[WorkItem]:
        """Front item without removing it."""
        if not self._items:
            return None
        return self._items[0]

    def is_empty(self) -> bool:
        return not self._items

    def queue_length(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"PendingQueue(length={len(self._items)})"
