"""
Unit of work handled by the dispatcher.

A WorkItem is created by the load generator, checked by the admission filter,
queued, and finally held by exactly one worker until its duration elapses.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkItem:
    """
    Immutable request record.

    Attributes:
        origin: Source identifier (e.g., "192.168.1.17"), checked against the denylist
        destination: Destination identifier
        duration_ticks: Ticks of processing the item needs (> 0)
    """

    origin: str
    destination: str
    duration_ticks: int

    def __post_init__(self):
        """Validate fields."""
        if not isinstance(self.origin, str) or not self.origin:
            raise ValueError(f"origin must be a non-empty string, got {self.origin!r}")
        if not isinstance(self.destination, str) or not self.destination:
            raise ValueError(
                f"destination must be a non-empty string, got {self.destination!r}"
            )
        if isinstance(self.duration_ticks, bool) or not isinstance(self.duration_ticks, int):
            raise ValueError(
                f"duration_ticks must be an integer, got {type(self.duration_ticks).__name__}"
            )
        if self.duration_ticks <= 0:
            raise ValueError(f"duration_ticks must be positive, got {self.duration_ticks}")

    def describe(self) -> str:
        """Short "origin -> destination" label used in log lines."""
        return f"{self.origin} -> {self.destination}"
