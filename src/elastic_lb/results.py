"""
Data structures for dispatcher run results.

Provides a standardized container for the per-tick history and end-of-run
counters of a simulation window.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np
import pandas as pd


@dataclass
class SimulationResult:
    """
    Container for a fixed-window dispatcher run.

    The window stops after a fixed number of ticks; residual_queue and
    busy_workers describe the work left over, which is not drained.

    Attributes:
        ticks: Ticks simulated since the dispatcher was constructed
        queue_lengths: Pending queue length at the end of each tick
        active_workers: Pool size at the end of each tick
        idle_workers: Idle workers at the end of each tick
        residual_queue: Items still queued when the run stopped
        busy_workers: Workers still busy when the run stopped
        admitted: Items admitted into the queue (initial fill included)
        blocked: Items dropped by the admission filter (initial fill included)
        completed: Items finished by workers
        scale_ups: Workers added by the scaling policy
        scale_downs: Workers removed by the scaling policy
        metadata: Dispatcher configuration snapshot
    """

    ticks: int
    queue_lengths: np.ndarray
    active_workers: np.ndarray
    idle_workers: np.ndarray
    residual_queue: int = 0
    busy_workers: int = 0
    admitted: int = 0
    blocked: int = 0
    completed: int = 0
    scale_ups: int = 0
    scale_downs: int = 0
    metadata: Optional[Dict] = field(default=None)

    def __post_init__(self):
        """Convert lists to numpy arrays if needed."""
        if not isinstance(self.queue_lengths, np.ndarray):
            self.queue_lengths = np.array(self.queue_lengths, dtype=np.int64)
        if not isinstance(self.active_workers, np.ndarray):
            self.active_workers = np.array(self.active_workers, dtype=np.int64)
        if not isinstance(self.idle_workers, np.ndarray):
            self.idle_workers = np.array(self.idle_workers, dtype=np.int64)

        n = len(self.queue_lengths)
        if len(self.active_workers) != n or len(self.idle_workers) != n:
            raise ValueError(
                f"history lengths must match: queue={n}, "
                f"active={len(self.active_workers)}, idle={len(self.idle_workers)}"
            )

    @property
    def n_ticks(self) -> int:
        """Number of ticks recorded in the history."""
        return len(self.queue_lengths)

    @property
    def busy_history(self) -> np.ndarray:
        """Busy workers at the end of each tick."""
        return self.active_workers - self.idle_workers

    def avg_queue_length(self) -> float:
        """Mean end-of-tick queue length (0.0 for an empty run)."""
        if self.n_ticks == 0:
            return 0.0
        return float(np.mean(self.queue_lengths))

    def peak_queue_length(self) -> int:
        if self.n_ticks == 0:
            return 0
        return int(np.max(self.queue_lengths))

    def percentile_queue_length(self, percentile: float) -> float:
        """
        Compute percentile of end-of-tick queue lengths.

        Args:
            percentile: Percentile to compute (0-100)

        Returns:
            Percentile value (0.0 for an empty run)
        """
        if not 0 <= percentile <= 100:
            raise ValueError(f"Percentile must be in [0, 100], got {percentile}")
        if self.n_ticks == 0:
            return 0.0
        return float(np.percentile(self.queue_lengths, percentile))

    def avg_active_workers(self) -> float:
        if self.n_ticks == 0:
            return 0.0
        return float(np.mean(self.active_workers))

    def utilization(self) -> float:
        """
        Mean fraction of the pool busy at the end of each tick.

        Returns:
            Value in [0, 1] (0.0 for an empty run)
        """
        if self.n_ticks == 0:
            return 0.0
        return float(np.mean(self.busy_history / self.active_workers))

    def throughput(self) -> float:
        """Completed items per tick."""
        if self.ticks == 0:
            return 0.0
        return self.completed / self.ticks

    def block_rate(self) -> float:
        """Fraction of offered items dropped by the admission filter."""
        offered = self.admitted + self.blocked
        if offered == 0:
            return 0.0
        return self.blocked / offered

    def to_dataframe(self) -> pd.DataFrame:
        """
        Per-tick history as a DataFrame.

        Returns:
            DataFrame indexed by tick (1-based) with queue_length, active, idle
            and busy columns
        """
        frame = pd.DataFrame(
            {
                "queue_length": self.queue_lengths,
                "active": self.active_workers,
                "idle": self.idle_workers,
                "busy": self.busy_history,
            },
            index=pd.RangeIndex(1, self.n_ticks + 1, name="tick"),
        )
        return frame
