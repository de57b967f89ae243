"""
Metrics and evaluation tools for the elastic dispatcher.
"""

from .compute import (
    RUN_METRICS,
    ComparisonResult,
    StatisticsSummary,
    aggregate_runs,
    compare_runs,
    compute_run_metrics,
    compute_scaling_churn,
    compute_statistics,
    compute_worker_ticks,
)
from .export import (
    compute_assignment_log,
    export_assignment_log,
    export_blocked_origins,
    export_tick_history,
)
from .visualization import plot_pool_timeline

__all__ = [
    # Per-run metrics
    "RUN_METRICS",
    "compute_run_metrics",
    "compute_scaling_churn",
    "compute_worker_ticks",
    # Statistical analysis
    "StatisticsSummary",
    "ComparisonResult",
    "compute_statistics",
    "aggregate_runs",
    "compare_runs",
    # Export
    "compute_assignment_log",
    "export_tick_history",
    "export_assignment_log",
    "export_blocked_origins",
    # Visualization
    "plot_pool_timeline",
]
