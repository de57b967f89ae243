"""
Metrics computation for dispatcher evaluation.

Per-run metrics derived from SimulationResult, plus multi-seed statistics
(mean, std, 95% t-interval) and Welch comparisons between configurations.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np
from scipy import stats

from elastic_lb import SimulationResult

# Metrics reported for every run, in table order
RUN_METRICS = [
    "throughput",
    "avg_queue_length",
    "p95_queue_length",
    "peak_queue_length",
    "avg_active_workers",
    "utilization",
    "block_rate",
    "scaling_churn",
    "residual_queue",
]


def compute_scaling_churn(result: SimulationResult) -> float:
    """
    Pool changes per tick.

    Returns:
        (scale_ups + scale_downs) / ticks, 0.0 for an empty run
    """
    if result.ticks == 0:
        return 0.0
    return (result.scale_ups + result.scale_downs) / result.ticks


def compute_worker_ticks(result: SimulationResult) -> int:
    """Total worker-ticks provisioned (sum of pool size over ticks)."""
    return int(np.sum(result.active_workers))


def compute_run_metrics(result: SimulationResult) -> Dict[str, float]:
    """
    Compute all per-run metrics.

    Args:
        result: Finished dispatcher run

    Returns:
        Dict with every key in RUN_METRICS

    Example:
        >>> metrics = compute_run_metrics(dispatcher.run(100))
        >>> 0.0 <= metrics["utilization"] <= 1.0
        True
    """
    return {
        "throughput": result.throughput(),
        "avg_queue_length": result.avg_queue_length(),
        "p95_queue_length": result.percentile_queue_length(95),
        "peak_queue_length": float(result.peak_queue_length()),
        "avg_active_workers": result.avg_active_workers(),
        "utilization": result.utilization(),
        "block_rate": result.block_rate(),
        "scaling_churn": compute_scaling_churn(result),
        "residual_queue": float(result.residual_queue),
    }


@dataclass
class StatisticsSummary:
    """
    Statistical aggregation of metric values across multiple runs.

    Attributes:
        mean: Sample mean
        std: Sample standard deviation (ddof=1)
        ci_lower: Lower bound of 95% confidence interval
        ci_upper: Upper bound of 95% confidence interval
        n_samples: Number of samples
    """

    mean: float
    std: float
    ci_lower: float
    ci_upper: float
    n_samples: int

    def relative_std(self) -> float:
        """Coefficient of variation in percent (0.0 for non-positive means)."""
        if self.mean > 0:
            return (self.std / self.mean) * 100.0
        return 0.0

    def __str__(self) -> str:
        return (
            f"{self.mean:.3f}±{self.std:.3f} "
            f"[{self.ci_lower:.3f}, {self.ci_upper:.3f}]"
        )


@dataclass
class ComparisonResult:
    """
    Welch t-test comparison of one metric between two configurations.

    Attributes:
        name_a: Baseline configuration
        name_b: Compared configuration
        metric_name: Metric being compared
        mean_a: Mean for A
        mean_b: Mean for B
        delta_pct: (B - A) / A * 100 (0.0 when A is 0)
        t_statistic: t-test statistic
        p_value: Two-tailed p-value
        is_significant: True if p < 0.05
    """

    name_a: str
    name_b: str
    metric_name: str
    mean_a: float
    mean_b: float
    delta_pct: float
    t_statistic: float
    p_value: float
    is_significant: bool


def compute_statistics(values: List[float]) -> StatisticsSummary:
    """
    Compute summary statistics with a 95% t-distribution confidence interval.

    Args:
        values: Metric values from multiple runs

    Returns:
        StatisticsSummary with mean, std, CI bounds and sample size

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot compute statistics for empty values list")

    n = len(values)
    mean = float(np.mean(values))
    std = float(np.std(values, ddof=1)) if n > 1 else 0.0

    if n > 1 and std > 0:
        sem = stats.sem(values)
        ci = stats.t.interval(0.95, df=n - 1, loc=mean, scale=sem)
        ci_lower, ci_upper = float(ci[0]), float(ci[1])
    else:
        # Single sample or zero variance
        ci_lower, ci_upper = mean, mean

    return StatisticsSummary(
        mean=mean, std=std, ci_lower=ci_lower, ci_upper=ci_upper, n_samples=n
    )


def aggregate_runs(runs: List[Dict[str, float]]) -> Dict[str, StatisticsSummary]:
    """
    Aggregate per-run metric dicts into per-metric statistics.

    Args:
        runs: Output of compute_run_metrics() for each seed

    Returns:
        Dict mapping metric name to StatisticsSummary
    """
    if not runs:
        raise ValueError("Cannot aggregate an empty list of runs")
    return {
        name: compute_statistics([run[name] for run in runs]) for name in runs[0]
    }


def compare_runs(
    name_a: str,
    name_b: str,
    metric_name: str,
    values_a: List[float],
    values_b: List[float],
) -> ComparisonResult:
    """
    Compare one metric between two configurations with Welch's t-test.

    Args:
        name_a: Baseline configuration name
        name_b: Compared configuration name
        metric_name: Metric being compared
        values_a: Per-seed values for A
        values_b: Per-seed values for B

    Returns:
        ComparisonResult

    Raises:
        ValueError: If either list is empty
    """
    if not values_a or not values_b:
        raise ValueError("Cannot compare empty value lists")

    mean_a = float(np.mean(values_a))
    mean_b = float(np.mean(values_b))
    delta_pct = ((mean_b - mean_a) / mean_a * 100.0) if mean_a != 0 else 0.0

    if len(values_a) > 1 and len(values_b) > 1 and (np.std(values_a) > 0 or np.std(values_b) > 0):
        t_stat, p_val = stats.ttest_ind(values_a, values_b, equal_var=False)
        t_stat, p_val = float(t_stat), float(p_val)
    else:
        # Not enough spread for a test
        t_stat, p_val = 0.0, 1.0

    return ComparisonResult(
        name_a=name_a,
        name_b=name_b,
        metric_name=metric_name,
        mean_a=mean_a,
        mean_b=mean_b,
        delta_pct=delta_pct,
        t_statistic=t_stat,
        p_value=p_val,
        is_significant=p_val < 0.05,
    )
