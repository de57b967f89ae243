"""
Elastic vs Static Pool Benchmark with Multi-Run Analysis.

Runs the elastic dispatcher and a static pool of the same ceiling on each
evaluation scenario for several seeds, aggregates per-run metrics (mean ± std,
95% CI) and tests whether the elastic pool provisions significantly fewer
workers without a significant loss in throughput.

Usage:
    # Quick test (5 runs)
    python assessment/benchmarks/capacity_sweep.py --n-runs 5

    # Single scenario, several pool ceilings
    python assessment/benchmarks/capacity_sweep.py --scenario traffic_surge --max-workers 4 8 16

    # All scenarios with plots and CSV history
    python assessment/benchmarks/capacity_sweep.py --all --n-runs 30 --plot
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import pandas as pd
from tqdm import tqdm

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from assessment.baselines import StaticPoolDispatcher
from assessment.metrics import (
    RUN_METRICS,
    ComparisonResult,
    StatisticsSummary,
    aggregate_runs,
    compare_runs,
    compute_run_metrics,
    compute_worker_ticks,
    export_tick_history,
    plot_pool_timeline,
)
from assessment.workloads import (
    Workload,
    generate_backlog_drain,
    generate_denylist_mix,
    generate_steady_trickle,
    generate_traffic_surge,
)
from elastic_lb import Dispatcher, DispatcherConfig, SimulationResult

SCENARIOS: Dict[str, Tuple[str, Callable[[int], Workload]]] = {
    "backlog_drain": ("Backlog Drain", lambda seed: generate_backlog_drain()),
    "steady_trickle": ("Steady Trickle", lambda seed: generate_steady_trickle(seed=seed)),
    "traffic_surge": ("Traffic Surge", lambda seed: generate_traffic_surge(seed=seed)),
    "denylist_mix": ("Denylist Mix", lambda seed: generate_denylist_mix(seed=seed)),
}

DISPATCHERS = ["Elastic", "Static"]


def build_config(workload: Workload, max_workers: int) -> DispatcherConfig:
    """Config replaying a workload: pool starts full, preload is the initial queue."""
    return DispatcherConfig(
        max_workers=max_workers,
        initial_queue_size=len(workload.preload),
        denylist_source=list(workload.denylist),
    )


def run_scenario(
    dispatcher_cls, workload: Workload, max_workers: int, n_ticks: int
) -> Tuple[Dict[str, float], SimulationResult]:
    """
    Run one dispatcher on a workload and compute metrics.

    Args:
        dispatcher_cls: Dispatcher or StaticPoolDispatcher
        workload: Scenario workload (replayed through ScriptedLoad)
        max_workers: Pool ceiling
        n_ticks: Observation window

    Returns:
        Tuple of (metrics dict, SimulationResult)
    """
    dispatcher = dispatcher_cls(
        build_config(workload, max_workers),
        load_generator=workload.to_load(),
    )
    result = dispatcher.run(n_ticks)

    metrics = compute_run_metrics(result)
    metrics["worker_ticks"] = float(compute_worker_ticks(result))
    return metrics, result


def run_statistical_analysis(
    scenario_key: str,
    max_workers: int,
    n_runs: int = 30,
    n_ticks: int = 250,
    base_seed: int = 999,
    output_dir: str = "results/capacity",
    plot: bool = False,
) -> Tuple[Dict[str, Dict[str, StatisticsSummary]], List[ComparisonResult]]:
    """
    Run both dispatchers n_runs times on one scenario.

    Args:
        scenario_key: Key into SCENARIOS
        max_workers: Pool ceiling for both dispatchers
        n_runs: Number of independent runs (seeds base_seed, base_seed+1, ...)
        n_ticks: Observation window per run
        base_seed: First workload seed
        output_dir: Output directory for history CSVs and plots
        plot: Write a pool timeline plot for the first seed

    Returns:
        Tuple of (aggregated, comparisons)
            - aggregated: Dict[dispatcher_name, Dict[metric_name, StatisticsSummary]]
            - comparisons: Static vs Elastic Welch tests per metric
    """
    scenario_name, generator = SCENARIOS[scenario_key]

    print("=" * 100)
    print(f"CAPACITY BENCHMARK: {scenario_name} (max_workers={max_workers})")
    print("=" * 100)
    print(f"Number of runs: {n_runs}")
    print(f"Seeds: {base_seed} to {base_seed + n_runs - 1}")
    print()

    all_metrics: Dict[str, List[Dict[str, float]]] = {name: [] for name in DISPATCHERS}
    first_results: Dict[str, SimulationResult] = {}

    for run_idx in tqdm(
        range(n_runs),
        desc="Simulations",
        unit="run",
        ncols=80,
        ascii="░█",
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
    ):
        seed = base_seed + run_idx
        workload = generator(seed)

        for name, dispatcher_cls in [("Elastic", Dispatcher), ("Static", StaticPoolDispatcher)]:
            metrics, result = run_scenario(dispatcher_cls, workload, max_workers, n_ticks)
            all_metrics[name].append(metrics)
            if run_idx == 0:
                first_results[name] = result

    aggregated = {name: aggregate_runs(all_metrics[name]) for name in DISPATCHERS}

    comparisons = []
    for metric_name in RUN_METRICS + ["worker_ticks"]:
        comparisons.append(
            compare_runs(
                "Static",
                "Elastic",
                metric_name,
                [m[metric_name] for m in all_metrics["Static"]],
                [m[metric_name] for m in all_metrics["Elastic"]],
            )
        )

    run_dir = f"{scenario_key}_w{max_workers}"
    for name, result in first_results.items():
        export_tick_history(result, run_dir, name, output_dir)
    if plot:
        path = plot_pool_timeline(first_results, run_dir, output_dir)
        print(f"Plot saved: {path}")

    print_summary(aggregated, comparisons)
    return aggregated, comparisons


def print_summary(
    aggregated: Dict[str, Dict[str, StatisticsSummary]],
    comparisons: List[ComparisonResult],
) -> None:
    """Print a mean ± std table followed by the significance tests."""
    print()
    print(f"{'Metric':<22} " + " ".join(f"{name:>30}" for name in DISPATCHERS))
    print("-" * 84)
    for metric_name in aggregated["Elastic"]:
        row = " ".join(f"{str(aggregated[name][metric_name]):>30}" for name in DISPATCHERS)
        print(f"{metric_name:<22} {row}")

    print()
    print(f"{'Metric':<22} {'Static':>10} {'Elastic':>10} {'Δ%':>9} {'p-value':>9}  Sig")
    print("-" * 72)
    for comp in comparisons:
        marker = "*" if comp.is_significant else ""
        print(
            f"{comp.metric_name:<22} {comp.mean_a:>10.3f} {comp.mean_b:>10.3f} "
            f"{comp.delta_pct:>+8.1f}% {comp.p_value:>9.4f}  {marker}"
        )
    print()


def summary_rows(
    scenario_key: str,
    max_workers: int,
    aggregated: Dict[str, Dict[str, StatisticsSummary]],
) -> List[Dict]:
    """Flatten aggregated statistics into one row per (dispatcher, metric)."""
    rows = []
    for name, metrics in aggregated.items():
        for metric_name, summary in metrics.items():
            rows.append(
                {
                    "scenario": scenario_key,
                    "max_workers": max_workers,
                    "dispatcher": name,
                    "metric": metric_name,
                    "mean": summary.mean,
                    "std": summary.std,
                    "ci_lower": summary.ci_lower,
                    "ci_upper": summary.ci_upper,
                    "n_samples": summary.n_samples,
                }
            )
    return rows


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Elastic vs Static Pool Benchmark with Multi-Run Analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quick test (5 runs)
  python assessment/benchmarks/capacity_sweep.py --n-runs 5

  # Pool ceiling sweep on one scenario
  python assessment/benchmarks/capacity_sweep.py --scenario traffic_surge --max-workers 4 8 16

  # All scenarios
  python assessment/benchmarks/capacity_sweep.py --all --n-runs 30
        """,
    )
    parser.add_argument(
        "--scenario",
        type=str,
        choices=sorted(SCENARIOS),
        default="traffic_surge",
        help="Scenario to run (default: traffic_surge)",
    )
    parser.add_argument("--all", action="store_true", help="Run all scenarios")
    parser.add_argument(
        "--max-workers",
        type=int,
        nargs="+",
        default=[8],
        help="Pool ceilings to sweep (default: 8)",
    )
    parser.add_argument(
        "--n-runs",
        type=int,
        default=30,
        help="Number of runs with different seeds (default: 30, use 5 for quick test)",
    )
    parser.add_argument("--ticks", type=int, default=250, help="Ticks per run (default: 250)")
    parser.add_argument("--base-seed", type=int, default=999, help="First seed (default: 999)")
    parser.add_argument(
        "--output-dir",
        type=str,
        default="results/capacity",
        help="Output directory (default: results/capacity)",
    )
    parser.add_argument("--plot", action="store_true", help="Write pool timeline plots")
    args = parser.parse_args()

    scenario_keys = sorted(SCENARIOS) if args.all else [args.scenario]

    rows = []
    for scenario_key in scenario_keys:
        for max_workers in args.max_workers:
            aggregated, _ = run_statistical_analysis(
                scenario_key,
                max_workers,
                n_runs=args.n_runs,
                n_ticks=args.ticks,
                base_seed=args.base_seed,
                output_dir=args.output_dir,
                plot=args.plot,
            )
            rows.extend(summary_rows(scenario_key, max_workers, aggregated))

    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    summary_path = output_path / "capacity_summary.csv"
    pd.DataFrame(rows).to_csv(summary_path, index=False)
    print(f"Summary saved: {summary_path}")


if __name__ == "__main__":
    main()
