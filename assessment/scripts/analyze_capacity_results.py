#!/usr/bin/env python
"""
Quick analysis script for capacity_sweep.py output.

Checks two criteria per (scenario, max_workers):
1. Elastic pool provisions fewer worker-ticks than the static pool
2. Elastic throughput stays within 10% of the static pool
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

THROUGHPUT_TOLERANCE = 0.10


def load_summary(path: Path) -> pd.DataFrame:
    """Pivot capacity_summary.csv to one row per (scenario, max_workers, dispatcher)."""
    frame = pd.read_csv(path)
    return frame.pivot_table(
        index=["scenario", "max_workers", "dispatcher"],
        columns="metric",
        values="mean",
    )


def analyze(summary: pd.DataFrame) -> bool:
    """Print a report and return True if every configuration passes."""
    all_ok = True
    for (scenario, max_workers), group in summary.groupby(level=["scenario", "max_workers"]):
        elastic = group.xs("Elastic", level="dispatcher").iloc[0]
        static = group.xs("Static", level="dispatcher").iloc[0]

        print(f"\n{'='*80}")
        print(f"SCENARIO: {scenario} (max_workers={max_workers})")
        print(f"{'='*80}")
        for name, row in [("Elastic", elastic), ("Static", static)]:
            print(f"\n{name}:")
            print(f"  Worker-ticks:           {row['worker_ticks']:.1f}")
            print(f"  Avg active workers:     {row['avg_active_workers']:.2f}")
            print(f"  Throughput:             {row['throughput']:.3f}/tick")
            print(f"  Avg queue length:       {row['avg_queue_length']:.2f}")
            print(f"  Utilization:            {row['utilization']*100:.1f}%")

        savings_ok = elastic["worker_ticks"] <= static["worker_ticks"]
        if static["throughput"] > 0:
            loss = (static["throughput"] - elastic["throughput"]) / static["throughput"]
        else:
            loss = 0.0
        throughput_ok = loss <= THROUGHPUT_TOLERANCE

        print(f"\n{'VALIDATION':-^80}")
        print(f"{'✅' if savings_ok else '❌'} Worker-ticks: elastic <= static")
        print(f"{'✅' if throughput_ok else '❌'} Throughput loss {loss*100:.1f}% (<= {THROUGHPUT_TOLERANCE*100:.0f}%)")
        all_ok = all_ok and savings_ok and throughput_ok

    return all_ok


def main():
    parser = argparse.ArgumentParser(description="Validate capacity benchmark results")
    parser.add_argument(
        "summary",
        nargs="?",
        default="results/capacity/capacity_summary.csv",
        help="Path to capacity_summary.csv",
    )
    args = parser.parse_args()

    path = Path(args.summary)
    if not path.exists():
        print(f"Summary not found: {path}. Run assessment/benchmarks/capacity_sweep.py first.")
        sys.exit(1)

    ok = analyze(load_summary(path))
    print()
    print("All criteria met." if ok else "Some criteria failed.")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
