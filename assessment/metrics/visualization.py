"""
Visualization tools for dispatcher runs.

Plots the queue backlog and pool size over time for several dispatchers on
the same scenario.
"""

from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt

from elastic_lb import SimulationResult


def plot_pool_timeline(
    results_dict: Dict[str, SimulationResult],
    scenario_name: str,
    output_dir: str = "results",
) -> str:
    """
    Two-panel timeline: pending queue length (top) and active/busy workers (bottom).

    Args:
        results_dict: {"Elastic": result, "Static": result, ...}
        scenario_name: Scenario name for plot title and filename
        output_dir: Base directory for output

    Returns:
        Path to created plot file
    """
    fig, (ax_queue, ax_pool) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    colors = {
        "Elastic": "#2ca02c",  # Green
        "Static": "#1f77b4",  # Blue
    }

    for name, result in results_dict.items():
        ticks = range(1, result.n_ticks + 1)
        color = colors.get(name, None)
        ax_queue.plot(ticks, result.queue_lengths, label=name, color=color, linewidth=1.5)
        ax_pool.plot(ticks, result.active_workers, label=f"{name} active", color=color, linewidth=1.5)
        ax_pool.plot(
            ticks, result.busy_history,
            label=f"{name} busy",
            color=color,
            linestyle="--",
            alpha=0.6,
            linewidth=1.0,
        )

    ax_queue.set_ylabel("Pending queue length", fontsize=12)
    ax_queue.set_title(f"Queue and Pool Timeline: {scenario_name}", fontsize=14, fontweight="bold")
    ax_queue.legend(loc="upper right", fontsize=10)
    ax_queue.grid(True, alpha=0.2)

    ax_pool.set_xlabel("Tick", fontsize=12)
    ax_pool.set_ylabel("Workers", fontsize=12)
    ax_pool.legend(loc="upper right", fontsize=10)
    ax_pool.grid(True, alpha=0.2)

    scenario_dir = Path(output_dir) / scenario_name
    scenario_dir.mkdir(parents=True, exist_ok=True)
    plot_path = scenario_dir / "pool_timeline.png"

    fig.tight_layout()
    fig.savefig(plot_path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    return str(plot_path)
