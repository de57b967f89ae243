"""
CSV export of dispatcher runs.

Writes the per-tick pool history and the worker assignment log of a run so
they can be inspected outside Python.
"""

import csv
from pathlib import Path
from typing import Dict, List, Sequence

from elastic_lb import Assigned, Blocked, Completed, ScaledDown, SimulationResult
from elastic_lb.cli import write_history_csv
from elastic_lb.events import Event


def export_tick_history(
    result: SimulationResult,
    scenario_name: str,
    dispatcher_name: str,
    output_dir: str = "results",
) -> str:
    """
    Export end-of-tick queue and pool counts.

    Creates: {output_dir}/{scenario_name}/{dispatcher_name}_history.csv

    Returns:
        Path to created CSV file
    """
    scenario_dir = Path(output_dir) / scenario_name
    scenario_dir.mkdir(parents=True, exist_ok=True)

    csv_path = scenario_dir / f"{dispatcher_name.lower()}_history.csv"
    return write_history_csv(result, csv_path)


def compute_assignment_log(events: Sequence[Event]) -> List[Dict]:
    """
    Pair Assigned and Completed events into one record per served item.

    Items are matched per worker index in emission order. A scale-down
    compacts the pool, so open records behind the removed index shift down
    by one. Items still being processed when the run stopped have
    completed_tick None.

    Returns:
        List of dicts with worker, origin, destination, duration,
        assigned_tick and completed_tick, in assignment order
    """
    records: List[Dict] = []
    open_by_worker: Dict[int, Dict] = {}

    for event in events:
        if isinstance(event, Assigned):
            record = {
                "worker": event.worker_index,
                "origin": event.item.origin,
                "destination": event.item.destination,
                "duration": event.item.duration_ticks,
                "assigned_tick": event.tick,
                "completed_tick": None,
            }
            records.append(record)
            open_by_worker[event.worker_index] = record
        elif isinstance(event, Completed):
            record = open_by_worker.pop(event.worker_index, None)
            if record is not None:
                record["completed_tick"] = event.tick
        elif isinstance(event, ScaledDown):
            open_by_worker = {
                (index - 1 if index > event.worker_index else index): record
                for index, record in open_by_worker.items()
            }

    return records


def export_assignment_log(
    events: Sequence[Event],
    scenario_name: str,
    dispatcher_name: str,
    output_dir: str = "results",
) -> str:
    """
    Export one row per assigned item.

    Creates: {output_dir}/{scenario_name}/{dispatcher_name}_assignments.csv

    Returns:
        Path to created CSV file
    """
    scenario_dir = Path(output_dir) / scenario_name
    scenario_dir.mkdir(parents=True, exist_ok=True)

    csv_path = scenario_dir / f"{dispatcher_name.lower()}_assignments.csv"
    fieldnames = ["worker", "origin", "destination", "duration", "assigned_tick", "completed_tick"]
    with open(csv_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for record in compute_assignment_log(events):
            row = dict(record)
            if row["completed_tick"] is None:
                row["completed_tick"] = ""
            writer.writerow(row)

    return str(csv_path)


def export_blocked_origins(
    events: Sequence[Event],
    scenario_name: str,
    output_dir: str = "results",
) -> str:
    """
    Export one row per blocked arrival (tick, origin).

    Creates: {output_dir}/{scenario_name}/blocked.csv
    """
    scenario_dir = Path(output_dir) / scenario_name
    scenario_dir.mkdir(parents=True, exist_ok=True)

    csv_path = scenario_dir / "blocked.csv"
    with open(csv_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["tick", "origin"])
        writer.writeheader()
        for event in events:
            if isinstance(event, Blocked):
                writer.writerow({"tick": event.tick, "origin": event.origin})

    return str(csv_path)
