"""
Command-line driver for the elastic load balancer simulation.

Usage:
    elastic-lb --servers 10 --cycles 1000 --initial-queue -1
    python -m elastic_lb            # prompts for servers, cycles and queue size
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional, Union

from .dispatcher import Dispatcher
from .dispatcher_config import DispatcherConfig
from .event_log import TextEventLog, configure_logging
from .results import SimulationResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elastic-lb",
        description="Simulate an elastic load balancer in discrete time ticks",
    )
    parser.add_argument("--servers", type=int, default=None, help="Maximum number of servers (prompted if omitted)")
    parser.add_argument("--cycles", type=int, default=None, help="Number of simulation ticks (prompted if omitted)")
    parser.add_argument("--initial-queue", type=int, default=None, help="Initial queue size, -1 for servers*100 (prompted if --servers is omitted)")
    parser.add_argument("--blocked-ips", type=str, default="blocked_ips.txt", help="Denylist file, one IP per line (default: blocked_ips.txt)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for synthetic load")
    parser.add_argument("--simulation-log", type=str, default="simulation_log.txt", help="Simulation log file (default: simulation_log.txt)")
    parser.add_argument("--firewall-log", type=str, default="firewall_log.txt", help="Blocked-request log file (default: firewall_log.txt)")
    parser.add_argument("--history-csv", type=str, default=None, help="Write per-tick queue/pool history to this CSV file")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--quiet", action="store_true", help="Do not echo log lines to the console")
    return parser


def _prompt_int(prompt: str, input_fn: Callable[[str], str]) -> int:
    while True:
        raw = input_fn(prompt)
        try:
            return int(raw.strip())
        except ValueError:
            print(f"Please enter an integer, got {raw!r}", file=sys.stderr)


def write_history_csv(result: SimulationResult, path: Union[str, Path]) -> str:
    """Write one row per tick: tick, queue_length, active, idle, busy."""
    result.to_dataframe().to_csv(path)
    return str(path)


def main(
    argv: Optional[List[str]] = None,
    input_fn: Callable[[str], str] = input,
) -> int:
    """
    Run the simulation from command-line arguments.

    Args:
        argv: Argument list (default: sys.argv[1:])
        input_fn: Prompt function for omitted parameters

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    servers = args.servers
    cycles = args.cycles
    initial_queue = args.initial_queue
    if servers is None:
        servers = _prompt_int("Enter number of servers: ", input_fn)
    if cycles is None:
        cycles = _prompt_int("Enter number of simulation cycles: ", input_fn)
    if initial_queue is None and args.servers is None:
        initial_queue = _prompt_int("Enter initial queue size (or -1 for servers*100): ", input_fn)

    if cycles < 0:
        parser.error(f"cycles must be non-negative, got {cycles}")

    try:
        config = DispatcherConfig(
            max_workers=servers,
            initial_queue_size=initial_queue,
            denylist_source=args.blocked_ips,
            seed=args.seed,
        )
    except ValueError as e:
        parser.error(str(e))

    configure_logging(
        simulation_log=args.simulation_log,
        firewall_log=args.firewall_log,
        console=not args.quiet,
    )

    sink = TextEventLog()
    dispatcher = Dispatcher(config, sink=sink)
    result = dispatcher.run(cycles, progress=args.progress)
    sink.flush()

    print()
    print("Simulation complete!")
    print(f"Requests remaining in queue: {result.residual_queue}")
    print(f"Servers still busy: {result.busy_workers}/{dispatcher.active_workers()}")
    print(
        f"Completed: {result.completed} | Blocked: {result.blocked} | "
        f"Scale-ups: {result.scale_ups} | Scale-downs: {result.scale_downs}"
    )

    if args.history_csv:
        write_history_csv(result, args.history_csv)
        print(f"History written to {args.history_csv}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
