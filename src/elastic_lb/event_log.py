"""
Event sinks for dispatcher output.

EventRecorder keeps events in memory. TextEventLog renders them as the
simulation's human-readable log lines and writes them through the logging
module; configure_logging() routes those loggers to files and the console.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Type, Union

from .events import (
    Arrived,
    Assigned,
    Blocked,
    Completed,
    Event,
    Idle,
    Processing,
    ScaledDown,
    ScaledUp,
    TickSummary,
)

SIMULATION_LOGGER = "elastic_lb.simulation"
FIREWALL_LOGGER = "elastic_lb.firewall"

LOG_FORMAT = "[%(asctime)s] %(message)s"


def format_event(event: Event) -> str:
    """
    Render an event as a simulation log line.

    Args:
        event: Any dispatcher event

    Returns:
        Single-line human-readable message

    Raises:
        TypeError: If event is not a dispatcher event
    """
    if isinstance(event, Blocked):
        return f"FIREWALL: Blocked request from IP {event.origin}"
    if isinstance(event, Arrived):
        item = event.item
        return (
            f"Time {event.tick}: New request added "
            f"({item.describe()}, {item.duration_ticks} cycles)"
        )
    if isinstance(event, ScaledUp):
        return (
            f">> SCALED UP: Added server {event.worker_index} "
            f"({event.new_active}/{event.max_workers})"
        )
    if isinstance(event, ScaledDown):
        return (
            f">> SCALED DOWN: Removed idle server {event.worker_index} "
            f"({event.new_active}/{event.max_workers})"
        )
    if isinstance(event, Completed):
        return f"Server {event.worker_index}: Completed request ({event.item.describe()})!"
    if isinstance(event, Processing):
        return (
            f"Server {event.worker_index}: Processing request ({event.item.describe()}), "
            f"{event.remaining} cycles remaining"
        )
    if isinstance(event, Assigned):
        return (
            f"Server {event.worker_index}: Assigned new request "
            f"({event.item.describe()}, {event.item.duration_ticks} cycles)"
        )
    if isinstance(event, Idle):
        return f"Server {event.worker_index}: Idle"
    if isinstance(event, TickSummary):
        return (
            f"Queue size: {event.queue_length} | "
            f"Active servers: {event.active}/{event.max_workers} | "
            f"Idle servers: {event.idle}"
        )
    raise TypeError(f"not a dispatcher event: {type(event).__name__}")


class EventRecorder:
    """
    In-memory sink.

    Example:
        >>> recorder = EventRecorder()
        >>> dispatcher = Dispatcher(config, sink=recorder)
        >>> recorder.of_type(Blocked)
    """

    def __init__(self):
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: Type) -> List[Event]:
        """Recorded events of one type, in emission order."""
        return [e for e in self.events if isinstance(e, event_type)]

    def for_tick(self, tick: int) -> List[Event]:
        """Recorded events emitted during one tick."""
        return [e for e in self.events if e.tick == tick]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)

    def __repr__(self) -> str:
        return f"EventRecorder(events={len(self.events)})"


class TextEventLog:
    """
    Sink writing rendered events to the simulation and firewall loggers.

    A "--- Time t ---" header precedes the first event of every tick. Blocked
    events are also written to the firewall logger with the tick they
    happened at. Arrived events are written when log_arrivals is set (the
    default). Several arrivals in one tick, such as a surge or the initial
    fill, are summarized as one "Added N requests to queue" line once the
    tick moves past its arrival phase; call flush() after the last event.
    """

    def __init__(
        self,
        simulation_logger: Optional[logging.Logger] = None,
        firewall_logger: Optional[logging.Logger] = None,
        log_arrivals: bool = True,
    ):
        self.simulation_logger = simulation_logger or logging.getLogger(SIMULATION_LOGGER)
        self.firewall_logger = firewall_logger or logging.getLogger(FIREWALL_LOGGER)
        self.log_arrivals = log_arrivals
        self._last_tick: Optional[int] = None
        self._pending: List[Arrived] = []

    def __call__(self, event: Event) -> None:
        if isinstance(event, Arrived) and not self.log_arrivals:
            return

        if event.tick != self._last_tick:
            self.flush()
            self._last_tick = event.tick
            if event.tick > 0:
                self.simulation_logger.info("")
                self.simulation_logger.info("--- Time %d ---", event.tick)

        if isinstance(event, Arrived):
            self._pending.append(event)
            return

        if isinstance(event, Blocked):
            self.firewall_logger.warning(
                "BLOCKED: Request from IP %s at simulation time %d",
                event.origin,
                event.tick,
            )
        else:
            self.flush()

        self.simulation_logger.info(format_event(event))

    def flush(self) -> None:
        """Write buffered arrivals of the current tick."""
        if len(self._pending) == 1:
            self.simulation_logger.info(format_event(self._pending[0]))
        elif self._pending:
            self.simulation_logger.info(
                "Time %d: Added %d requests to queue",
                self._pending[0].tick,
                len(self._pending),
            )
        self._pending.clear()


def configure_logging(
    simulation_log: Optional[Union[str, Path]] = "simulation_log.txt",
    firewall_log: Optional[Union[str, Path]] = "firewall_log.txt",
    console: bool = True,
    level: int = logging.INFO,
) -> None:
    """
    Route simulation output to log files and, optionally, the console.

    Both log files are appended to, one "[timestamp] message" line per record.
    Library loggers (elastic_lb.*) share the simulation file and console.

    Args:
        simulation_log: Path for the full simulation log (None to skip)
        firewall_log: Path for blocked-request records (None to skip)
        console: Also print simulation messages to stdout
        level: Level for the elastic_lb logger hierarchy
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger("elastic_lb")
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if simulation_log is not None:
        file_handler = logging.FileHandler(simulation_log, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(console_handler)

    firewall = logging.getLogger(FIREWALL_LOGGER)
    firewall.propagate = False
    for handler in list(firewall.handlers):
        firewall.removeHandler(handler)
        handler.close()
    if firewall_log is not None:
        firewall_handler = logging.FileHandler(firewall_log, mode="a", encoding="utf-8")
        firewall_handler.setFormatter(formatter)
        firewall.addHandler(firewall_handler)
