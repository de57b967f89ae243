"""
Tests for event rendering, log sinks and the command-line driver.
"""

import csv
import logging

import pytest

from elastic_lb import (
    Arrived,
    Assigned,
    Blocked,
    Completed,
    EventRecorder,
    Idle,
    Processing,
    ScaledDown,
    ScaledUp,
    TextEventLog,
    TickSummary,
    WorkItem,
    configure_logging,
    format_event,
)
from elastic_lb.cli import write_history_csv, main
from elastic_lb.results import SimulationResult

ITEM = WorkItem("192.168.1.7", "192.168.1.42", 3)


@pytest.fixture
def reset_logging():
    """Detach file handlers installed by configure_logging()."""
    yield
    configure_logging(simulation_log=None, firewall_log=None, console=False)


# === format_event ===


@pytest.mark.parametrize(
    "event, expected",
    [
        (Blocked(3, "10.0.0.5"), "FIREWALL: Blocked request from IP 10.0.0.5"),
        (
            Arrived(4, ITEM),
            "Time 4: New request added (192.168.1.7 -> 192.168.1.42, 3 cycles)",
        ),
        (ScaledUp(5, 3, 2, 10), ">> SCALED UP: Added server 2 (3/10)"),
        (ScaledDown(6, 2, 0, 10), ">> SCALED DOWN: Removed idle server 0 (2/10)"),
        (Completed(7, 1, ITEM), "Server 1: Completed request (192.168.1.7 -> 192.168.1.42)!"),
        (
            Processing(8, 0, 2, ITEM),
            "Server 0: Processing request (192.168.1.7 -> 192.168.1.42), 2 cycles remaining",
        ),
        (
            Assigned(9, 4, ITEM),
            "Server 4: Assigned new request (192.168.1.7 -> 192.168.1.42, 3 cycles)",
        ),
        (Idle(10, 3), "Server 3: Idle"),
        (
            TickSummary(11, queue_length=12, active=4, max_workers=10, idle=1),
            "Queue size: 12 | Active servers: 4/10 | Idle servers: 1",
        ),
    ],
)
def test_format_event(event, expected):
    assert format_event(event) == expected


def test_format_event_rejects_unknown():
    with pytest.raises(TypeError, match="not a dispatcher event"):
        format_event("Server 0: Idle")


# === EventRecorder ===


def test_event_recorder_filters():
    recorder = EventRecorder()
    for event in [Blocked(0, "a"), Idle(1, 0), Idle(1, 1), Blocked(2, "b")]:
        recorder(event)

    assert len(recorder) == 4
    assert recorder.of_type(Blocked) == [Blocked(0, "a"), Blocked(2, "b")]
    assert recorder.for_tick(1) == [Idle(1, 0), Idle(1, 1)]

    recorder.clear()
    assert len(recorder) == 0


# === TextEventLog ===


def test_text_event_log_headers_and_firewall(caplog):
    sim_name = "test_event_log.simulation"
    fw_name = "test_event_log.firewall"
    caplog.set_level(logging.INFO, logger=sim_name)
    caplog.set_level(logging.INFO, logger=fw_name)
    sink = TextEventLog(logging.getLogger(sim_name), logging.getLogger(fw_name))

    sink(Arrived(0, ITEM))
    sink(Blocked(1, "10.0.0.5"))
    sink(TickSummary(1, 0, 2, 2, 2))

    sim_lines = [r.getMessage() for r in caplog.records if r.name == sim_name]
    fw_lines = [r.getMessage() for r in caplog.records if r.name == fw_name]

    assert sim_lines == [
        "Time 0: New request added (192.168.1.7 -> 192.168.1.42, 3 cycles)",
        "",
        "--- Time 1 ---",
        "FIREWALL: Blocked request from IP 10.0.0.5",
        "Queue size: 0 | Active servers: 2/2 | Idle servers: 2",
    ]
    assert fw_lines == ["BLOCKED: Request from IP 10.0.0.5 at simulation time 1"]
    assert all(r.levelno == logging.WARNING for r in caplog.records if r.name == fw_name)


def test_text_event_log_skips_arrivals(caplog):
    sim_name = "test_event_log.quiet"
    caplog.set_level(logging.INFO, logger=sim_name)
    sink = TextEventLog(logging.getLogger(sim_name), log_arrivals=False)

    sink(Arrived(0, ITEM))
    sink(Idle(0, 0))

    assert [r.getMessage() for r in caplog.records if r.name == sim_name] == ["Server 0: Idle"]


def test_text_event_log_summarizes_surge(caplog):
    sim_name = "test_event_log.surge"
    fw_name = "test_event_log.surge_firewall"
    caplog.set_level(logging.INFO, logger=sim_name)
    caplog.set_level(logging.INFO, logger=fw_name)
    sink = TextEventLog(logging.getLogger(sim_name), logging.getLogger(fw_name))

    sink(Arrived(2, ITEM))
    sink(Blocked(2, "10.0.0.5"))
    sink(Arrived(2, ITEM))
    sink(Arrived(2, ITEM))
    sink(TickSummary(2, 3, 2, 2, 0))

    assert [r.getMessage() for r in caplog.records if r.name == sim_name] == [
        "",
        "--- Time 2 ---",
        "FIREWALL: Blocked request from IP 10.0.0.5",
        "Time 2: Added 3 requests to queue",
        "Queue size: 3 | Active servers: 2/2 | Idle servers: 0",
    ]


def test_text_event_log_initial_fill_is_one_line(caplog):
    sim_name = "test_event_log.fill"
    caplog.set_level(logging.INFO, logger=sim_name)
    sink = TextEventLog(logging.getLogger(sim_name))

    for _ in range(5):
        sink(Arrived(0, ITEM))
    sink.flush()
    sink.flush()

    assert [r.getMessage() for r in caplog.records if r.name == sim_name] == [
        "Time 0: Added 5 requests to queue",
    ]


# === configure_logging ===


def test_configure_logging_writes_files(tmp_path, reset_logging):
    sim_log = tmp_path / "simulation_log.txt"
    fw_log = tmp_path / "firewall_log.txt"
    configure_logging(sim_log, fw_log, console=False)

    sink = TextEventLog()
    sink(Blocked(2, "10.0.0.5"))

    sim_text = sim_log.read_text()
    fw_text = fw_log.read_text()
    assert "--- Time 2 ---" in sim_text
    assert "FIREWALL: Blocked request from IP 10.0.0.5" in sim_text
    assert "BLOCKED: Request from IP 10.0.0.5 at simulation time 2" in fw_text
    # Firewall records stay out of the simulation log
    assert "BLOCKED:" not in sim_text
    assert fw_text.startswith("[")


# === CLI ===


def cli_args(tmp_path, *extra):
    return [
        "--blocked-ips", str(tmp_path / "blocked_ips.txt"),
        "--simulation-log", str(tmp_path / "simulation_log.txt"),
        "--firewall-log", str(tmp_path / "firewall_log.txt"),
        "--quiet",
        *extra,
    ]


def test_cli_runs_with_arguments(tmp_path, capsys, reset_logging):
    history = tmp_path / "history.csv"
    code = main(
        cli_args(
            tmp_path,
            "--servers", "3",
            "--cycles", "20",
            "--initial-queue", "10",
            "--seed", "1",
            "--history-csv", str(history),
        )
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "Simulation complete!" in out
    assert "Requests remaining in queue:" in out
    assert "Servers still busy:" in out

    sim_text = (tmp_path / "simulation_log.txt").read_text()
    assert "--- Time 20 ---" in sim_text
    assert "Queue size:" in sim_text
    assert "Time 0: Added 10 requests to queue" in sim_text
    assert "New request added" not in sim_text.split("--- Time 1 ---")[0]

    with open(history, newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 20
    assert rows[0]["tick"] == "1"
    assert set(rows[0]) == {"tick", "queue_length", "active", "idle", "busy"}


def test_cli_default_initial_queue(tmp_path, capsys, reset_logging):
    """With --servers and no --initial-queue, the queue starts at servers * 100."""
    code = main(cli_args(tmp_path, "--servers", "2", "--cycles", "0"))

    assert code == 0
    assert "Requests remaining in queue: 200" in capsys.readouterr().out


def test_cli_blocks_denylisted_origins(tmp_path, capsys, reset_logging):
    denylist = tmp_path / "blocked_ips.txt"
    denylist.write_text("\n".join(f"192.168.1.{i}" for i in range(255)) + "\n")

    code = main(cli_args(tmp_path, "--servers", "1", "--cycles", "5", "--initial-queue", "3"))

    assert code == 0
    assert "Completed: 0" in capsys.readouterr().out
    fw_text = (tmp_path / "firewall_log.txt").read_text()
    assert fw_text.count("BLOCKED: Request from IP") >= 3


def test_cli_prompts_for_missing_parameters(tmp_path, capsys, reset_logging):
    answers = iter(["abc", "2", "3", "0"])
    prompts = []

    def fake_input(prompt):
        prompts.append(prompt)
        return next(answers)

    code = main(cli_args(tmp_path, "--seed", "3"), input_fn=fake_input)

    assert code == 0
    assert prompts == [
        "Enter number of servers: ",
        "Enter number of servers: ",
        "Enter number of simulation cycles: ",
        "Enter initial queue size (or -1 for servers*100): ",
    ]
    captured = capsys.readouterr()
    assert "Please enter an integer" in captured.err
    assert "Simulation complete!" in captured.out


def test_cli_rejects_invalid_parameters(tmp_path):
    with pytest.raises(SystemExit):
        main(cli_args(tmp_path, "--servers", "0", "--cycles", "5", "--initial-queue", "0"))

    with pytest.raises(SystemExit):
        main(cli_args(tmp_path, "--servers", "2", "--cycles", "-1", "--initial-queue", "0"))


def test_write_history_csv(tmp_path):
    result = SimulationResult(
        ticks=2,
        queue_lengths=[3, 1],
        active_workers=[2, 2],
        idle_workers=[0, 1],
    )
    path = write_history_csv(result, str(tmp_path / "history.csv"))

    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert rows == [
        {"tick": "1", "queue_length": "3", "active": "2", "idle": "0", "busy": "2"},
        {"tick": "2", "queue_length": "1", "active": "2", "idle": "1", "busy": "1"},
    ]
