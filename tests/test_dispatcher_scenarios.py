"""
Integration tests for the Dispatcher tick loop.

Tests:
    1. Backlog service with same-tick reuse of freed workers
    2. Growth blocked at the pool ceiling
    3. Shrinking with idle hysteresis
    4. Admission filtering of arrivals and of the initial fill
    5. Invariants under random load (pool bounds, single assignment, conservation)
    6. Control surface (run, tick, result, factories)
"""

import pytest

from elastic_lb import (
    Arrived,
    Assigned,
    Blocked,
    Completed,
    Dispatcher,
    DispatcherConfig,
    EventRecorder,
    Idle,
    Processing,
    ScaledDown,
    ScaledUp,
    ScriptedLoad,
    TickSummary,
    WorkItem,
    create_dispatcher,
)


def item(origin, duration=1):
    return WorkItem(origin, "10.0.9.1", duration)


def make_dispatcher(
    max_workers,
    preload=(),
    arrivals=None,
    denylist=None,
    initial_workers=None,
    shrink_idle_threshold=2,
):
    """Dispatcher on scripted load with an EventRecorder sink."""
    config = DispatcherConfig(
        max_workers=max_workers,
        initial_workers=initial_workers,
        shrink_idle_threshold=shrink_idle_threshold,
        denylist_source=denylist,
    )
    recorder = EventRecorder()
    dispatcher = Dispatcher(
        config,
        load_generator=ScriptedLoad(arrivals or {}),
        sink=recorder,
        initial_items=list(preload),
    )
    return dispatcher, recorder


# === Scenario: backlog of three unit items on two workers ===


def test_backlog_served_with_same_tick_reuse():
    """Tick 1 fills both workers, tick 2 frees both and reassigns one, tick 3 drains."""
    items = [item("10.0.0.1"), item("10.0.0.2"), item("10.0.0.3")]
    dispatcher, recorder = make_dispatcher(max_workers=2, preload=items)

    # Tick 1: both workers take the first two items
    events = dispatcher.tick()
    assert [e for e in events if isinstance(e, Assigned)] == [
        Assigned(1, 0, items[0]),
        Assigned(1, 1, items[1]),
    ]
    assert events[-1] == TickSummary(1, queue_length=1, active=2, max_workers=2, idle=0)

    # Tick 2: both complete; worker 0 takes the last item in the same tick
    events = dispatcher.tick()
    assert [e for e in events if isinstance(e, Completed)] == [
        Completed(2, 0, items[0]),
        Completed(2, 1, items[1]),
    ]
    assert Assigned(2, 0, items[2]) in events
    assert Idle(2, 1) in events
    assert dispatcher.queue_length() == 0

    # Tick 3: last item completes, pool idle
    events = dispatcher.tick()
    assert Completed(3, 0, items[2]) in events
    assert dispatcher.queue_length() == 0
    assert dispatcher.busy_workers() == 0

    result = dispatcher.result()
    assert result.completed == 3
    assert result.residual_queue == 0
    assert result.busy_workers == 0
    assert not recorder.of_type(ScaledUp)
    assert not recorder.of_type(ScaledDown)


def test_tick_events_reach_sink_in_order():
    dispatcher, recorder = make_dispatcher(max_workers=2, preload=[item("10.0.0.1", 2)])
    preload_events = list(recorder.events)

    first = dispatcher.tick()
    second = dispatcher.tick()

    assert recorder.events == preload_events + first + second
    assert isinstance(first[-1], TickSummary)
    assert Processing(2, 0, 1, item("10.0.0.1", 2)) in second
    assert not [e for e in second if isinstance(e, Completed)]


def test_processing_reports_remaining():
    work = item("10.0.0.1", 3)
    dispatcher, recorder = make_dispatcher(max_workers=1, preload=[work])

    dispatcher.run(4)

    assert recorder.of_type(Processing) == [
        Processing(2, 0, 2, work),
        Processing(3, 0, 1, work),
    ]
    assert recorder.of_type(Completed) == [Completed(4, 0, work)]


# === Scenario: pool already at its ceiling ===


def test_no_growth_at_ceiling():
    """max=1 with a backlog of 5: scaling holds for the whole run."""
    items = [item(f"10.0.0.{i}") for i in range(1, 6)]
    dispatcher, recorder = make_dispatcher(max_workers=1, preload=items)

    result = dispatcher.run(5)

    assert not recorder.of_type(ScaledUp)
    assert not recorder.of_type(ScaledDown)
    assert list(result.active_workers) == [1, 1, 1, 1, 1]
    assert list(result.queue_lengths) == [4, 3, 2, 1, 0]
    assert result.completed == 4
    assert result.busy_workers == 1


def test_growth_is_one_worker_per_tick():
    items = [item(f"10.0.0.{i}", 3) for i in range(1, 6)]
    dispatcher, recorder = make_dispatcher(max_workers=3, preload=items, initial_workers=1)

    result = dispatcher.run(3)

    assert recorder.of_type(ScaledUp) == [
        ScaledUp(1, new_active=2, worker_index=1, max_workers=3),
        ScaledUp(2, new_active=3, worker_index=2, max_workers=3),
    ]
    assert list(result.active_workers) == [2, 3, 3]
    assert result.scale_ups == 2


def test_grown_worker_takes_work_in_same_tick():
    items = [item("10.0.0.1", 5), item("10.0.0.2", 5)]
    dispatcher, recorder = make_dispatcher(max_workers=2, preload=items, initial_workers=1)

    events = dispatcher.tick()

    assert Assigned(1, 1, items[1]) in events
    assert events.index(ScaledUp(1, 2, 1, 2)) < events.index(Assigned(1, 1, items[1]))


# === Scenario: idle pool shrinks ===


def test_idle_pool_shrinks_to_hysteresis():
    """Four idle workers, empty queue: one removal per tick while more than 2 are idle."""
    dispatcher, recorder = make_dispatcher(max_workers=4)

    result = dispatcher.run(5)

    assert recorder.of_type(ScaledDown) == [
        ScaledDown(1, new_active=3, worker_index=0, max_workers=4),
        ScaledDown(2, new_active=2, worker_index=0, max_workers=4),
    ]
    assert list(result.active_workers) == [3, 2, 2, 2, 2]
    assert result.scale_downs == 2


def test_idle_pool_shrinks_to_one_without_hysteresis():
    dispatcher, recorder = make_dispatcher(max_workers=4, shrink_idle_threshold=0)

    result = dispatcher.run(5)

    assert len(recorder.of_type(ScaledDown)) == 3
    assert list(result.active_workers) == [3, 2, 1, 1, 1]


def test_shrink_never_removes_busy_worker():
    long_job = item("10.0.0.1", 10)
    dispatcher, recorder = make_dispatcher(max_workers=4, preload=[long_job])

    dispatcher.run(3)

    # Worker 0 took the job at tick 1; shrinking removed idle workers behind it
    assert dispatcher.workers[0].current_item() is long_job
    assert dispatcher.busy_workers() == 1
    assert all(e.worker_index >= 1 for e in recorder.of_type(ScaledDown))


# === Scenario: admission filtering ===


def test_denied_arrival_is_blocked():
    denied = item("10.0.0.5", 2)
    allowed = item("10.0.0.6", 2)
    dispatcher, recorder = make_dispatcher(
        max_workers=2, arrivals={1: [denied, allowed]}, denylist=["10.0.0.5"]
    )

    dispatcher.run(3)

    assert recorder.of_type(Blocked) == [Blocked(1, "10.0.0.5")]
    assert recorder.of_type(Arrived) == [Arrived(1, allowed)]
    assert all(e.item.origin != "10.0.0.5" for e in recorder.of_type(Assigned))
    assert dispatcher.result().blocked == 1
    assert dispatcher.result().admitted == 1


def test_initial_fill_is_filtered_at_tick_zero():
    preload = [item("10.0.0.5"), item("10.0.0.6")]
    dispatcher, recorder = make_dispatcher(max_workers=1, preload=preload, denylist=["10.0.0.5"])

    assert recorder.for_tick(0) == [Blocked(0, "10.0.0.5"), Arrived(0, preload[1])]
    assert dispatcher.queue_length() == 1


def test_unreadable_denylist_admits_everything(tmp_path):
    config = DispatcherConfig(max_workers=1, denylist_source=tmp_path / "missing.txt")
    dispatcher = Dispatcher(
        config, load_generator=ScriptedLoad(), initial_items=[item("10.0.0.5")]
    )

    assert dispatcher.queue_length() == 1
    assert dispatcher.result().blocked == 0


# === Invariants under random load ===


def test_invariants_under_random_load():
    denied = [f"192.168.1.{i}" for i in range(0, 255, 3)]
    config = DispatcherConfig(
        max_workers=5,
        initial_workers=2,
        initial_queue_size=30,
        denylist_source=denied,
        arrival_probability=0.6,
        surge_probability=0.1,
        seed=2024,
    )
    recorder = EventRecorder()
    dispatcher = Dispatcher(config, sink=recorder)

    for _ in range(300):
        dispatcher.tick()
        assert 1 <= dispatcher.active_workers() <= 5
        assert dispatcher.queue_length() >= 0
        assert dispatcher.idle_workers() + dispatcher.busy_workers() == dispatcher.active_workers()

    assigned = recorder.of_type(Assigned)
    assert len({id(e.item) for e in assigned}) == len(assigned)
    assert all(e.item.origin not in denied for e in assigned)
    assert all(e.item.origin not in denied for e in recorder.of_type(Arrived))

    # At most one pool change per tick
    for tick in range(1, 301):
        changes = [e for e in recorder.for_tick(tick) if isinstance(e, (ScaledUp, ScaledDown))]
        assert len(changes) <= 1

    # Every admitted item is completed, queued or in service
    result = dispatcher.result()
    assert result.admitted == result.completed + result.residual_queue + result.busy_workers
    assert result.blocked == len(recorder.of_type(Blocked))


def test_seeded_runs_are_reproducible():
    config = DispatcherConfig(max_workers=4, initial_queue_size=20, seed=7)

    result_a = Dispatcher(config).run(100)
    result_b = Dispatcher(config).run(100)

    assert list(result_a.queue_lengths) == list(result_b.queue_lengths)
    assert list(result_a.active_workers) == list(result_b.active_workers)
    assert result_a.completed == result_b.completed


# === Control surface ===


def test_callable_load_generator():
    def arrivals(tick):
        return [item("10.0.0.1")] if tick == 1 else []

    dispatcher = Dispatcher(
        DispatcherConfig(max_workers=2, initial_queue_size=0), load_generator=arrivals
    )
    result = dispatcher.run(3)

    assert result.admitted == 1
    assert result.completed == 1


def test_run_zero_ticks():
    dispatcher, _ = make_dispatcher(max_workers=2, preload=[item("10.0.0.1")])

    result = dispatcher.run(0)

    assert result.ticks == 0
    assert result.n_ticks == 0
    assert result.residual_queue == 1
    assert result.avg_queue_length() == 0.0


def test_run_negative_ticks():
    dispatcher, _ = make_dispatcher(max_workers=2)

    with pytest.raises(ValueError, match="total_ticks must be non-negative"):
        dispatcher.run(-1)


def test_run_does_not_drain():
    """Fixed window: work left over is reported, not finished."""
    items = [item(f"10.0.0.{i}", 4) for i in range(1, 4)]
    dispatcher, _ = make_dispatcher(max_workers=1, preload=items)

    result = dispatcher.run(2)

    assert result.residual_queue == 2
    assert result.busy_workers == 1
    assert result.completed == 0


def test_repeated_runs_accumulate():
    dispatcher, _ = make_dispatcher(max_workers=1, preload=[item("10.0.0.1", 3)])

    dispatcher.run(2)
    result = dispatcher.run(2)

    assert result.ticks == 4
    assert result.n_ticks == 4
    assert result.completed == 1


def test_create_dispatcher_factory():
    dispatcher = create_dispatcher(3, initial_queue_size=-1)

    assert dispatcher.active_workers() == 3
    assert dispatcher.queue_length() == 300

    with pytest.raises(ValueError, match="max_workers must be positive"):
        create_dispatcher(0)


def test_create_dispatcher_with_denylist_file(tmp_path):
    path = tmp_path / "blocked_ips.txt"
    path.write_text("10.0.0.5\n")

    dispatcher = create_dispatcher(
        2,
        denylist_source=path,
        load_generator=ScriptedLoad(),
        initial_items=[item("10.0.0.5"), item("10.0.0.6")],
    )

    assert dispatcher.queue_length() == 1
    assert dispatcher.admission.is_denied("10.0.0.5")


def test_result_dataframe():
    items = [item(f"10.0.0.{i}", 2) for i in range(1, 5)]
    dispatcher, _ = make_dispatcher(max_workers=2, preload=items)

    result = dispatcher.run(5)
    frame = result.to_dataframe()

    assert list(frame.columns) == ["queue_length", "active", "idle", "busy"]
    assert frame.index.name == "tick"
    assert list(frame.index) == [1, 2, 3, 4, 5]
    assert list(frame["queue_length"]) == [2, 2, 0, 0, 0]
    assert (frame["active"] == frame["idle"] + frame["busy"]).all()


def test_result_summary_metrics():
    items = [item(f"10.0.0.{i}", 2) for i in range(1, 5)]
    dispatcher, _ = make_dispatcher(max_workers=2, preload=items)

    result = dispatcher.run(4)

    assert result.peak_queue_length() == 2
    assert result.avg_queue_length() == pytest.approx(1.0)
    assert result.throughput() == pytest.approx(0.5)
    assert result.utilization() == pytest.approx(1.0)
    assert result.block_rate() == 0.0
    assert result.percentile_queue_length(100) == 2.0

    with pytest.raises(ValueError, match="Percentile must be in"):
        result.percentile_queue_length(101)
