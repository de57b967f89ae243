"""
Tests for the static pool baseline.

Verifies that the baseline never scales and shows the trade-off the elastic
dispatcher makes between provisioned workers and backlog.
"""

from elastic_lb import Dispatcher, DispatcherConfig, EventRecorder, ScaledDown, ScaledUp, ScriptedLoad
from assessment.baselines import StaticPoolDispatcher, create_static_pool
from assessment.metrics import compute_worker_ticks
from assessment.workloads import generate_backlog_drain, generate_steady_trickle


def test_static_pool_never_scales():
    """Idle pool with empty queue: the elastic pool would shrink, the static one holds."""
    recorder = EventRecorder()
    baseline = StaticPoolDispatcher(
        DispatcherConfig(max_workers=4, initial_queue_size=0),
        load_generator=ScriptedLoad(),
        sink=recorder,
    )

    result = baseline.run(10)

    assert list(result.active_workers) == [4] * 10
    assert result.scale_ups == 0
    assert result.scale_downs == 0
    assert not recorder.of_type(ScaledUp)
    assert not recorder.of_type(ScaledDown)


def test_static_pool_small_pool_builds_backlog():
    """A static pool started small never grows to meet the backlog."""
    workload = generate_backlog_drain(n_items=10, duration=2)
    config = DispatcherConfig(max_workers=5, initial_workers=1, initial_queue_size=10)

    static = StaticPoolDispatcher(config, load_generator=workload.to_load()).run(6)
    elastic = Dispatcher(config, load_generator=workload.to_load()).run(6)

    assert static.residual_queue > elastic.residual_queue
    assert list(static.active_workers) == [1] * 6
    assert elastic.active_workers.max() == 5


def test_elastic_pool_provisions_fewer_workers_under_light_load():
    workload = generate_steady_trickle(n_ticks=100, arrival_interval=3, max_duration=2, seed=5)
    config = DispatcherConfig(max_workers=6, initial_queue_size=0)

    static = StaticPoolDispatcher(config, load_generator=workload.to_load()).run(100)
    elastic = Dispatcher(config, load_generator=workload.to_load()).run(100)

    assert compute_worker_ticks(elastic) < compute_worker_ticks(static)
    # Light load: both keep up with arrivals
    assert elastic.residual_queue == 0
    assert static.residual_queue == 0


def test_create_static_pool():
    baseline = create_static_pool(3, load_generator=ScriptedLoad())

    assert isinstance(baseline, StaticPoolDispatcher)
    assert baseline.active_workers() == 3
    assert baseline.queue_length() == 0
    assert "StaticPoolDispatcher" in repr(baseline)
