import pytest

from reservoir import Reservoir
from wave_field import SurfaceWaveField
from whirlpool import WhirlpoolDrain

WIDTH = 500.0
HEIGHT = 600.0
DT = 0.016


def make_drain(volume=100000.0, **overrides):
    params = {'drain_duration': 2.2}
    params.update(overrides)
    reservoir = Reservoir()
    reservoir.set_target(300.0, WIDTH)
    reservoir.add_volume(volume)
    field = SurfaceWaveField(params, WIDTH)
    return WhirlpoolDrain(params, reservoir, field), reservoir, field


def test_start_opens_drain_at_bottom_center():
    drain, reservoir, _ = make_drain()
    drain.start(WIDTH, HEIGHT)
    assert drain.active
    assert drain.center == (WIDTH / 2, HEIGHT)
    assert drain.drain_rate == pytest.approx(100000.0 / 2.2)
    assert reservoir.draining
    assert drain.strength > 0.0


def test_in_flight_volume_is_budgeted():
    drain, _, _ = make_drain()
    drain.start(WIDTH, HEIGHT, in_flight_volume=11000.0)
    assert drain.drain_rate == pytest.approx(111000.0 / 2.2)


def test_volume_falls_monotonically_to_zero_within_duration():
    drain, reservoir, _ = make_drain()
    drain.start(WIDTH, HEIGHT)
    previous = reservoir.volume
    elapsed = 0.0
    while elapsed < 2.2:
        drain.tick(DT)
        elapsed += DT
        assert reservoir.volume <= previous
        previous = reservoir.volume
    assert reservoir.volume == 0.0
    assert drain.finish_if_empty(0)
    assert not drain.active
    assert not reservoir.draining


def test_late_volume_is_still_drained_on_schedule():
    drain, reservoir, _ = make_drain()
    drain.start(WIDTH, HEIGHT)
    for i in range(int(2.2 / DT) + 1):
        if i == 60:
            reservoir.add_volume(20000.0)
        drain.tick(DT)
    assert reservoir.volume == 0.0


def test_stays_active_while_droplets_are_in_flight():
    drain, reservoir, _ = make_drain(volume=0.0)
    drain.start(WIDTH, HEIGHT)
    drain.tick(DT)
    assert not drain.finish_if_empty(3)
    assert drain.active
    assert drain.finish_if_empty(0)


def test_strength_ramps_to_cap():
    drain, _, _ = make_drain(whirlpool_strength_cap=0.8, whirlpool_ramp=2.0)
    drain.start(WIDTH, HEIGHT)
    strengths = []
    for _ in range(100):
        drain.tick(DT)
        strengths.append(drain.strength)
    assert strengths == sorted(strengths)
    assert max(strengths) == pytest.approx(0.8)
    assert drain.rotation > 0.0


def test_sink_draws_surface_down_at_center():
    drain, _, field = make_drain()
    drain.start(WIDTH, HEIGHT)
    for _ in range(120):
        drain.tick(DT)
        field.step(DT)
    assert field.sample(WIDTH / 2) < -1.0
    assert field.sample(WIDTH / 2) < field.sample(WIDTH * 0.1)


def test_start_while_active_is_ignored():
    drain, reservoir, _ = make_drain()
    drain.start(WIDTH, HEIGHT)
    rate = drain.drain_rate
    drain.tick(DT)
    drain.start(WIDTH, HEIGHT)
    assert drain.drain_rate == rate


def test_reset_returns_to_idle():
    drain, _, _ = make_drain()
    drain.start(WIDTH, HEIGHT)
    drain.tick(DT)
    drain.reset()
    assert not drain.active
    assert drain.strength == 0.0
    assert drain.rotation == 0.0
