import numpy as np
import pytest

from droplets import DropletSystem
from emitter import DropletEmitter


def make_emitter(seed=7, width=500.0, **overrides):
    params = {'drops_per_second': 45.0, 'max_droplets': 5000, 'drop_volume_jitter': 0.35}
    params.update(overrides)
    droplets = DropletSystem(params)
    emitter = DropletEmitter(params, droplets, np.random.default_rng(seed), width)
    return emitter, droplets


def run(emitter, seconds, dt=1.0 / 60.0):
    phase = 0.0
    for _ in range(int(round(seconds / dt))):
        phase += dt
        emitter.tick(dt, phase)


def test_spawn_count_follows_fixed_rate():
    emitter, droplets = make_emitter()
    emitter.set_emission_rate(450.0)
    run(emitter, 10.0)
    assert abs(droplets.count - 450) <= 1
    assert emitter.spawned == droplets.count


def test_droplet_volumes_stay_in_jitter_band():
    emitter, droplets = make_emitter()
    emitter.set_emission_rate(900.0)
    run(emitter, 5.0)
    volumes = droplets.volumes[:droplets.count]
    mean = emitter.mean_drop_volume
    assert mean == pytest.approx(20.0)
    assert volumes.min() >= 0.65 * mean
    assert volumes.max() <= 1.35 * mean


def test_expected_emitted_volume_matches_rate():
    emitter, droplets = make_emitter()
    emitter.set_emission_rate(2500.0)
    run(emitter, 20.0)
    assert droplets.in_flight_volume() == pytest.approx(2500.0 * 20.0, rel=0.03)


def test_spawns_stop_at_cap():
    emitter, droplets = make_emitter(max_droplets=10)
    emitter.set_emission_rate(1000.0)
    for _ in range(300):
        emitter.tick(1.0 / 60.0, 0.0)
        assert droplets.count <= 10
    assert droplets.count == 10
    assert emitter.skipped > 0


def test_zero_rate_spawns_nothing():
    emitter, droplets = make_emitter()
    run(emitter, 2.0)
    assert droplets.count == 0


@pytest.mark.parametrize("rate", [-1.0, float('nan')])
def test_invalid_rate_raises(rate):
    emitter, _ = make_emitter()
    with pytest.raises(ValueError):
        emitter.set_emission_rate(rate)


def test_spawn_positions_follow_stream_inside_scene():
    emitter, droplets = make_emitter(stream_spread=4.0)
    emitter.set_emission_rate(900.0)
    run(emitter, 3.0)
    xs = droplets.positions[:droplets.count, 0]
    assert np.all(xs >= 0.0) and np.all(xs <= 500.0)
    # The stream wobbles a few percent around the centre.
    assert np.all(np.abs(xs - 250.0) < 0.05 * 500.0 + 4.0 + 1e-9)


def test_stream_position_is_a_function_of_phase():
    a, _ = make_emitter()
    b, _ = make_emitter()
    a.tick(0.016, 3.7)
    b.tick(0.016, 3.7)
    assert a.stream_x == b.stream_x
    a.tick(0.016, 5.1)
    assert a.stream_x != b.stream_x


def test_same_seed_gives_same_droplets():
    a, drops_a = make_emitter(seed=99)
    b, drops_b = make_emitter(seed=99)
    for emitter in (a, b):
        emitter.set_emission_rate(500.0)
        run(emitter, 2.0)
    assert drops_a.count == drops_b.count
    np.testing.assert_array_equal(drops_a.volumes[:drops_a.count], drops_b.volumes[:drops_b.count])


def test_radius_is_monotonic_and_clamped():
    emitter, _ = make_emitter()
    radii = [emitter.radius_for(v) for v in (0.0, 1.0, 20.0, 50.0, 1e6)]
    assert radii == sorted(radii)
    assert radii[0] == emitter.radius_min
    assert radii[-1] == emitter.radius_max


def test_stop_cuts_inflow_but_keeps_droplets():
    emitter, droplets = make_emitter()
    emitter.set_emission_rate(900.0)
    run(emitter, 1.0)
    alive = droplets.count
    emitter.stop()
    assert emitter.volume_per_second == 0.0
    assert emitter.accumulator == 0.0
    run(emitter, 1.0)
    assert droplets.count == alive


def test_radius_grows_with_square_root_of_volume():
    emitter, _ = make_emitter()
    assert emitter.radius_for(20.0) == pytest.approx(0.45 * 20.0 ** 0.5)
    assert emitter.radius_for(80.0) == pytest.approx(2.0 * emitter.radius_for(20.0))
