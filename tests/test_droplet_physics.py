import numpy as np
import pytest

from droplets import DropletSystem
from reservoir import Reservoir
from simulation import DropletPhysics
from wave_field import SurfaceWaveField

WIDTH = 500.0
HEIGHT = 600.0


def make_physics(**overrides):
    params = {'max_droplets': 50, 'gravity': 1800.0, 'air_drag': 0.4, 'wall_restitution': 0.35}
    params.update(overrides)
    droplets = DropletSystem(params)
    reservoir = Reservoir()
    reservoir.set_target(HEIGHT, WIDTH)
    field = SurfaceWaveField(params, WIDTH)
    physics = DropletPhysics(params, droplets, reservoir, field, WIDTH, HEIGHT)
    return physics, droplets, reservoir, field


@pytest.mark.parametrize("x, vx", [(WIDTH - 1.0, 5000.0), (1.0, -5000.0)])
def test_droplets_reflect_off_side_walls(x, vx):
    physics, droplets, _, _ = make_physics()
    droplets.add(x, 100.0, vx, 0.0, 3.0, 10.0)
    physics.step(0.05)
    assert droplets.count == 1
    new_x = droplets.positions[0, 0]
    new_vx = droplets.velocities[0, 0]
    assert 0.0 <= new_x <= WIDTH
    assert np.sign(new_vx) == -np.sign(vx)
    # Energy is lost at the wall.
    assert abs(new_vx) < abs(vx)


def test_impact_merges_volume_and_dents_surface():
    physics, droplets, reservoir, field = make_physics()
    droplets.add(250.0, HEIGHT - 4.0, 0.0, 600.0, 3.0, 42.0)
    landed = physics.step(0.016)
    assert landed == 1
    assert droplets.count == 0
    assert reservoir.volume == pytest.approx(42.0)
    assert field.v.min() < 0.0
    assert physics.impacts == 1


def test_impulse_is_capped():
    physics, _, _, _ = make_physics(max_impulse=50.0)
    assert physics.impulse_for(1e6, 1e6) == 50.0
    assert physics.impulse_for(0.0, 0.0) == 0.0
    assert physics.impulse_for(100.0, 10.0) < physics.impulse_for(400.0, 10.0)


def test_falling_droplet_keeps_falling_until_surface():
    physics, droplets, reservoir, _ = make_physics()
    droplets.add(250.0, 0.0, 0.0, 0.0, 3.0, 5.0)
    physics.step(0.016)
    assert droplets.count == 1
    assert droplets.velocities[0, 1] > 0.0
    assert reservoir.volume == 0.0

    for _ in range(200):
        physics.step(0.016)
        if droplets.count == 0:
            break
    assert droplets.count == 0
    assert reservoir.volume == pytest.approx(5.0)


def test_surface_raises_with_fill_level():
    physics, _, reservoir, _ = make_physics()
    assert physics.base_surface_y() == HEIGHT
    reservoir.add_volume(WIDTH * 100.0)
    assert physics.base_surface_y() == pytest.approx(HEIGHT - 100.0)


def test_stray_droplets_are_discarded():
    physics, droplets, reservoir, field = make_physics(escape_margin=50.0)
    # An inconsistent surface far below the scene lets the drop slip past.
    field.h[:] = -1000.0
    droplets.add(250.0, HEIGHT + 60.0, 0.0, 100.0, 3.0, 7.0)
    physics.step(0.016)
    assert droplets.count == 0
    assert reservoir.volume == 0.0
    assert physics.escaped == 1
    assert physics.escaped_volume == pytest.approx(7.0)


def test_stray_droplets_can_be_merged():
    physics, droplets, reservoir, field = make_physics(escape_margin=50.0, merge_stray_droplets=True)
    field.h[:] = -1000.0
    droplets.add(250.0, HEIGHT + 60.0, 0.0, 100.0, 3.0, 7.0)
    physics.step(0.016)
    assert droplets.count == 0
    assert reservoir.volume == pytest.approx(7.0)


@pytest.mark.parametrize("merge", [False, True])
def test_non_finite_droplets_are_dropped_without_volume(merge):
    physics, droplets, reservoir, field = make_physics(merge_stray_droplets=merge)
    droplets.add(250.0, 100.0, float('nan'), 0.0, 3.0, 9.0)
    droplets.add(100.0, 100.0, 0.0, 0.0, 3.0, 1.0)
    physics.step(0.016)
    assert droplets.count == 1
    assert droplets.positions[0, 0] == pytest.approx(100.0)
    assert reservoir.volume == 0.0
    assert physics.invalid == 1
    assert physics.escaped == 0
    assert np.all(np.isfinite(field.v))


def test_nan_volume_does_not_spoil_merged_strays():
    physics, droplets, reservoir, field = make_physics(escape_margin=50.0, merge_stray_droplets=True)
    field.h[:] = -1000.0
    droplets.add(200.0, HEIGHT + 60.0, 0.0, 100.0, 3.0, float('nan'))
    droplets.add(300.0, HEIGHT + 60.0, 0.0, 100.0, 3.0, 7.0)
    physics.step(0.016)
    assert droplets.count == 0
    assert reservoir.volume == pytest.approx(7.0)
    assert physics.escaped == 1
    assert physics.invalid == 1


def test_remove_keeps_order_of_survivors():
    droplets = DropletSystem({'max_droplets': 5})
    for i in range(4):
        droplets.add(float(i), 0.0, 0.0, 0.0, 1.0, float(i))
    droplets.remove(np.array([True, False, True, False]))
    assert droplets.count == 2
    np.testing.assert_array_equal(droplets.volumes[:2], [1.0, 3.0])
