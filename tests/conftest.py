import pytest

from simulation import Simulation


@pytest.fixture
def sim_params():
    """A copy of the shipped simulation parameters with a fixed seed."""
    return {
        'seed': 1234,
        'drops_per_second': 45.0,
        'max_droplets': 220,
        'drop_volume_jitter': 0.35,
        'gravity': 1800.0,
        'air_drag': 0.4,
        'wall_restitution': 0.35,
        'wave_speed': 240.0,
        'wave_damping': 1.6,
        'wave_smoothing': 0.08,
        'wave_sample_spacing': 5.0,
        'drain_duration': 2.2,
    }


@pytest.fixture
def sim(sim_params):
    return Simulation(sim_params, 500, 600)
