# simulation.py
"""
Handles the core water simulation: droplets, reservoir, ripples and drain.

This module defines the DropletPhysics class, which integrates falling
droplets and merges them into the reservoir when they reach the surface,
and the Simulation class, which owns every component and advances them
together one frame at a time. The simulation performs no I/O and keeps no
clock of its own: all time comes from the dt passed to update().
"""
import logging
import math
import numpy as np
from dataclasses import dataclass
from typing import Dict, Any, Tuple
from numba import jit
from constants import MAX_TIMESTEP
from droplets import DropletSystem
from emitter import DropletEmitter
from reservoir import Reservoir
from wave_field import SurfaceWaveField, _sample_heights_numba
from whirlpool import WhirlpoolDrain

# --- Data Contracts ---
#
# class DropletPhysics:
#   - __init__(self, params, droplets, reservoir, field, width, height):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "gravity": float (px/s^2)
#         - "air_drag": float (1/s, exponential velocity decay)
#         - "wall_restitution": float in [0, 1]
#         - "escape_margin": float (px below the scene before discard)
#         - "impulse_velocity_scale", "impulse_volume_scale",
#           "max_impulse": float
#         - "merge_stray_droplets": bool
#   - step(self, dt: float) -> int:
#     - Outputs: number of droplets that merged into the reservoir.
#     - Side Effects: mutates droplet arrays, the reservoir volume and the
#       wave field velocities.
#     - Invariants: live droplets stay within [0, width] horizontally.
#
# class Simulation:
#   - __init__(self, params: Dict[str, Any], width: float, height: float):
#     - Raises ValueError for invalid configuration.
#   - update(self, dt: float) -> None:
#     - Inputs: dt in seconds; clamped to MAX_TIMESTEP, ignored if not
#       finite or not positive.
#     - Invariants: reservoir volume never exceeds the target volume while
#       filling and never increases between ticks while draining, except
#       through droplets already in flight.
#   - snapshot(self) -> SimulationSnapshot

STATUS_FALLING = 0
STATUS_IMPACT = 1
STATUS_ESCAPED = 2
STATUS_INVALID = 3


@jit(nopython=True)
def _integrate_droplets_numba(
    positions, velocities, radii, count, dt, gravity, air_drag, restitution,
    width, escape_y, heights, base_y, status
):
    """
    Numba-jitted droplet integrator.

    Advances every live droplet and writes its fate into `status`:
    still falling, touching the surface, lost below the scene, or
    corrupted by non-finite state.
    """
    drag = math.exp(-air_drag * dt)
    for i in range(count):
        vx = velocities[i, 0] * drag
        vy = (velocities[i, 1] + gravity * dt) * drag
        x = positions[i, 0] + vx * dt
        y = positions[i, 1] + vy * dt
        r = radii[i]

        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(vx) and math.isfinite(vy)):
            status[i] = STATUS_INVALID
            continue

        # --- Side walls: mirror back inside with an energy loss ---
        lo = min(r, width * 0.5)
        hi = width - lo
        if x < lo:
            x = lo + (lo - x)
            vx = abs(vx) * restitution
        elif x > hi:
            x = hi - (x - hi)
            vx = -abs(vx) * restitution
        if x < lo:
            x = lo
        elif x > hi:
            x = hi

        positions[i, 0] = x
        positions[i, 1] = y
        velocities[i, 0] = vx
        velocities[i, 1] = vy

        surface_y = base_y - _sample_heights_numba(heights, x, width)
        if y + r >= surface_y:
            status[i] = STATUS_IMPACT
        elif y - r > escape_y:
            status[i] = STATUS_ESCAPED
        else:
            status[i] = STATUS_FALLING


class DropletPhysics:
    """
    Moves droplets under gravity and resolves their landings on the surface.
    """
    def __init__(self, params: Dict[str, Any], droplets: DropletSystem, reservoir: Reservoir,
                 field: SurfaceWaveField, width: float, height: float):
        self.droplets = droplets
        self.reservoir = reservoir
        self.field = field

        self.gravity = float(params.get('gravity', 1800.0))
        self.air_drag = float(params.get('air_drag', 0.4))
        self.restitution = float(params.get('wall_restitution', 0.35))
        self.escape_margin = float(params.get('escape_margin', 120.0))
        self.impulse_velocity_scale = float(params.get('impulse_velocity_scale', 0.08))
        self.impulse_volume_scale = float(params.get('impulse_volume_scale', 0.4))
        self.max_impulse = float(params.get('max_impulse', 120.0))
        self.merge_stray = bool(params.get('merge_stray_droplets', False))

        self.width = width
        self.height = height
        self.impacts = 0
        self.escaped = 0
        self.escaped_volume = 0.0
        self.invalid = 0

    def base_surface_y(self) -> float:
        """Resting surface y-coordinate (screen space, y grows downward)."""
        return self.height - self.reservoir.height()

    def impulse_for(self, speed: float, volume: float) -> float:
        """Ripple strength for an impact, capped so no single drop dominates."""
        strength = speed * self.impulse_velocity_scale + volume * self.impulse_volume_scale
        return min(self.max_impulse, max(0.0, strength))

    def step(self, dt: float) -> int:
        count = self.droplets.count
        if count == 0:
            return 0

        status = np.zeros(count, dtype=np.int8)
        _integrate_droplets_numba(
            self.droplets.positions, self.droplets.velocities, self.droplets.radii,
            count, dt, self.gravity, self.air_drag, self.restitution,
            self.width, self.height + self.escape_margin,
            self.field.h, self.base_surface_y(), status
        )

        positions = self.droplets.positions
        velocities = self.droplets.velocities
        volumes = self.droplets.volumes
        status[~np.isfinite(volumes[:count])] = STATUS_INVALID

        landed = np.flatnonzero(status == STATUS_IMPACT)
        for i in landed:
            speed = math.hypot(velocities[i, 0], velocities[i, 1])
            volume = volumes[i]
            self.reservoir.add_volume(volume)
            # Height-up field: an impact pushes the surface down.
            self.field.inject_impulse(positions[i, 0], -self.impulse_for(speed, volume))

        lost = np.flatnonzero(status == STATUS_ESCAPED)
        if lost.size:
            lost_volume = float(np.sum(volumes[lost]))
            if self.merge_stray:
                self.reservoir.add_volume(lost_volume)
            else:
                self.escaped_volume += lost_volume
            self.escaped += lost.size
            logging.debug(
                f"{lost.size} droplet(s) left the scene without landing "
                f"({lost_volume:.2f} volume {'merged' if self.merge_stray else 'discarded'})."
            )

        invalid = np.flatnonzero(status == STATUS_INVALID)
        if invalid.size:
            # Non-finite droplets carry no trustworthy volume; never merged.
            self.invalid += invalid.size
            logging.warning(f"Discarded {invalid.size} droplet(s) with non-finite state.")

        self.impacts += landed.size
        self.droplets.remove(status != STATUS_FALLING)
        return landed.size

    def resize(self, width: float, height: float):
        self.width = width
        self.height = height

    def reset(self):
        self.impacts = 0
        self.escaped = 0
        self.escaped_volume = 0.0
        self.invalid = 0


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view of the simulation handed to the renderer each frame."""
    width: float
    height: float
    fill_height: float
    base_surface_y: float
    fill_fraction: float
    volume: float
    target_volume: float
    heights: np.ndarray
    droplet_positions: np.ndarray
    droplet_radii: np.ndarray
    stream_x: float
    emitting: bool
    whirlpool_active: bool
    whirlpool_center: Tuple[float, float]
    whirlpool_strength: float
    whirlpool_rotation: float
    draining: bool


class Simulation:
    """
    Owns the water components and advances them one frame at a time.
    """
    def __init__(self, params: Dict[str, Any], width: float, height: float):
        """
        Initializes the simulation environment.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (float): Scene width in pixels.
            height (float): Scene height in pixels.
        """
        self.params = params
        self._validate_params(params, width, height)

        self.seed = params.get('seed')
        self.max_timestep = min(MAX_TIMESTEP, float(params.get('max_timestep', MAX_TIMESTEP)))
        self.width = float(width)
        self.height = float(height)

        # All randomness is controlled by a single seed.
        self.rng = np.random.default_rng(self.seed)

        self.reservoir = Reservoir()
        self.reservoir.set_target(0.0, self.width)
        self.field = SurfaceWaveField(params, self.width)
        self.droplets = DropletSystem(params)
        self.emitter = DropletEmitter(params, self.droplets, self.rng, self.width)
        self.physics = DropletPhysics(params, self.droplets, self.reservoir, self.field,
                                      self.width, self.height)
        self.whirlpool = WhirlpoolDrain(params, self.reservoir, self.field)

        # Animation phase, advanced only by dt so replays are deterministic.
        self.phase = 0.0
        self.step_count = 0

        logging.info(
            f"Simulation initialized for a {self.width:.0f}x{self.height:.0f} scene "
            f"({self.field.sample_count} surface samples, up to {self.droplets.capacity} droplets)."
        )

    @staticmethod
    def _validate_params(params: Dict[str, Any], width: float, height: float):
        """Enforces the configuration contract; raises ValueError on violation."""
        problems = []
        if not (math.isfinite(width) and math.isfinite(height)) or width < 0 or height < 0:
            problems.append(f"scene size must be finite and non-negative (got {width}x{height})")
        if float(params.get('drops_per_second', 45.0)) <= 0:
            problems.append("drops_per_second must be positive")
        if int(params.get('max_droplets', 220)) < 1:
            problems.append("max_droplets must be at least 1")
        if not 0.0 <= float(params.get('drop_volume_jitter', 0.35)) < 1.0:
            problems.append("drop_volume_jitter must be in [0, 1)")
        if float(params.get('drain_duration', 2.2)) <= 0:
            problems.append("drain_duration must be positive")
        if float(params.get('wave_speed', 240.0)) <= 0:
            problems.append("wave_speed must be positive")
        if float(params.get('wave_damping', 1.6)) < 0:
            problems.append("wave_damping must be non-negative")
        if not 0.0 <= float(params.get('wave_smoothing', 0.08)) < 1.0:
            problems.append("wave_smoothing must be in [0, 1)")
        if float(params.get('wave_sample_spacing', 5.0)) <= 0:
            problems.append("wave_sample_spacing must be positive")
        if float(params.get('max_timestep', MAX_TIMESTEP)) <= 0:
            problems.append("max_timestep must be positive")
        if not 0.0 <= float(params.get('wall_restitution', 0.35)) <= 1.0:
            problems.append("wall_restitution must be in [0, 1]")

        if problems:
            msg = "Configuration error: " + "; ".join(problems) + "."
            logging.critical(msg)
            raise ValueError(msg)

    # --- Controller-facing operations ---

    def set_target(self, height_pixels: float):
        """Sets the fill height the reservoir may reach."""
        self.reservoir.set_target(height_pixels, self.width)
        if height_pixels > self.height:
            logging.warning(
                f"Target height {height_pixels:.0f}px exceeds the scene height {self.height:.0f}px."
            )
        logging.info(
            f"Fill target set to {self.reservoir.target_height:.1f}px "
            f"(target volume {self.reservoir.target_volume:.1f})."
        )

    def set_emission_rate(self, volume_per_second: float):
        self.emitter.set_emission_rate(volume_per_second)

    def start_draining(self):
        """Stops the inflow and opens the whirlpool drain."""
        self.emitter.stop()
        self.whirlpool.start(self.width, self.height, self.droplets.in_flight_volume())

    @property
    def draining(self) -> bool:
        return self.whirlpool.active

    def update(self, dt: float):
        """
        Executes one frame of the simulation.
        """
        if not math.isfinite(dt) or dt <= 0.0:
            return
        dt = min(dt, self.max_timestep)
        self.phase += dt
        self.step_count += 1

        # 1. Inflow (suppressed while the drain runs)
        if not self.whirlpool.active:
            self.emitter.tick(dt, self.phase)

        # 2. Droplet motion and surface impacts
        self.physics.step(dt)

        # 3. Drain
        if self.whirlpool.active:
            self.whirlpool.tick(dt)
            self.whirlpool.finish_if_empty(self.droplets.count)

        # 4. Ripples
        self.field.step(dt)

    def reset(self):
        """Clears all state back to an empty, idle scene."""
        self.rng = np.random.default_rng(self.seed)
        self.emitter.rng = self.rng
        self.reservoir.reset()
        self.droplets.clear()
        self.field.reset()
        self.whirlpool.reset()
        self.emitter.reset()
        self.physics.reset()
        self.phase = 0.0
        self.step_count = 0
        logging.info("Simulation reset.")

    def resize(self, width: float, height: float):
        """
        Adapts every component to a new viewport size.
        """
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
            logging.warning(f"Ignoring degenerate viewport size {width}x{height}.")
            return

        width, height = float(width), float(height)
        if self.width > 0.0:
            self.droplets.scale_x(width / self.width)
        self.width = width
        self.height = height

        self.field.resize(width)
        self.emitter.resize(width)
        self.physics.resize(width, height)
        self.whirlpool.resize(width, height)
        self.reservoir.set_target(self.reservoir.target_height, width)

        logging.info(
            f"Scene resized to {width:.0f}x{height:.0f} "
            f"({self.field.sample_count} surface samples, target volume {self.reservoir.target_volume:.1f})."
        )

    # --- Renderer-facing views ---

    def snapshot(self) -> SimulationSnapshot:
        fill_height = self.reservoir.height()
        return SimulationSnapshot(
            width=self.width,
            height=self.height,
            fill_height=fill_height,
            base_surface_y=self.height - fill_height,
            fill_fraction=self.reservoir.fill_fraction(),
            volume=self.reservoir.volume,
            target_volume=self.reservoir.target_volume,
            heights=self.field.heights(),
            droplet_positions=self.droplets.live_positions(),
            droplet_radii=self.droplets.live_radii(),
            stream_x=self.emitter.stream_x,
            emitting=self.emitter.volume_per_second > 0.0 and not self.whirlpool.active,
            whirlpool_active=self.whirlpool.active,
            whirlpool_center=self.whirlpool.center,
            whirlpool_strength=self.whirlpool.strength,
            whirlpool_rotation=self.whirlpool.rotation,
            draining=self.whirlpool.active,
        )

    def get_runtime_stats(self) -> Dict[str, Any]:
        """Telemetry for throttled logging."""
        return {
            'step': self.step_count,
            'phase': self.phase,
            'volume': self.reservoir.volume,
            'target_volume': self.reservoir.target_volume,
            'fill_fraction': self.reservoir.fill_fraction(),
            'fill_height': self.reservoir.height(),
            'droplets': self.droplets.count,
            'in_flight_volume': self.droplets.in_flight_volume(),
            'spawned': self.emitter.spawned,
            'skipped_spawns': self.emitter.skipped,
            'impacts': self.physics.impacts,
            'escaped': self.physics.escaped,
            'escaped_volume': self.physics.escaped_volume,
            'invalid': self.physics.invalid,
            'draining': self.whirlpool.active,
            'whirlpool_strength': self.whirlpool.strength,
            'surface_energy': self.field.energy(),
        }
