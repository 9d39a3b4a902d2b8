# emitter.py
"""
Spawns the falling droplets that make up the inflow stream.

Droplets are emitted at a fixed count per second so the cost of the
simulation stays bounded; the requested volume rate is met by scaling the
volume each droplet carries instead.
"""
import logging
import math
import numpy as np
from typing import Dict, Any
from droplets import DropletSystem

# --- Data Contracts ---
#
# class DropletEmitter:
#   - __init__(self, params, droplets, rng, width):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "drops_per_second": float > 0
#         - "drop_volume_jitter": float in [0, 1)
#         - "stream_spread": float (px of spawn jitter around the stream)
#         - "spawn_y": float, "spawn_speed": float
#         - "drop_radius_scale", "drop_radius_min", "drop_radius_max": float
#       - droplets: the DropletSystem new droplets are stored in.
#       - rng: numpy Generator; all randomness flows through it.
#       - width: float, scene width in pixels.
#
#   - tick(self, dt: float, phase: float) -> int:
#     - Outputs: number of droplets spawned this tick.
#     - Invariants: never pushes the droplet count past its capacity.
#       The expected emitted volume over T seconds is volume_per_second * T
#       as long as the cap is not reached.


class DropletEmitter:
    """
    Fixed-rate droplet source wobbling across the top of the scene.
    """
    def __init__(self, params: Dict[str, Any], droplets: DropletSystem,
                 rng: np.random.Generator, width: float):
        self.droplets = droplets
        self.rng = rng

        self.drops_per_second = float(params.get('drops_per_second', 45.0))
        self.volume_jitter = float(params.get('drop_volume_jitter', 0.35))
        self.stream_spread = float(params.get('stream_spread', 4.0))
        self.spawn_y = float(params.get('spawn_y', 0.0))
        self.spawn_speed = float(params.get('spawn_speed', 140.0))
        self.radius_scale = float(params.get('drop_radius_scale', 0.45))
        self.radius_min = float(params.get('drop_radius_min', 1.5))
        self.radius_max = float(params.get('drop_radius_max', 6.0))
        # Horizontal anchor of the stream as a fraction of the width.
        self.stream_anchor = float(params.get('stream_anchor', 0.5))
        self.wobble_amplitude = float(params.get('stream_wobble', 0.04))

        self.width = width
        self.volume_per_second = 0.0
        self.accumulator = 0.0
        self.stream_x = self.width * self.stream_anchor
        self.spawned = 0
        self.skipped = 0

    @property
    def mean_drop_volume(self) -> float:
        if self.drops_per_second <= 0.0:
            return 0.0
        return self.volume_per_second / self.drops_per_second

    def set_emission_rate(self, volume_per_second: float):
        """
        Sets the inflow rate in volume units per second. 0 stops emission.

        Raises:
            ValueError: If the rate is negative or not finite.
        """
        if not math.isfinite(volume_per_second) or volume_per_second < 0.0:
            msg = f"Emission rate must be a finite, non-negative number (got {volume_per_second})."
            logging.error(msg)
            raise ValueError(msg)
        self.volume_per_second = float(volume_per_second)
        logging.info(
            f"Emission rate set to {self.volume_per_second:.2f}/s "
            f"({self.mean_drop_volume:.2f} per droplet at {self.drops_per_second:.0f} drops/s)."
        )

    def stop(self):
        """Cuts the inflow; droplets already in flight keep falling."""
        self.volume_per_second = 0.0
        self.accumulator = 0.0
        logging.info("Emission stopped.")

    def radius_for(self, volume: float) -> float:
        """Cosmetic radius for a droplet volume; monotonic and clamped."""
        radius = self.radius_scale * math.sqrt(max(0.0, volume))
        return min(self.radius_max, max(self.radius_min, radius))

    def resize(self, width: float):
        self.width = width
        self.stream_x = min(self.stream_x, self.width)

    def _update_stream(self, phase: float):
        # Two incommensurate sines give an organic, non-repeating sway.
        wobble = math.sin(phase * 1.2) * 0.6 + math.sin(phase * 2.4 + 1.1) * 0.4
        fraction = self.stream_anchor + wobble * self.wobble_amplitude
        self.stream_x = self.width * min(1.0, max(0.0, fraction))

    def tick(self, dt: float, phase: float) -> int:
        """
        Accumulates the fractional droplet budget and spawns whole droplets.
        """
        self._update_stream(phase)
        if self.volume_per_second <= 0.0 or self.width <= 0.0:
            self.accumulator = 0.0
            return 0

        self.accumulator += self.drops_per_second * dt
        spawn_count = int(self.accumulator)
        self.accumulator -= spawn_count

        spawned = 0
        mean_volume = self.mean_drop_volume
        for _ in range(spawn_count):
            if self.droplets.is_full:
                self.skipped += 1
                continue
            volume = mean_volume * self.rng.uniform(1.0 - self.volume_jitter, 1.0 + self.volume_jitter)
            radius = self.radius_for(volume)
            x = self.stream_x + self.rng.uniform(-self.stream_spread, self.stream_spread)
            x = min(self.width, max(0.0, x))
            vx = self.rng.uniform(-8.0, 8.0)
            vy = self.spawn_speed * self.rng.uniform(0.85, 1.15)
            self.droplets.add(x, self.spawn_y, vx, vy, radius, volume)
            spawned += 1

        if spawned:
            self.spawned += spawned
        return spawned

    def reset(self):
        self.volume_per_second = 0.0
        self.accumulator = 0.0
        self.stream_x = self.width * self.stream_anchor
        self.spawned = 0
        self.skipped = 0
