# whirlpool.py
"""
Completion-phase drain that empties the reservoir through a vortex.

The WhirlpoolDrain is a two-state machine (idle / draining). While draining
it withdraws volume from the Reservoir at a rate fixed when the drain
starts and keeps pulling the surface down around the drain point by
injecting a sink impulse into the SurfaceWaveField every tick.
"""
import logging
from typing import Dict, Any, Tuple
from reservoir import Reservoir
from wave_field import SurfaceWaveField

# --- Data Contracts ---
#
# class WhirlpoolDrain:
#   - __init__(self, params, reservoir, field):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "drain_duration": float > 0 (seconds to empty the reservoir)
#         - "whirlpool_initial_strength": float
#         - "whirlpool_strength_cap": float
#         - "whirlpool_ramp": float (strength gained per second)
#         - "whirlpool_sink_gain": float (impulse per unit strength per second)
#         - "whirlpool_spin": float (rad/s of the visual rotation)
#
#   - start(self, width, height, in_flight_volume=0.0) -> None:
#     - Side Effects: activates the drain, marks the reservoir as draining.
#
#   - tick(self, dt: float) -> float:
#     - Outputs: volume withdrawn this tick.
#     - Invariants: reservoir volume is non-increasing across the call
#       and reaches 0 no later than drain_duration after start(), provided
#       every droplet in flight at start() has landed by then.
#
#   - finish_if_empty(self, droplets_in_flight: int) -> bool:
#     - Outputs: True if the drain transitioned back to idle.

class WhirlpoolDrain:
    """
    Drains the reservoir over a fixed duration and sinks the surface.
    """
    def __init__(self, params: Dict[str, Any], reservoir: Reservoir, field: SurfaceWaveField):
        self.reservoir = reservoir
        self.field = field

        self.drain_duration = float(params.get('drain_duration', 2.2))
        self.initial_strength = float(params.get('whirlpool_initial_strength', 0.2))
        self.strength_cap = float(params.get('whirlpool_strength_cap', 1.0))
        self.ramp = float(params.get('whirlpool_ramp', 1.5))
        self.sink_gain = float(params.get('whirlpool_sink_gain', 900.0))
        self.spin = float(params.get('whirlpool_spin', 5.0))

        self.active = False
        self.center: Tuple[float, float] = (0.0, 0.0)
        self.strength = 0.0
        self.drain_rate = 0.0
        self.elapsed = 0.0
        self.rotation = 0.0

    def start(self, width: float, height: float, in_flight_volume: float = 0.0):
        """
        Begins draining from the bottom-center of the scene.

        The rate is chosen so that the reservoir, plus whatever is still
        falling into it, empties in drain_duration seconds.
        """
        if self.active:
            logging.debug("Whirlpool already draining; start request ignored.")
            return
        self.active = True
        self.center = (width * 0.5, height)
        self.strength = min(self.initial_strength, self.strength_cap)
        self.elapsed = 0.0
        self.rotation = 0.0
        total = self.reservoir.volume + max(0.0, in_flight_volume)
        self.drain_rate = total / self.drain_duration if self.drain_duration > 0.0 else total
        self.reservoir.draining = True
        logging.info(
            f"Whirlpool drain started: {total:.1f} volume at {self.drain_rate:.1f}/s "
            f"over {self.drain_duration:.2f}s."
        )

    def tick(self, dt: float) -> float:
        if not self.active:
            return 0.0
        self.elapsed += dt
        self.rotation += self.spin * self.strength * dt
        self.strength = min(self.strength_cap, self.strength + self.ramp * dt)

        # Droplets landing after start() add volume the fixed rate did not
        # budget for; the catch-up term still empties on schedule.
        remaining_time = self.drain_duration - self.elapsed
        if remaining_time <= dt:
            amount = self.reservoir.volume
        else:
            catch_up = self.reservoir.volume * dt / remaining_time
            amount = max(self.drain_rate * dt, catch_up)
        withdrawn = self.reservoir.withdraw(amount)

        self.field.inject_impulse(self.center[0], -self.strength * self.sink_gain * dt)
        return withdrawn

    def finish_if_empty(self, droplets_in_flight: int) -> bool:
        if not self.active:
            return False
        if self.reservoir.volume > 0.0 or droplets_in_flight > 0:
            return False
        self.active = False
        self.strength = 0.0
        self.drain_rate = 0.0
        self.reservoir.draining = False
        logging.info(f"Whirlpool drain finished after {self.elapsed:.2f}s.")
        return True

    def resize(self, width: float, height: float):
        if self.active:
            self.center = (width * 0.5, height)

    def reset(self):
        self.active = False
        self.center = (0.0, 0.0)
        self.strength = 0.0
        self.drain_rate = 0.0
        self.elapsed = 0.0
        self.rotation = 0.0
