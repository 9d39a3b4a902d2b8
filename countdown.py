# countdown.py
"""
Countdown bookkeeping that drives the water simulation.

The CountdownController converts a timer duration into a fill target and
an inflow rate, forwards frame time to the Simulation while the timer is
not paused, and opens the whirlpool drain when the countdown completes.
"""
import logging
import math
from typing import Dict, Any
from simulation import Simulation

STATE_IDLE = "idle"
STATE_RUNNING = "running"
STATE_PAUSED = "paused"
STATE_COMPLETE = "complete"


def total_seconds(hours: int = 0, minutes: int = 0, seconds: int = 0) -> int:
    """Combines timer fields into seconds; negative fields count as zero."""
    return max(0, int(hours)) * 3600 + max(0, int(minutes)) * 60 + max(0, int(seconds))


def format_time(seconds: float) -> str:
    """Formats a remaining duration as HH:MM:SS."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0
    whole = int(math.floor(seconds))
    h = whole // 3600
    m = (whole % 3600) // 60
    s = whole % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


class CountdownController:
    """
    Runs a countdown and keeps the simulation's fill in step with it.
    """
    def __init__(self, simulation: Simulation, params: Dict[str, Any] = None):
        params = params or {}
        self.simulation = simulation
        # Fraction of the scene height the water reaches at completion.
        self.target_fill_ratio = float(params.get('target_fill_ratio', 0.85))
        if not 0.0 < self.target_fill_ratio <= 1.0:
            msg = f"Configuration error: target_fill_ratio must be in (0, 1] (got {self.target_fill_ratio})."
            logging.critical(msg)
            raise ValueError(msg)

        self.state = STATE_IDLE
        self.duration = 0.0
        self.remaining_seconds = 0.0

    @property
    def is_running(self) -> bool:
        return self.state in (STATE_RUNNING, STATE_PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.state == STATE_PAUSED

    @property
    def is_complete(self) -> bool:
        return self.state == STATE_COMPLETE

    def start(self, duration_seconds: float):
        """
        Starts a new countdown from an empty scene.

        Raises:
            ValueError: If the duration is not a positive number.
        """
        if not math.isfinite(duration_seconds) or duration_seconds <= 0:
            msg = f"Timer duration must be greater than 0 (got {duration_seconds})."
            logging.error(msg)
            raise ValueError(msg)

        self.simulation.reset()
        self.duration = float(duration_seconds)
        self.remaining_seconds = self.duration
        self._apply_fill_plan()
        self.state = STATE_RUNNING
        logging.info(f"Countdown started: {format_time(self.duration)}.")

    def _apply_fill_plan(self):
        """Targets the configured fill and spreads it over the remaining time."""
        sim = self.simulation
        sim.set_target(sim.height * self.target_fill_ratio)
        if self.remaining_seconds > 0:
            remaining_volume = max(0.0, sim.reservoir.target_volume - sim.reservoir.volume)
            sim.set_emission_rate(remaining_volume / self.remaining_seconds)

    def pause(self):
        """Toggles between running and paused."""
        if self.state == STATE_RUNNING:
            self.state = STATE_PAUSED
            logging.info(f"Countdown paused at {format_time(self.remaining_seconds)}.")
        elif self.state == STATE_PAUSED:
            self.state = STATE_RUNNING
            logging.info(f"Countdown resumed at {format_time(self.remaining_seconds)}.")

    def reset(self):
        self.state = STATE_IDLE
        self.duration = 0.0
        self.remaining_seconds = 0.0
        self.simulation.reset()
        logging.info("Countdown reset.")

    def complete(self):
        """Ends the countdown and lets the water drain away."""
        self.state = STATE_COMPLETE
        self.remaining_seconds = 0.0
        self.simulation.set_emission_rate(0.0)
        self.simulation.start_draining()
        logging.info("Countdown complete.")

    def resize(self, width: float, height: float):
        """Forwards a viewport change and re-plans the remaining fill."""
        self.simulation.resize(width, height)
        if self.state in (STATE_RUNNING, STATE_PAUSED):
            self._apply_fill_plan()

    def progress(self) -> float:
        """Elapsed fraction of the countdown in [0, 1]."""
        if self.duration <= 0:
            return 1.0 if self.state == STATE_COMPLETE else 0.0
        return min(1.0, max(0.0, 1.0 - self.remaining_seconds / self.duration))

    def advance(self, dt: float):
        """
        Advances one frame. A paused countdown freezes the water as well.
        """
        if self.state == STATE_PAUSED:
            return
        if self.state == STATE_RUNNING and math.isfinite(dt) and dt > 0:
            self.remaining_seconds -= dt
            if self.remaining_seconds <= 0:
                self.complete()
        self.simulation.update(dt)

    def display_text(self) -> str:
        return format_time(self.remaining_seconds)

    def status_label(self) -> str:
        """Short caption shown under the clock for the current state."""
        if self.state == STATE_COMPLETE:
            return "Time's up!"
        if self.state == STATE_PAUSED:
            return "Paused"
        return ""
