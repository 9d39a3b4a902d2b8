# reservoir.py
"""
Tracks the conserved fluid volume behind the visible fill level.

All changes to the stored volume go through add_volume() (droplet merges)
or withdraw() (the whirlpool drain); the visible height is always derived
from the volume and never stored on its own.
"""
import logging
import math


class Reservoir:
    """
    Conserved-volume accumulator whose magnitude defines the fill height.
    """
    def __init__(self):
        self.volume = 0.0
        self.target_volume = 0.0
        self.target_height = 0.0
        self.width = 0.0
        # While draining the target clamp is lifted and volume only falls.
        self.draining = False

    def set_target(self, height: float, width: float):
        """
        Sets the fill ceiling for a scene of the given width.

        Raises:
            ValueError: If height or width is negative or not finite.
        """
        if not math.isfinite(height) or height < 0.0:
            msg = f"Target height must be a finite, non-negative number (got {height})."
            logging.error(msg)
            raise ValueError(msg)
        if not math.isfinite(width) or width < 0.0:
            msg = f"Scene width must be a finite, non-negative number (got {width})."
            logging.error(msg)
            raise ValueError(msg)

        self.target_height = float(height)
        self.width = float(width)
        self.target_volume = self.width * self.target_height
        if not self.draining:
            self.volume = min(self.volume, self.target_volume)

    def add_volume(self, amount: float) -> float:
        """
        Adds fluid, clamped to the target volume unless draining.

        Returns:
            float: The volume actually stored.
        """
        if not math.isfinite(amount) or amount <= 0.0:
            return 0.0
        before = self.volume
        self.volume += amount
        if not self.draining:
            self.volume = min(self.volume, self.target_volume)
        return self.volume - before

    def withdraw(self, amount: float) -> float:
        """
        Removes up to `amount` of fluid, never going below zero.

        Returns:
            float: The volume actually removed.
        """
        if not math.isfinite(amount) or amount <= 0.0:
            return 0.0
        removed = min(amount, self.volume)
        self.volume -= removed
        if self.volume < 1e-9:
            self.volume = 0.0
        return removed

    def height(self) -> float:
        """Visible fill height in pixels."""
        if self.width <= 0.0:
            return 0.0
        return min(self.target_height, self.volume / self.width)

    def fill_fraction(self) -> float:
        """Volume normalized against the target volume."""
        if self.target_volume <= 0.0:
            return 0.0
        return self.volume / self.target_volume

    def reset(self):
        self.volume = 0.0
        self.draining = False
