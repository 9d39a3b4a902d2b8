# droplets.py
"""
Manages the state of all droplets currently in flight.

This module defines the DropletSystem class, which stores droplet data
(position, velocity, radius, volume) in fixed-capacity NumPy arrays. Only
the first `count` rows are live; removing droplets compacts the arrays so
the live rows stay contiguous.
"""
import logging
import numpy as np
from typing import Dict, Any

# --- Data Contracts ---
#
# class DropletSystem:
#   - __init__(self, params: Dict[str, Any]):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "max_droplets": int
#     - Outputs: None
#     - Side Effects: Allocates the droplet arrays.
#     - Invariants:
#       - self.positions is a NumPy array of shape (capacity, 2), float64.
#       - self.velocities is a NumPy array of shape (capacity, 2), float64.
#       - self.radii and self.volumes are NumPy arrays of shape (capacity,).
#       - 0 <= self.count <= self.capacity.
#
#   - add(self, x, y, vx, vy, radius, volume) -> bool:
#     - Outputs: False if the system is at capacity (nothing is stored).
#
#   - remove(self, mask: np.ndarray) -> None:
#     - Inputs: boolean array of length self.count, True for rows to drop.
#     - Side Effects: compacts live rows, preserving their order.

class DropletSystem:
    """
    A container for falling droplets, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any]):
        self.capacity = int(params.get('max_droplets', 220))

        self.positions = np.zeros((self.capacity, 2), dtype=np.float64)
        self.velocities = np.zeros((self.capacity, 2), dtype=np.float64)
        self.radii = np.zeros(self.capacity, dtype=np.float64)
        self.volumes = np.zeros(self.capacity, dtype=np.float64)
        self.count = 0

        logging.debug(f"DropletSystem allocated for {self.capacity} droplets.")

    def __len__(self) -> int:
        return self.count

    @property
    def is_full(self) -> bool:
        return self.count >= self.capacity

    def add(self, x: float, y: float, vx: float, vy: float, radius: float, volume: float) -> bool:
        """Stores a new droplet; returns False when at capacity."""
        if self.is_full:
            return False
        i = self.count
        self.positions[i, 0] = x
        self.positions[i, 1] = y
        self.velocities[i, 0] = vx
        self.velocities[i, 1] = vy
        self.radii[i] = radius
        self.volumes[i] = volume
        self.count += 1
        return True

    def remove(self, mask: np.ndarray):
        """Drops the rows flagged in mask and compacts the rest."""
        if self.count == 0 or not np.any(mask):
            return
        keep = np.flatnonzero(~mask[:self.count])
        kept = keep.size
        self.positions[:kept] = self.positions[keep]
        self.velocities[:kept] = self.velocities[keep]
        self.radii[:kept] = self.radii[keep]
        self.volumes[:kept] = self.volumes[keep]
        self.count = kept

    def scale_x(self, factor: float):
        """Rescales live x-positions, used when the scene width changes."""
        self.positions[:self.count, 0] *= factor

    def in_flight_volume(self) -> float:
        return float(np.sum(self.volumes[:self.count]))

    def live_positions(self) -> np.ndarray:
        return self.positions[:self.count].copy()

    def live_radii(self) -> np.ndarray:
        return self.radii[:self.count].copy()

    def clear(self):
        self.count = 0
