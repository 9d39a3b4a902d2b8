# wave_field.py
"""
One-dimensional ripple solver for the liquid surface.

This module defines the SurfaceWaveField class, which stores a row of
height offsets and vertical velocities spread evenly across the scene
width and advances them with an explicit finite-difference scheme of the
1-D wave equation. Offsets are height-up: a positive value raises the
surface above its resting level.
"""
import logging
import math
import numpy as np
from typing import Dict, Any
from numba import jit
from constants import MIN_FIELD_SAMPLES, WAVE_COURANT_LIMIT

# --- Data Contracts ---
#
# class SurfaceWaveField:
#   - __init__(self, params: Dict[str, Any], width: float):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "wave_speed": float (px/s)
#         - "wave_damping": float (1/s, exponential velocity decay)
#         - "wave_smoothing": float in [0, 1) (single blur pass per step)
#         - "wave_sample_spacing": float (px between samples)
#       - width: float, width of the scene in pixels.
#     - Invariants:
#       - self.h and self.v are float64 arrays of identical length N.
#       - N >= MIN_FIELD_SAMPLES.
#       - The edge samples (0 and N-1) are pinned: neither the Laplacian
#         nor impulses ever move them.
#
#   - step(self, dt: float) -> None
#   - inject_impulse(self, x: float, strength: float) -> None
#   - sample(self, x: float) -> float
#   - resize(self, width: float) -> None
#   - resample(self, new_count: int) -> None

# Standard deviation (in samples) of the impulse bump.
IMPULSE_SIGMA = 1.2
IMPULSE_REACH = 3
IMPULSE_WEIGHTS = np.exp(
    -(np.arange(-IMPULSE_REACH, IMPULSE_REACH + 1, dtype=np.float64) ** 2)
    / (2.0 * IMPULSE_SIGMA ** 2)
)


@jit(nopython=True)
def _sample_heights_numba(h, x, width):
    """Linearly interpolates the height offset at scene coordinate x."""
    n = h.shape[0]
    if n == 0 or width <= 0.0 or not math.isfinite(x):
        return 0.0
    if n == 1:
        return h[0]
    pos = x / width * (n - 1)
    if pos <= 0.0:
        return h[0]
    if pos >= n - 1:
        return h[n - 1]
    i = int(pos)
    frac = pos - i
    return h[i] * (1.0 - frac) + h[i + 1] * frac


@jit(nopython=True)
def _step_wave_numba(h, v, dt, wave_speed, dx, damping, smoothing, substeps):
    """
    Advances the interior of the heightfield in place.

    Edge samples are left untouched, which holds them at rest and keeps
    energy from entering at the walls.
    """
    n = h.shape[0]
    sub_dt = dt / substeps
    c2 = wave_speed * wave_speed
    inv_dx2 = 1.0 / (dx * dx)
    decay = math.exp(-damping * sub_dt)

    for _ in range(substeps):
        for i in range(1, n - 1):
            curvature = (h[i - 1] - 2.0 * h[i] + h[i + 1]) * inv_dx2
            v[i] += c2 * curvature * sub_dt
        for i in range(1, n - 1):
            h[i] += v[i] * sub_dt
            v[i] *= decay

    if smoothing > 0.0 and n > 2:
        prev = h[0]
        for i in range(1, n - 1):
            current = h[i]
            h[i] = (1.0 - smoothing) * current + smoothing * 0.5 * (prev + h[i + 1])
            prev = current


def _resample_array(values: np.ndarray, new_count: int) -> np.ndarray:
    """Linear resample over the normalized index fraction [0, 1]."""
    if new_count <= 0:
        return np.zeros(0, dtype=np.float64)
    if values.size == 0:
        return np.zeros(new_count, dtype=np.float64)
    if values.size == 1:
        return np.full(new_count, values[0], dtype=np.float64)
    old_positions = np.linspace(0.0, 1.0, values.size)
    new_positions = np.linspace(0.0, 1.0, new_count)
    return np.interp(new_positions, old_positions, values)


class SurfaceWaveField:
    """
    A row of ripple samples evolved by the discretized wave equation.
    """
    def __init__(self, params: Dict[str, Any], width: float):
        """
        Initializes a flat field spanning the scene width.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            width (float): The width of the scene in pixels.
        """
        self.wave_speed = float(params.get('wave_speed', 240.0))
        self.damping = float(params.get('wave_damping', 1.6))
        self.smoothing = float(params.get('wave_smoothing', 0.08))
        self.sample_spacing = float(params.get('wave_sample_spacing', 5.0))

        self.width = max(0.0, float(width))
        count = self.sample_count_for(self.width)
        self.h = np.zeros(count, dtype=np.float64)
        self.v = np.zeros(count, dtype=np.float64)

        logging.debug(
            f"SurfaceWaveField created with {count} samples over {self.width:.0f}px "
            f"(c={self.wave_speed}, damping={self.damping}, smoothing={self.smoothing})."
        )

    @property
    def sample_count(self) -> int:
        return self.h.shape[0]

    @property
    def spacing(self) -> float:
        """Distance in pixels between neighbouring samples."""
        if self.sample_count < 2 or self.width <= 0.0:
            return 0.0
        return self.width / (self.sample_count - 1)

    def sample_count_for(self, width: float) -> int:
        """Number of samples for a scene of the given width."""
        if self.sample_spacing <= 0.0 or not math.isfinite(width):
            return MIN_FIELD_SAMPLES
        return max(MIN_FIELD_SAMPLES, int(width / self.sample_spacing))

    def step(self, dt: float):
        """
        Advances the field by dt seconds.

        The step is split into substeps that respect the Courant limit for
        the current sample spacing, so a narrow scene with densely packed
        samples remains stable at the maximum frame timestep.
        """
        if not math.isfinite(dt) or dt <= 0.0:
            return
        dx = self.spacing
        if dx <= 0.0:
            return
        substeps = max(1, int(math.ceil(self.wave_speed * dt / (WAVE_COURANT_LIMIT * dx))))
        _step_wave_numba(
            self.h, self.v, dt, self.wave_speed, dx,
            self.damping, self.smoothing, substeps
        )

    def index_for(self, x: float) -> int:
        """Nearest sample index for a scene x-coordinate, or -1 if undefined."""
        n = self.sample_count
        if n == 0 or self.width <= 0.0 or not math.isfinite(x):
            return -1
        fraction = min(1.0, max(0.0, x / self.width))
        return int(round(fraction * (n - 1)))

    def inject_impulse(self, x: float, strength: float):
        """
        Adds a Gaussian velocity bump centred on the sample nearest to x.

        The nearest sample receives the full strength; neighbours out to
        three samples away receive decaying fractions of it. The pinned
        edge samples are skipped.
        """
        if not math.isfinite(strength):
            return
        center = self.index_for(x)
        if center < 0:
            return
        n = self.sample_count
        for offset, weight in zip(range(-IMPULSE_REACH, IMPULSE_REACH + 1), IMPULSE_WEIGHTS):
            i = center + offset
            if 0 < i < n - 1:
                self.v[i] += strength * weight

    def sample(self, x: float) -> float:
        """Height offset at scene coordinate x (0.0 for degenerate input)."""
        return float(_sample_heights_numba(self.h, float(x), self.width))

    def resample(self, new_count: int):
        """Resamples the current heights and velocities onto new_count points."""
        new_count = max(1, int(new_count))
        if new_count == self.sample_count:
            return
        self.h = _resample_array(self.h, new_count)
        self.v = _resample_array(self.v, new_count)

    def resize(self, width: float):
        """Adapts the field to a new scene width, keeping the wave shape."""
        self.width = max(0.0, float(width))
        old_count = self.sample_count
        self.resample(self.sample_count_for(self.width))
        logging.debug(f"SurfaceWaveField resized: {old_count} -> {self.sample_count} samples.")

    def heights(self) -> np.ndarray:
        """A copy of the current height offsets for the renderer."""
        return self.h.copy()

    def reset(self):
        self.h.fill(0.0)
        self.v.fill(0.0)

    def energy(self) -> float:
        """Sum of squared offsets and velocities; used for telemetry."""
        return float(np.sum(self.h ** 2) + np.sum(self.v ** 2))
