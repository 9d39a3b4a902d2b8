# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or numerical ceilings that keep the
solvers stable, and are not part of the tunable configuration.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 500
WINDOW_HEIGHT = 700
FPS = 60
WINDOW_TITLE = "Liquid Countdown"

# --- Numerical Safety ---
# Largest timestep (seconds) any integrator will ever see. Frames that arrive
# later than this (e.g. after the window was minimised) are clamped.
MAX_TIMESTEP = 0.05
# Minimum number of heightfield samples regardless of scene width.
MIN_FIELD_SAMPLES = 96
# Courant number used to split wave-field steps into stable substeps.
WAVE_COURANT_LIMIT = 0.5

# --- Colors ---
BACKGROUND_TOP = (26, 26, 46)
BACKGROUND_BOTTOM = (60, 68, 128)
WATER_DEEP = (16, 78, 160)
WATER_SURFACE = (30, 144, 255)  # DodgerBlue
SURFACE_LINE = (174, 214, 255)
DROPLET_COLOR = (173, 216, 255)
STREAM_COLOR = (174, 214, 255)
VORTEX_COLOR = (220, 240, 255)
TEXT_COLOR = (255, 255, 255)
COMPLETION_PANEL = (10, 12, 28)

# Alpha values (0-255)
WATER_ALPHA = 210
STREAM_ALPHA = 80
VORTEX_MAX_ALPHA = 150
COMPLETION_ALPHA = 140

# Number of spiral arms drawn for the whirlpool overlay.
VORTEX_ARMS = 4
