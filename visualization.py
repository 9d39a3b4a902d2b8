# visualization.py
"""
Handles the visualization of the water simulation using Pygame.
"""
import logging
import math
import pygame
import numpy as np
from constants import (
    FULLSCREEN, WINDOW_WIDTH, WINDOW_HEIGHT, WINDOW_TITLE,
    BACKGROUND_TOP, BACKGROUND_BOTTOM, WATER_DEEP, WATER_SURFACE, SURFACE_LINE,
    DROPLET_COLOR, STREAM_COLOR, VORTEX_COLOR, TEXT_COLOR,
    WATER_ALPHA, STREAM_ALPHA, VORTEX_MAX_ALPHA, VORTEX_ARMS,
    COMPLETION_PANEL, COMPLETION_ALPHA
)
from typing import Dict, Any, List, Optional, Tuple

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from countdown import CountdownController
    from simulation import SimulationSnapshot


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[Dict[str, Any]] = None):
#     - Inputs:
#       - vis_params: the "visualization" section of config.json.
#         - "show_stats": bool, draw fill/droplet telemetry under the clock.
#     - Side Effects: Initializes Pygame and creates a resizable display.
#
#   - draw(self, countdown: CountdownController) -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Handles Pygame events (quit, pause, reset, resize),
#       reads a snapshot from the countdown's simulation and renders it.
#       Never mutates the simulation except through the countdown's
#       pause/reset/resize operations.

class Visualizer:
    """
    Renders the liquid surface, falling stream and whirlpool overlay.
    """
    def __init__(self, vis_params: Optional[Dict[str, Any]] = None):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        if FULLSCREEN:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = WINDOW_WIDTH, WINDOW_HEIGHT
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        self.sim_width = width
        self.sim_height = height

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()

        self.vis_params = vis_params if vis_params is not None else {}
        self.show_stats = bool(self.vis_params.get('show_stats', False))

        try:
            self.font_clock = pygame.font.SysFont("Segoe UI", 48, bold=True)
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_clock = pygame.font.SysFont(None, 56, bold=True)
            self.font_main = pygame.font.SysFont(None, 18)

        self._build_surfaces()

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _build_surfaces(self):
        """(Re)creates the size-dependent surfaces."""
        self.background = self._pre_render_background(self.sim_width, self.sim_height)
        self.overlay = pygame.Surface((self.sim_width, self.sim_height), pygame.SRCALPHA)

    @staticmethod
    def _pre_render_background(width: int, height: int) -> pygame.Surface:
        """Vertical gradient behind the water, rendered once per size."""
        surface = pygame.Surface((max(1, width), max(1, height)))
        for y in range(max(1, height)):
            t = y / max(1, height - 1)
            color = [int(a + (b - a) * t) for a, b in zip(BACKGROUND_TOP, BACKGROUND_BOTTOM)]
            pygame.draw.line(surface, color, (0, y), (width, y))
        return surface

    def _handle_resize(self, width: int, height: int, countdown: "CountdownController"):
        if width <= 0 or height <= 0:
            return
        self.screen = pygame.display.get_surface()
        self.sim_width, self.sim_height = width, height
        self._build_surfaces()
        countdown.resize(width, height)

    def _surface_points(self, snapshot: "SimulationSnapshot") -> List[Tuple[float, float]]:
        heights = snapshot.heights
        count = heights.shape[0]
        if count < 2 or snapshot.width <= 0:
            return []
        xs = np.linspace(0.0, snapshot.width, count)
        ys = np.clip(snapshot.base_surface_y - heights, 0.0, snapshot.height)
        if not np.all(np.isfinite(ys)):
            return []
        return list(zip(xs.tolist(), ys.tolist()))

    def _draw_water(self, snapshot: "SimulationSnapshot", points: List[Tuple[float, float]]):
        if not points or snapshot.fill_height <= 0.0:
            return
        polygon = points + [(snapshot.width, snapshot.height), (0.0, snapshot.height)]
        depth_mix = min(1.0, snapshot.fill_height / max(1.0, snapshot.height))
        color = [int(a + (b - a) * depth_mix) for a, b in zip(WATER_SURFACE, WATER_DEEP)]
        pygame.draw.polygon(self.overlay, (*color, WATER_ALPHA), polygon)
        pygame.draw.aalines(self.overlay, SURFACE_LINE, False, points)

    def _draw_stream(self, snapshot: "SimulationSnapshot"):
        if not snapshot.emitting:
            return
        x = snapshot.stream_x
        bottom = snapshot.base_surface_y
        pygame.draw.line(self.overlay, (*STREAM_COLOR, STREAM_ALPHA), (x, 0), (x, bottom), 3)

    def _draw_droplets(self, snapshot: "SimulationSnapshot"):
        for (x, y), r in zip(snapshot.droplet_positions, snapshot.droplet_radii):
            if not (math.isfinite(x) and math.isfinite(y)):
                continue
            pygame.draw.circle(self.overlay, DROPLET_COLOR, (int(x), int(y)), max(1, int(round(r))))

    def _draw_whirlpool(self, snapshot: "SimulationSnapshot"):
        """Spiral arms around the drain point, flattened into perspective."""
        if not snapshot.whirlpool_active or snapshot.whirlpool_strength <= 0.0:
            return
        cx = snapshot.whirlpool_center[0]
        cy = min(snapshot.height, snapshot.base_surface_y)
        strength = min(1.0, snapshot.whirlpool_strength)
        max_radius = 0.35 * snapshot.width * (0.4 + 0.6 * strength)
        alpha = int(VORTEX_MAX_ALPHA * strength)

        for arm in range(VORTEX_ARMS):
            offset = snapshot.whirlpool_rotation + arm * 2.0 * math.pi / VORTEX_ARMS
            points = []
            for step in range(24):
                t = step / 23.0
                angle = offset + t * 2.5 * math.pi
                radius = max_radius * (1.0 - t)
                points.append((cx + math.cos(angle) * radius, cy + math.sin(angle) * radius * 0.3))
            pygame.draw.lines(self.overlay, (*VORTEX_COLOR, alpha), False, points, 2)

    def _draw_text(self, countdown: "CountdownController", snapshot: "SimulationSnapshot"):
        text_surf = self.font_clock.render(countdown.display_text(), True, TEXT_COLOR)
        text_rect = text_surf.get_rect(center=(self.sim_width // 2, 60))

        if countdown.is_complete:
            # Completion overlay: a dim panel behind the clock and caption.
            panel = text_rect.inflate(48, 72)
            panel.top = text_rect.top - 16
            panel_surf = pygame.Surface(panel.size, pygame.SRCALPHA)
            panel_surf.fill((*COMPLETION_PANEL, COMPLETION_ALPHA))
            self.screen.blit(panel_surf, panel.topleft)
        self.screen.blit(text_surf, text_rect)

        caption = countdown.status_label()
        if caption:
            caption_surf = self.font_main.render(caption, True, TEXT_COLOR)
            self.screen.blit(caption_surf, caption_surf.get_rect(center=(self.sim_width // 2, text_rect.bottom + 18)))

        if self.show_stats:
            stats = (
                f"fill {snapshot.fill_fraction * 100:5.1f}%  "
                f"drops {snapshot.droplet_positions.shape[0]}  "
                f"{'draining' if snapshot.draining else ''}"
            )
            stats_surf = self.font_main.render(stats, True, TEXT_COLOR)
            self.screen.blit(stats_surf, stats_surf.get_rect(center=(self.sim_width // 2, text_rect.bottom + 40)))

    def draw(self, countdown: "CountdownController") -> bool:
        """
        Draws the current simulation state and handles events.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                if event.key == pygame.K_SPACE:
                    countdown.pause()
                elif event.key == pygame.K_r:
                    countdown.reset()

            if event.type == pygame.VIDEORESIZE:
                self._handle_resize(event.w, event.h, countdown)

        snapshot = countdown.simulation.snapshot()

        self.screen.blit(self.background, (0, 0))
        self.overlay.fill((0, 0, 0, 0))

        points = self._surface_points(snapshot)
        self._draw_stream(snapshot)
        self._draw_droplets(snapshot)
        self._draw_water(snapshot, points)
        self._draw_whirlpool(snapshot)

        self.screen.blit(self.overlay, (0, 0))
        self._draw_text(countdown, snapshot)

        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
