# ============================================================================
# PERF CHECK (file-level):
# ============================================================================
# [X] | Role: pygame canvas hosting one tile per camera
# [X] | Hot-path functions: show_image(), present(), poll_input()
# [X] |- Heavy allocs in hot path? One surface per rendered frame (make_surface)
# [ ] |- pandas/pyarrow/json/disk/net in hot path? No
# [X] | Graphics here? YES - PRIMARY RENDERER
# [ ] | Data produced (tick schema?): None
# [ ] | Storage (Parquet/Arrow/CSV/none): None
# [ ] | Queue/buffer used?: No
# [ ] | Session-aware? No
# [ ] | Debug-only heavy features?: Tile labels (show_labels)
# Top 3 perf risks:
# 1. [PERF_HOT] BGRA->RGB swizzle + make_surface per frame
# 2. [PERF_HOT] smoothscale when a frame does not match its tile size
# 3. [PERF_OK] Titles are rendered once per window, only the counter line per frame
# ============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import pygame

from Core.Exceptions import CameraViewError
from Utility.Font.FontIconLibrary import FontLibrary


@dataclass
class _Window:
    title: str
    size: Tuple[int, int]
    position: Tuple[int, int] = (0, 0)
    label: Optional[pygame.Surface] = None
    frames_shown: int = 0


def bgra_to_rgb(data: np.ndarray) -> np.ndarray:
    """(H, W, 4) BGRA -> (H, W, 3) RGB."""
    return data[:, :, :3][:, :, ::-1]


class PygameDisplay(object):
    """
    Single borderless pygame window standing in for a wall of named windows.
    Every "window" is a tile of the canvas, addressed by its title.
    All calls must come from the main thread.
    """

    def __init__(self, caption="CARLA CameraView", display_index=0, show_labels=True, window_pos=(0, 0)):
        self.caption = caption
        self.display_index = display_index
        self.show_labels = show_labels
        self.window_pos = window_pos
        self.surface = None
        self.windows: Dict[str, _Window] = {}
        self._fonts = None

    @property
    def is_open(self) -> bool:
        return self.surface is not None

    def open(self, size):
        """Create the canvas. size is the pixel extent of all tiles."""
        # window manager must not move or minimize the canvas
        os.environ.setdefault("SDL_VIDEO_WINDOW_POS", f"{self.window_pos[0]},{self.window_pos[1]}")
        os.environ["SDL_VIDEO_MINIMIZE_ON_FOCUS_LOSS"] = "0"

        pygame.display.init()
        flags = pygame.HWSURFACE | pygame.DOUBLEBUF | pygame.NOFRAME
        try:
            self.surface = pygame.display.set_mode((int(size[0]), int(size[1])), flags, display=self.display_index)
        except pygame.error as e:
            raise CameraViewError(f"Could not open {size[0]}x{size[1]} display: {e}") from e
        pygame.display.set_caption(self.caption)
        self.surface.fill((0, 0, 0))
        if self.show_labels:
            self._fonts = FontLibrary().get_loaded_fonts(type="tile_overlay")
        logging.info(f"🖥️ Display canvas {size[0]}x{size[1]} on display {self.display_index}")

    def create_window(self, title: str, size):
        if title in self.windows:
            raise CameraViewError(f"Window '{title}' already exists")
        window = _Window(title=title, size=(int(size[0]), int(size[1])))
        if self._fonts:
            window.label = self._fonts["label"].render(title, True, (240, 240, 240))
        self.windows[title] = window

    def move_window(self, title: str, x: int, y: int):
        self._window(title).position = (int(x), int(y))

    def show_image(self, title: str, frame):
        if self.surface is None:
            raise CameraViewError("Display is not open")
        window = self._window(title)
        rgb = bgra_to_rgb(frame.data)
        image = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
        if image.get_size() != window.size:
            image = pygame.transform.smoothscale(image, window.size)
        self.surface.blit(image, window.position)
        window.frames_shown += 1
        if window.label is not None:
            self._draw_overlay(window, frame)

    def _draw_overlay(self, window: _Window, frame):
        """Title plus 'sim frame / frames shown' counter in the tile's top-left corner."""
        stats = self._fonts["stats"].render(f"frame {frame.frame_number}  shown {window.frames_shown}",
                                            True, (180, 180, 180))
        x, y = window.position
        width = max(window.label.get_width(), stats.get_width()) + 12
        height = window.label.get_height() + stats.get_height() + 12
        pygame.draw.rect(self.surface, (10, 10, 10), (x + 8, y + 8, width, height))
        self.surface.blit(window.label, (x + 14, y + 12))
        self.surface.blit(stats, (x + 14, y + 14 + window.label.get_height()))

    def present(self):
        pygame.display.flip()

    def poll_input(self, timeout_ms: int = 0) -> bool:
        """Pump the event queue. True when the user asked to quit (close, ESC or q)."""
        quit_requested = False
        events = pygame.event.get()
        for event in events:
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_q):
                quit_requested = True
        if not events and timeout_ms > 0:
            pygame.time.wait(int(timeout_ms))
        return quit_requested

    def close(self):
        if self.surface is not None:
            pygame.display.quit()
            self.surface = None
        self.windows.clear()

    def _window(self, title: str) -> _Window:
        try:
            return self.windows[title]
        except KeyError:
            raise CameraViewError(f"Unknown window '{title}'") from None
