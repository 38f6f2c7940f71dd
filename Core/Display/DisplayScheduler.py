# ============================================================================
# PERF CHECK (file-level):
# ============================================================================
# [X] | Role: Main display loop, shutdown signalling, keyboard monitor
# [X] | Hot-path functions: sweep() runs back-to-back until shutdown
# [ ] |- Heavy allocs in hot path? No (rendering cost lives in the display)
# [ ] |- pandas/pyarrow/json/disk/net in hot path? No - no simulator RPC in sweep()
# [X] | Graphics here? Delegated to the display surface
# [ ] | Data produced (tick schema?): None
# [ ] | Storage (Parquet/Arrow/CSV/none): None
# [X] | Queue/buffer used?: YES - consumer side of every camera FrameBuffer
# [ ] | Session-aware? No
# [ ] | Debug-only heavy features?: None
# Top 3 perf risks:
# 1. [PERF_HOT] Uncapped loop spins a core when no camera delivers (use --fps)
# 2. [PERF_OK] One pop per camera per sweep, no cross-camera barrier
# 3. [PERF_OK] Teardown RPCs only after the loop exits
# ============================================================================

import logging
import sys
import threading
import time
from enum import Enum, auto
from typing import List, Optional, Sequence

from Core.Display.TilingLayout import Tile


class SchedulerState(Enum):
    RUNNING = auto()
    STOPPING = auto()
    TERMINATED = auto()


class ShutdownSignal(object):
    """Process-wide cooperative cancellation flag, safe to set from any thread."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason = None

    def request(self, reason: str = "requested"):
        with self._lock:
            if self.reason is None:
                self.reason = reason
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class KeyboardMonitor(threading.Thread):
    """Reads the terminal one character at a time and requests shutdown on the quit key."""

    def __init__(self, shutdown: ShutdownSignal, stream=None, quit_key: str = "q"):
        super().__init__(name="keyboard-monitor", daemon=True)
        self.shutdown = shutdown
        self.stream = stream if stream is not None else sys.stdin
        self.quit_key = quit_key

    def run(self):
        while not self.shutdown.is_set():
            try:
                ch = self.stream.read(1)
            except (OSError, ValueError) as e:
                logging.debug(f"[Keyboard] input stream closed: {e}")
                return
            if ch == "":
                # no terminal attached (EOF); the window can still quit
                logging.debug("[Keyboard] EOF on input, monitor stopped")
                return
            if ch == self.quit_key:
                logging.info(f"⌨️ '{self.quit_key}' received, shutting down")
                self.shutdown.request("keyboard")


class DisplayScheduler(object):
    """
    Polls every camera's FrameBuffer and renders whatever is there.

    Each sweep pops at most one frame per camera. Cameras are independent:
    a camera with nothing queued is skipped, it never delays the others.
    When the shutdown signal is set the current sweep finishes, every spawned
    camera is destroyed exactly once and the scheduler ends TERMINATED.
    """

    def __init__(self, cameras: Sequence, display, shutdown: ShutdownSignal, tiles: Sequence[Tile],
                 poll_timeout_ms: int = 1, max_fps: float = 0.0):
        if len(tiles) < len(cameras):
            raise ValueError(f"{len(cameras)} cameras but only {len(tiles)} tiles")
        self.cameras = list(cameras)
        self.display = display
        self.shutdown = shutdown
        self.tiles = list(tiles)
        self.poll_timeout_ms = poll_timeout_ms
        self.min_period = 1.0 / max_fps if max_fps and max_fps > 0 else 0.0
        self.state = SchedulerState.RUNNING
        self.sweeps = 0
        self.frames_rendered = [0] * len(self.cameras)

    def open_windows(self):
        for cam, tile in zip(self.cameras, self.tiles):
            self.display.create_window(cam.window_name, cam.resolution)
            self.display.move_window(cam.window_name, tile.x, tile.y)
            logging.info(f"> Window {cam.window_name} at ({tile.x}, {tile.y})")

    def sweep(self) -> int:
        """One best-effort pass over all cameras. Returns how many frames were rendered."""
        rendered = 0
        for idx, cam in enumerate(self.cameras):
            frame_buffer = cam.frame_buffer
            if frame_buffer is None:
                continue
            frame = frame_buffer.pop()
            if frame is None:
                continue
            self.display.show_image(cam.window_name, frame)
            self.frames_rendered[idx] += 1
            rendered += 1
        if rendered:
            self.display.present()
        if self.display.poll_input(self.poll_timeout_ms):
            self.shutdown.request("window")
        self.sweeps += 1
        return rendered

    def run(self):
        """Loop until shutdown, then tear every camera down. Returns the final state."""
        logging.info(f"🎥 Display loop running with {len(self.cameras)} cameras (press 'q' to quit)")
        try:
            while not self.shutdown.is_set():
                started = time.perf_counter()
                self.sweep()
                if self.min_period:
                    remaining = self.min_period - (time.perf_counter() - started)
                    if remaining > 0:
                        self.shutdown.wait(remaining)
        except KeyboardInterrupt:
            self.shutdown.request("interrupt")
        finally:
            self.state = SchedulerState.STOPPING
            logging.info(f"Display loop stopping ({self.shutdown.reason or 'error'}) after {self.sweeps} sweeps")
            self.destroy_cameras()
            self.state = SchedulerState.TERMINATED
        return self.state

    def destroy_cameras(self) -> List:
        """Destroy every spawned camera once. Returns cameras whose teardown failed."""
        failed = []
        for cam in self.cameras:
            if not cam.is_spawned:
                continue
            try:
                cam.destroy()
            except Exception as e:
                logging.error(f"[cleanup] camera {cam.id} destroy failed: {e}")
                failed.append(cam)
        return failed
