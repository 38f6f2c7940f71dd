"""
-----------------------------
### TilingLayout.py
-----------------------------
Description:

Fits N equally sized camera feeds onto a fixed physical canvas. The canvas
defaults to the IPG Video Interface Box, which takes four 1920x1232 feeds side
by side (7680x1232). Tiles are handed out row-major, left to right then top to
bottom.
"""

import logging
from typing import List, NamedTuple, Tuple

from Core.Exceptions import LayoutError

# IPG Video Interface Box maximum resolution for 4 cameras
VIB_RES_X = 7680
VIB_RES_Y = 1232


class TileGrid(NamedTuple):
    max_horizontal: int
    max_vertical: int
    max_cameras: int


class Tile(NamedTuple):
    x: int
    y: int


def parse_resolution(text: str) -> Tuple[int, int]:
    """'WIDTHxHEIGHT' -> (width, height)."""
    try:
        w, h = [int(v) for v in str(text).lower().split("x")]
    except ValueError:
        raise ValueError(f"Resolution must look like WIDTHxHEIGHT, got '{text}'") from None
    if w <= 0 or h <= 0:
        raise ValueError(f"Resolution must be positive, got '{text}'")
    return w, h


def compute_grid(canvas, camera) -> TileGrid:
    """How many camera tiles of size camera fit on canvas, per axis and in total."""
    canvas_w, canvas_h = canvas
    cam_w, cam_h = camera
    if cam_w <= 0 or cam_h <= 0:
        raise LayoutError(f"Camera resolution must be positive, got {cam_w}x{cam_h}")
    max_horizontal = canvas_w // cam_w
    max_vertical = canvas_h // cam_h
    return TileGrid(max_horizontal, max_vertical, max_horizontal * max_vertical)


def assign_tiles(grid: TileGrid, camera, count: int) -> List[Tile]:
    """Row-major tile origins for the first min(count, max_cameras) cameras."""
    cam_w, cam_h = camera
    placed = min(max(0, count), grid.max_cameras)
    return [
        Tile((k % grid.max_horizontal) * cam_w, (k // grid.max_horizontal) * cam_h)
        for k in range(placed)
    ]


def resolve_camera_count(grid: TileGrid, requested: int, use_max: bool = False) -> int:
    """
    Number of cameras to deploy. use_max takes the whole grid; otherwise the
    request is capped at the grid capacity so every camera owns a tile.
    """
    if grid.max_cameras < 1:
        raise LayoutError(
            f"Canvas fits {grid.max_horizontal}x{grid.max_vertical} tiles, "
            "camera resolution is larger than the canvas"
        )
    if use_max:
        return grid.max_cameras
    if requested < 1:
        raise LayoutError(f"Need at least one camera, got {requested}")
    if requested > grid.max_cameras:
        logging.warning(
            f"Requested {requested} cameras but the canvas only has {grid.max_cameras} tiles; "
            f"deploying {grid.max_cameras}"
        )
        return grid.max_cameras
    return requested


def canvas_extent(tiles: List[Tile], camera) -> Tuple[int, int]:
    """Pixel size of the region the tiles cover."""
    if not tiles:
        return 0, 0
    cam_w, cam_h = camera
    return max(t.x for t in tiles) + cam_w, max(t.y for t in tiles) + cam_h
