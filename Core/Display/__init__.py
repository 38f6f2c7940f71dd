"""Tiled multi-camera display: layout math, pygame surface and the polling loop."""

from .TilingLayout import (
    VIB_RES_X,
    VIB_RES_Y,
    Tile,
    TileGrid,
    assign_tiles,
    canvas_extent,
    compute_grid,
    parse_resolution,
    resolve_camera_count,
)
from .DisplayScheduler import DisplayScheduler, KeyboardMonitor, SchedulerState, ShutdownSignal

__all__ = [
    'VIB_RES_X', 'VIB_RES_Y', 'Tile', 'TileGrid', 'assign_tiles', 'canvas_extent',
    'compute_grid', 'parse_resolution', 'resolve_camera_count',
    'DisplayScheduler', 'KeyboardMonitor', 'SchedulerState', 'ShutdownSignal',
]
