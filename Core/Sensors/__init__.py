# ============================================================================
# PERF CHECK (file-level):
# ============================================================================
# [X] | Role: Package __init__ (imports, helper functions, NOT in hot path)
# [ ] | Hot-path functions: None (import-time + utility functions)
# [ ] |- Heavy allocs in hot path? N/A - import-time only
# [ ] |- pandas/pyarrow/json/disk/net in hot path? No
# [ ] | Graphics here? No
# [ ] | Data produced (tick schema?): None
# [ ] | Storage (Parquet/Arrow/CSV/none): None
# [ ] | Queue/buffer used?: No
# [ ] | Session-aware? No
# [ ] | Debug-only heavy features?: None
# ============================================================================

"""
CameraView Sensor Package
=========================

Wrappers that turn raw CARLA RGB camera ticks into Frames the display loop
can consume.

Architecture:
- The CARLA client thread calls CameraHandle's listener for every sensor tick
- The listener decodes the BGRA payload and pushes it into the camera's FrameBuffer
- The display loop pops from each FrameBuffer on the main thread

Key Components:
- FrameBuffer / Frame / DropPolicy: bounded SPSC hand-off
- CameraHandle / Geometry / Resolution: one camera and its mount
- MountPresets: named mount positions (front, rear, left, right)
"""

__version__ = "1.0.0"

from .FrameBuffer import (
    FRAME_BUFFER_CAPACITY,
    DropPolicy,
    Frame,
    FrameBuffer,
)

from .Camera import (
    DEFAULT_GEOMETRY,
    RGB_CAMERA_BLUEPRINT,
    CameraHandle,
    CameraState,
    Geometry,
    Resolution,
    decode_image,
    get_rgb_camera_blueprint,
    read_resolution,
)

from .MountPresets import BUILTIN_PRESETS, MountPresets

__all__ = [
    # Buffers
    'FRAME_BUFFER_CAPACITY',
    'DropPolicy',
    'Frame',
    'FrameBuffer',

    # Cameras
    'DEFAULT_GEOMETRY',
    'RGB_CAMERA_BLUEPRINT',
    'CameraHandle',
    'CameraState',
    'Geometry',
    'Resolution',
    'decode_image',
    'get_rgb_camera_blueprint',
    'read_resolution',

    # Mounts
    'BUILTIN_PRESETS',
    'MountPresets',
]

SENSOR_DEFAULTS = {
    'camera': {
        'blueprint': RGB_CAMERA_BLUEPRINT,
        'pixel_format': 'BGRA',
        'resolution': (1920, 1232),
        'fov': 60.0,
    },
    'frame_buffer': {
        'capacity': FRAME_BUFFER_CAPACITY,
        'drop_policy': DropPolicy.NEWEST,
    },
}
