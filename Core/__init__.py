"""
CameraView Core Package
=======================

Subpackages:
- Sensors: RGB camera wrappers, frame buffers and mount presets
- Display: tile layout, pygame display surface and the display loop
"""

__version__ = "1.0.0"

from .Exceptions import (
    ActorNotFoundError,
    CameraViewError,
    DecodeError,
    InvalidStateError,
    LayoutError,
    MountConfigError,
    SimulatorConnectionError,
    SpawnError,
)

__all__ = [
    'ActorNotFoundError', 'CameraViewError', 'DecodeError', 'InvalidStateError',
    'LayoutError', 'MountConfigError', 'SimulatorConnectionError', 'SpawnError',
]
