"""
Error taxonomy for the CameraView client.

Everything raised on purpose by this package derives from CameraViewError so
Main.py can map it onto an exit code.
"""


class CameraViewError(Exception):
    """Base class for all CameraView failures."""


class SimulatorConnectionError(CameraViewError, ConnectionError):
    """CARLA server unreachable or the handshake timed out."""


class ActorNotFoundError(CameraViewError):
    """The configured vehicle id does not exist in the simulation."""

    def __init__(self, actor_id):
        super().__init__(f"Actor {actor_id} not found in the simulation")
        self.actor_id = actor_id


class SpawnError(CameraViewError):
    """The simulator rejected a camera placement."""


class DecodeError(CameraViewError):
    """A sensor payload could not be turned into a Frame."""


class InvalidStateError(CameraViewError):
    """Operation not allowed in the camera's current lifecycle state."""


class LayoutError(CameraViewError):
    """The canvas cannot host a single camera tile."""


class MountConfigError(CameraViewError):
    """A mount preset file is missing or malformed."""
