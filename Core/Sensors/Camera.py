# ============================================================================
# PERF CHECK (file-level):
# ============================================================================
# [X] | Role: RGB camera wrapper (blueprint config, spawn, callback, teardown)
# [X] | Hot-path functions: _on_image() runs on the CARLA sensor thread every tick
# [X] |- Heavy allocs in hot path? One frame copy per tick (raw_data is reused by CARLA)
# [ ] |- pandas/pyarrow/json/disk/net in hot path? No
# [ ] | Graphics here? No
# [X] | Data produced (tick schema?): Frame -> FrameBuffer
# [ ] | Storage (Parquet/Arrow/CSV/none): None
# [X] | Queue/buffer used?: YES - one FrameBuffer per camera
# [ ] | Session-aware? No
# [ ] | Debug-only heavy features?: None
# Top 3 perf risks:
# 1. [PERF_HOT] _on_image must never block or raise into the CARLA client thread
# 2. [PERF_OK] Decode failures after the first one log at DEBUG only
# 3. [PERF_OK] spawn()/destroy() RPCs happen outside the display loop
# ============================================================================

import logging
import weakref
from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple, Optional

import numpy as np

from Core.Exceptions import DecodeError, InvalidStateError, SpawnError
from Core.Sensors.FrameBuffer import FRAME_BUFFER_CAPACITY, DropPolicy, Frame, FrameBuffer

RGB_CAMERA_BLUEPRINT = "sensor.camera.rgb"
BGRA_CHANNELS = 4


class Resolution(NamedTuple):
    width: int
    height: int

    def __str__(self):
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Geometry:
    """Camera mount position relative to the vehicle frame (meters / degrees)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0

    @classmethod
    def from_dict(cls, d) -> "Geometry":
        known = ("x", "y", "z", "pitch", "yaw", "roll")
        unknown = set(d) - set(known)
        if unknown:
            raise ValueError(f"unknown geometry keys: {sorted(unknown)}")
        return cls(**{k: float(d.get(k, 0.0)) for k in known})

    def to_transform(self):
        # carla is only needed once a camera is actually placed in a world
        import carla

        return carla.Transform(
            carla.Location(x=self.x, y=self.y, z=self.z),
            carla.Rotation(pitch=self.pitch, yaw=self.yaw, roll=self.roll),
        )


# Hood camera used whenever no preset is requested
DEFAULT_GEOMETRY = Geometry(x=2.0, y=0.0, z=1.4, pitch=-0.73, yaw=0.46, roll=-0.22)


class CameraState(Enum):
    CONFIGURED = auto()
    SPAWNED = auto()
    DESTROYED = auto()


def get_rgb_camera_blueprint(blueprint_library, res_x, res_y, fov):
    """First sensor.camera.rgb blueprint with resolution and field of view applied."""
    candidates = blueprint_library.filter(RGB_CAMERA_BLUEPRINT)
    if len(candidates) == 0:
        raise SpawnError(f"Blueprint library has no '{RGB_CAMERA_BLUEPRINT}'")
    blueprint = candidates[0]
    blueprint.set_attribute("image_size_x", str(res_x))
    blueprint.set_attribute("image_size_y", str(res_y))
    blueprint.set_attribute("fov", str(fov))
    return blueprint


def read_resolution(blueprint) -> Resolution:
    """The simulator may clamp attributes, so always ask the blueprint."""
    return Resolution(
        int(blueprint.get_attribute("image_size_x").as_int()),
        int(blueprint.get_attribute("image_size_y").as_int()),
    )


def decode_image(image, resolution: Resolution) -> Frame:
    """Interpret a carla.Image payload as a dense BGRA frame of the given resolution."""
    if image is None:
        raise DecodeError("empty sensor payload")
    try:
        buf = np.frombuffer(image.raw_data, dtype=np.uint8)
    except (AttributeError, TypeError, ValueError) as e:
        raise DecodeError(f"unreadable sensor payload: {e}") from e

    expected = resolution.width * resolution.height * BGRA_CHANNELS
    if buf.size != expected:
        raise DecodeError(f"payload has {buf.size} bytes, expected {expected} for {resolution} BGRA")

    # raw_data belongs to the CARLA image, copy before it is recycled
    data = buf.reshape((resolution.height, resolution.width, BGRA_CHANNELS)).copy()
    return Frame(
        data=data,
        width=resolution.width,
        height=resolution.height,
        pixel_format="BGRA",
        frame_number=int(getattr(image, "frame", -1)),
        timestamp=float(getattr(image, "timestamp", 0.0)),
    )


class CameraHandle(object):
    """
    One virtual RGB camera attached to a vehicle.

    Lifecycle is one-shot: CONFIGURED -> SPAWNED -> DESTROYED. The FrameBuffer
    exists only while the camera is spawned and is released on destroy().
    """

    def __init__(
        self,
        blueprint,
        geometry: Optional[Geometry] = None,
        drop_policy: DropPolicy = DropPolicy.NEWEST,
        capacity: int = FRAME_BUFFER_CAPACITY,
        strict_decode: bool = False,
    ):
        self.id = -1
        self.blueprint = blueprint
        self.geometry = geometry or DEFAULT_GEOMETRY
        self.resolution = read_resolution(blueprint)
        self.fov = None
        self.vehicle_actor = None  # owned by the simulator, never destroyed here
        self.sensor = None
        self.frame_buffer = None
        self.state = CameraState.CONFIGURED

        self.drop_policy = drop_policy
        self.capacity = capacity
        self.strict_decode = strict_decode
        self.frames_received = 0
        self.decode_failures = 0
        self.fault = None

        self._pending_attributes = {}
        self._on_fault = None

    @property
    def window_name(self) -> str:
        return f"VIB {self.id}"

    @property
    def is_spawned(self) -> bool:
        return self.state is CameraState.SPAWNED

    def configure(self, geometry: Optional[Geometry] = None, resolution=None, fov=None):
        """Change mount position, resolution or field of view before spawning."""
        if self.state is not CameraState.CONFIGURED:
            raise InvalidStateError(f"Cannot configure camera {self.id} in state {self.state.name}")
        if geometry is not None:
            self.geometry = geometry
        if resolution is not None:
            width, height = resolution
            self._pending_attributes["image_size_x"] = int(width)
            self._pending_attributes["image_size_y"] = int(height)
        if fov is not None:
            self._pending_attributes["fov"] = float(fov)
            self.fov = float(fov)

    def spawn(self, vehicle_actor, world) -> int:
        """Place the sensor on the vehicle and allocate its FrameBuffer. Returns the sensor id."""
        if self.state is not CameraState.CONFIGURED:
            raise InvalidStateError(f"Camera {self.id} cannot be spawned in state {self.state.name}")
        if vehicle_actor is None or not getattr(vehicle_actor, "is_alive", True):
            raise SpawnError("Vehicle actor is gone, cannot attach camera")

        try:
            for name, value in self._pending_attributes.items():
                self.blueprint.set_attribute(name, str(value))
            self._pending_attributes.clear()
            self.resolution = read_resolution(self.blueprint)
            sensor = world.spawn_actor(self.blueprint, self.geometry.to_transform(), attach_to=vehicle_actor)
        except (RuntimeError, IndexError, ValueError) as e:
            raise SpawnError(f"Simulator rejected camera at {self.geometry}: {e}") from e

        if sensor is None:
            raise SpawnError(f"Simulator returned no actor for camera at {self.geometry}")

        self.sensor = sensor
        self.vehicle_actor = vehicle_actor
        self.id = int(sensor.id)
        self.frame_buffer = FrameBuffer(self.capacity, self.drop_policy)
        self.state = CameraState.SPAWNED
        return self.id

    def register_callback(self, on_fault=None):
        """
        Start listening. The handler runs on the CARLA client thread: it decodes
        the image and pushes it, nothing else. on_fault(camera, error) is called
        once on the first decode failure when strict_decode is set.
        """
        if self.state is not CameraState.SPAWNED:
            raise InvalidStateError(f"Camera {self.id} must be spawned before listening")
        self._on_fault = on_fault
        weak_self = weakref.ref(self)
        self.sensor.listen(lambda image: CameraHandle._on_image(weak_self, image))

    @staticmethod
    def _on_image(weak_self, image):
        self = weak_self()
        if not self:
            return
        frame_buffer = self.frame_buffer
        if frame_buffer is None:
            return
        try:
            frame = decode_image(image, self.resolution)
        except DecodeError as e:
            self._handle_decode_failure(e)
            return

        self.frames_received += 1
        if self.frames_received == 1:
            logging.info(f"[Camera] first frame -> {self.window_name} {frame.width}x{frame.height}")
        frame_buffer.push(frame)

    def _handle_decode_failure(self, error: DecodeError):
        self.decode_failures += 1
        if self.strict_decode:
            if self.fault is None:
                self.fault = error
                logging.error(f"[Camera] {self.window_name} decode failure, stopping: {error}")
                if self._on_fault:
                    try:
                        self._on_fault(self, error)
                    except Exception:
                        # runs on the CARLA client thread, nothing may escape
                        logging.exception(f"[Camera] {self.window_name} fault handler failed")
            return
        if self.decode_failures == 1:
            logging.warning(f"[Camera] {self.window_name} dropped malformed frame: {error}")
        else:
            logging.debug(f"[Camera] {self.window_name} dropped malformed frame #{self.decode_failures}: {error}")

    def destroy(self):
        """Tear the sensor down in the simulator. Valid exactly once, after spawn."""
        if self.state is CameraState.CONFIGURED:
            raise InvalidStateError("Camera was never spawned")
        if self.state is CameraState.DESTROYED:
            raise InvalidStateError(f"Camera {self.id} already destroyed")

        self.state = CameraState.DESTROYED
        sensor, frame_buffer = self.sensor, self.frame_buffer
        self.sensor, self.frame_buffer = None, None
        try:
            sensor.stop()
            if not sensor.destroy():
                logging.warning(f"[Camera] simulator reported failure destroying camera {self.id}")
        finally:
            leftover = frame_buffer.clear()
            logging.debug(f"[Camera] {self.window_name}: released {leftover} queued frames, "
                          f"{frame_buffer.dropped} overflow drops, {self.decode_failures} decode failures")
        logging.info(f"> Camera ID {self.id} destroyed.")

    def __repr__(self):
        return f"CameraHandle(id={self.id}, state={self.state.name}, resolution={self.resolution}, geometry={self.geometry})"
