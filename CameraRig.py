import logging
from typing import List, Optional

from Core.Exceptions import SpawnError
from Core.Sensors import (
    SENSOR_DEFAULTS,
    CameraHandle,
    MountPresets,
    get_rgb_camera_blueprint,
)


def get_actor_display_name(actor):
    """'Actor 86 (vehicle.lincoln.mkz_2020)' style label for log lines."""
    if not actor:
        return "N/A"
    return f"Actor {actor.id} ({getattr(actor, 'type_id', 'unknown')})"


class CameraRig(object):
    """
    The set of cameras mounted on one vehicle. Builds them from mount presets,
    spawns them one by one and tears down whatever was spawned.
    """

    def __init__(self, world, vehicle_actor, res_x, res_y, fov, presets: MountPresets = None,
                 drop_policy=None, strict_decode=False, capacity=None):
        buffer_defaults = SENSOR_DEFAULTS["frame_buffer"]
        self.world = world
        self.vehicle_actor = vehicle_actor
        self.blueprint_library = world.get_blueprint_library()
        self.res_x, self.res_y, self.fov = res_x, res_y, fov
        self.presets = presets or MountPresets()
        self.drop_policy = drop_policy or buffer_defaults["drop_policy"]
        self.strict_decode = strict_decode
        self.capacity = capacity or buffer_defaults["capacity"]
        self.cameras: List[CameraHandle] = []

    def build(self, num_cameras: int, requested: Optional[int] = None) -> List[CameraHandle]:
        """
        Create (not spawn) num_cameras cameras, each with its own blueprint copy.
        Mounts follow the requested count, so a request capped to fit the canvas
        keeps the mounts that were asked for.
        """
        requested = num_cameras if requested is None else requested
        self.cameras = []
        for geometry in self.presets.geometries_for(requested)[:num_cameras]:
            blueprint = get_rgb_camera_blueprint(self.blueprint_library, self.res_x, self.res_y, self.fov)
            self.cameras.append(CameraHandle(
                blueprint,
                geometry,
                drop_policy=self.drop_policy,
                capacity=self.capacity,
                strict_decode=self.strict_decode,
            ))
        if requested == len(self.presets.quad_order) and num_cameras == requested:
            logging.info(f"> Surround cameras created: {', '.join(self.presets.quad_order)}")
        else:
            logging.info(f"> {len(self.cameras)} camera(s) created")
        return self.cameras

    def spawn_all(self, on_fault=None):
        """
        Spawn and start every camera. Any spawn failure is fatal: cameras that
        already made it into the world are destroyed before the error propagates.
        """
        vehicle_name = get_actor_display_name(self.vehicle_actor)
        try:
            for cam in self.cameras:
                cam.spawn(self.vehicle_actor, self.world)
                logging.info(f"> Camera spawned | Cam-ID: {cam.id} | Vehicle: {vehicle_name}")
                cam.register_callback(on_fault)
                logging.debug(f"> Callback registered for camera {cam.id}")
        except SpawnError:
            logging.error("Camera spawn failed, removing cameras already placed")
            self.destroy_all()
            raise

    def destroy_all(self) -> int:
        destroyed = 0
        for cam in self.cameras:
            if not cam.is_spawned:
                continue
            try:
                cam.destroy()
                destroyed += 1
            except Exception as e:
                logging.warning(f"[cleanup] camera {cam.id} destroy warning: {e}")
        return destroyed

    @property
    def faults(self):
        return [(cam, cam.fault) for cam in self.cameras if cam.fault is not None]
