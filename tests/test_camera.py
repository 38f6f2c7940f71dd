import gc
import logging
import weakref

import numpy as np
import pytest

from Core.Exceptions import DecodeError, InvalidStateError, SpawnError
from Core.Sensors.Camera import (
    DEFAULT_GEOMETRY,
    CameraHandle,
    CameraState,
    Geometry,
    Resolution,
    decode_image,
    get_rgb_camera_blueprint,
    read_resolution,
)
from Core.Sensors.FrameBuffer import DropPolicy
from conftest import FakeBlueprintLibrary, FakeImage, FakeWorld, make_image


def make_camera(world, res=(64, 32), fov=60, **kwargs):
    bp = get_rgb_camera_blueprint(world.get_blueprint_library(), res[0], res[1], fov)
    return CameraHandle(bp, **kwargs)


def spawned_camera(world, **kwargs):
    cam = make_camera(world, **kwargs)
    cam.spawn(world.vehicle, world)
    cam.register_callback()
    return cam, world.sensors[-1]


def test_blueprint_gets_resolution_and_fov():
    bp = get_rgb_camera_blueprint(FakeBlueprintLibrary(), 1920, 1232, 60)
    assert bp.id == "sensor.camera.rgb"
    assert bp.attributes == {"image_size_x": "1920", "image_size_y": "1232", "fov": "60"}


def test_empty_blueprint_library_is_a_spawn_error():
    with pytest.raises(SpawnError):
        get_rgb_camera_blueprint(FakeBlueprintLibrary(empty=True), 1920, 1232, 60)


def test_resolution_is_read_back_from_the_simulator():
    library = FakeBlueprintLibrary(max_width=1280)
    bp = get_rgb_camera_blueprint(library, 1920, 1232, 60)
    assert read_resolution(bp) == Resolution(1280, 1232)
    assert CameraHandle(bp).resolution == Resolution(1280, 1232)


def test_new_camera_is_unspawned_with_default_mount(world):
    cam = make_camera(world)
    assert cam.id == -1
    assert cam.state is CameraState.CONFIGURED
    assert cam.geometry == DEFAULT_GEOMETRY
    assert cam.frame_buffer is None
    assert not cam.is_spawned


def test_spawn_attaches_to_vehicle_and_allocates_buffer(world):
    geo = Geometry(x=-2.0, z=1.5, yaw=180.0)
    cam = make_camera(world, geometry=geo)
    sensor_id = cam.spawn(world.vehicle, world)

    sensor = world.sensors[0]
    assert sensor_id == sensor.id == cam.id
    assert sensor.parent is world.vehicle
    assert sensor.transform == geo
    assert cam.vehicle_actor is world.vehicle
    assert cam.frame_buffer is not None and cam.frame_buffer.capacity == 200
    assert cam.state is CameraState.SPAWNED
    assert cam.window_name == f"VIB {sensor.id}"


def test_configure_applies_at_spawn(world):
    cam = make_camera(world)
    cam.configure(geometry=Geometry(x=1.0), resolution=(320, 240), fov=110)
    assert cam.resolution == Resolution(64, 32)

    cam.spawn(world.vehicle, world)
    bp = world.sensors[0].blueprint
    assert cam.resolution == Resolution(320, 240)
    assert bp.attributes["fov"] == "110.0"
    assert world.sensors[0].transform == Geometry(x=1.0)


def test_configure_after_spawn_is_rejected(world):
    cam, _ = spawned_camera(world)
    with pytest.raises(InvalidStateError):
        cam.configure(geometry=Geometry())
    cam.destroy()
    with pytest.raises(InvalidStateError):
        cam.configure(fov=90)


def test_simulator_rejection_is_a_spawn_error():
    world = FakeWorld(fail_on_spawn=0)
    cam = make_camera(world)
    with pytest.raises(SpawnError):
        cam.spawn(world.vehicle, world)
    assert cam.state is CameraState.CONFIGURED
    assert cam.frame_buffer is None
    assert cam.id == -1


def test_invalid_blueprint_attribute_is_a_spawn_error(world):
    cam = make_camera(world)
    cam._pending_attributes["no_such_attribute"] = 1
    with pytest.raises(SpawnError):
        cam.spawn(world.vehicle, world)


def test_spawn_on_dead_vehicle_fails(world):
    cam = make_camera(world)
    world.vehicle.is_alive = False
    with pytest.raises(SpawnError):
        cam.spawn(world.vehicle, world)
    with pytest.raises(SpawnError):
        cam.spawn(None, world)
    assert world.sensors == []


def test_spawn_twice_is_rejected(world):
    cam = make_camera(world)
    cam.spawn(world.vehicle, world)
    with pytest.raises(InvalidStateError):
        cam.spawn(world.vehicle, world)


def test_listening_requires_spawn(world):
    with pytest.raises(InvalidStateError):
        make_camera(world).register_callback()


def test_callback_decodes_and_enqueues(world):
    cam, sensor = spawned_camera(world)
    sensor.emit(FakeImage(64, 32, frame=7, timestamp=1.5, fill=9))
    sensor.emit(make_image(64, 32, frame=8))

    assert cam.frame_buffer.read_available() == 2
    frame = cam.frame_buffer.pop()
    assert frame.data.shape == (32, 64, 4)
    assert frame.data.dtype == np.uint8
    assert int(frame.data[0, 0, 0]) == 9
    assert (frame.width, frame.height, frame.pixel_format) == (64, 32, "BGRA")
    assert (frame.frame_number, frame.timestamp) == (7, 1.5)
    assert cam.frame_buffer.pop().frame_number == 8
    assert cam.frames_received == 2


def test_callback_honours_drop_policy(world):
    cam, sensor = spawned_camera(world, capacity=2, drop_policy=DropPolicy.OLDEST)
    for n in range(5):
        sensor.emit(make_image(64, 32, frame=n))
    assert [cam.frame_buffer.pop().frame_number for _ in range(2)] == [3, 4]
    assert cam.frame_buffer.dropped == 3


def test_null_payload_is_dropped_not_raised(world, caplog):
    cam, sensor = spawned_camera(world)
    with caplog.at_level(logging.WARNING):
        sensor.emit(None)
    assert cam.decode_failures == 1
    assert cam.frame_buffer.empty()
    assert cam.fault is None
    assert "dropped malformed frame" in caplog.text


def test_wrong_sized_payload_is_dropped(world):
    cam, sensor = spawned_camera(world)
    sensor.emit(FakeImage(64, 32, raw_data=b"\x00" * 100))
    sensor.emit(make_image(64, 32))
    assert cam.decode_failures == 1
    assert cam.frame_buffer.read_available() == 1


def test_strict_decode_reports_first_fault_once(world):
    faults = []
    cam = make_camera(world, strict_decode=True)
    cam.spawn(world.vehicle, world)
    cam.register_callback(on_fault=lambda c, err: faults.append((c, err)))
    sensor = world.sensors[0]

    sensor.emit(None)
    sensor.emit(None)

    assert len(faults) == 1
    assert faults[0][0] is cam
    assert isinstance(cam.fault, DecodeError)
    assert cam.decode_failures == 2


def test_destroy_tears_down_sensor_and_buffer(world):
    cam, sensor = spawned_camera(world)
    sensor.emit(make_image(64, 32))
    cam.destroy()

    assert cam.state is CameraState.DESTROYED
    assert (sensor.stop_calls, sensor.destroy_calls) == (1, 1)
    assert cam.frame_buffer is None
    assert cam.sensor is None
    assert not cam.is_spawned


def test_destroy_is_one_shot(world):
    cam, _ = spawned_camera(world)
    cam.destroy()
    with pytest.raises(InvalidStateError):
        cam.destroy()
    with pytest.raises(InvalidStateError):
        cam.spawn(world.vehicle, world)


def test_destroy_before_spawn_is_rejected(world):
    with pytest.raises(InvalidStateError):
        make_camera(world).destroy()


def test_late_tick_after_destroy_is_ignored(world):
    cam, sensor = spawned_camera(world)
    callback = sensor.callback
    cam.destroy()
    callback(make_image(64, 32))
    assert cam.frames_received == 0


def test_callback_does_not_keep_camera_alive(world):
    cam, sensor = spawned_camera(world)
    callback = sensor.callback
    frame_buffer = cam.frame_buffer
    cam_ref = weakref.ref(cam)
    del cam
    gc.collect()

    assert cam_ref() is None
    callback(make_image(64, 32))
    assert frame_buffer.empty()


def test_raising_fault_handler_stays_on_the_sensor_thread(world, caplog):
    def broken_handler(cam, err):
        raise RuntimeError("handler broke")

    cam = make_camera(world, strict_decode=True)
    cam.spawn(world.vehicle, world)
    cam.register_callback(on_fault=broken_handler)

    with caplog.at_level(logging.ERROR):
        world.sensors[0].emit(None)

    assert isinstance(cam.fault, DecodeError)
    assert "fault handler failed" in caplog.text
    world.sensors[0].emit(make_image(64, 32))
    assert cam.frame_buffer.read_available() == 1


def test_decode_image_rejects_unreadable_payloads():
    with pytest.raises(DecodeError):
        decode_image(None, Resolution(2, 2))
    with pytest.raises(DecodeError):
        decode_image(object(), Resolution(2, 2))
    with pytest.raises(DecodeError):
        decode_image(FakeImage(2, 2, raw_data=b"\x00" * 15), Resolution(2, 2))


def test_decoded_frame_owns_its_pixels():
    raw = bytearray(2 * 2 * 4)
    frame = decode_image(FakeImage(2, 2, raw_data=raw), Resolution(2, 2))
    raw[0] = 255
    assert int(frame.data[0, 0, 0]) == 0


def test_geometry_from_dict():
    assert Geometry.from_dict({"x": 1, "yaw": "90"}) == Geometry(x=1.0, yaw=90.0)
    with pytest.raises(ValueError):
        Geometry.from_dict({"x": 1, "heading": 3})
