"""Stand-ins for the CARLA client objects and the display surface."""

import itertools

import numpy as np
import pytest

from Core.Sensors.Camera import Geometry


class FakeAttribute:
    def __init__(self, value):
        self.value = value

    def as_int(self):
        return int(float(self.value))


class FakeBlueprint:
    def __init__(self, blueprint_id="sensor.camera.rgb", max_width=None):
        self.id = blueprint_id
        self.max_width = max_width
        self.attributes = {"image_size_x": "800", "image_size_y": "600", "fov": "90"}

    def set_attribute(self, name, value):
        assert isinstance(value, str), "CARLA blueprint attributes are strings"
        if name not in self.attributes:
            raise IndexError(f"blueprint '{self.id}' has no attribute '{name}'")
        if name == "image_size_x" and self.max_width is not None:
            value = str(min(int(value), self.max_width))
        self.attributes[name] = value

    def get_attribute(self, name):
        return FakeAttribute(self.attributes[name])


class FakeBlueprintLibrary:
    def __init__(self, max_width=None, empty=False):
        self.max_width = max_width
        self.empty = empty

    def filter(self, pattern):
        if self.empty:
            return []
        return [FakeBlueprint(pattern, max_width=self.max_width)]


class FakeSensor:
    def __init__(self, actor_id, blueprint, transform, parent):
        self.id = actor_id
        self.blueprint = blueprint
        self.transform = transform
        self.parent = parent
        self.callback = None
        self.stop_calls = 0
        self.destroy_calls = 0
        self.fail_stop = False

    def listen(self, callback):
        self.callback = callback

    def stop(self):
        self.stop_calls += 1
        if self.fail_stop:
            raise RuntimeError("sensor already gone")
        self.callback = None

    def destroy(self):
        self.destroy_calls += 1
        return True

    def emit(self, image):
        """What the CARLA client thread does on every sensor tick."""
        if self.callback is not None:
            self.callback(image)


class FakeVehicle:
    def __init__(self, actor_id=86, type_id="vehicle.lincoln.mkz_2020"):
        self.id = actor_id
        self.type_id = type_id
        self.is_alive = True


class FakeWorld:
    def __init__(self, vehicle=None, max_width=None, fail_on_spawn=None):
        self.vehicle = vehicle if vehicle is not None else FakeVehicle()
        self.library = FakeBlueprintLibrary(max_width=max_width)
        self.fail_on_spawn = fail_on_spawn
        self.sensors = []
        self._ids = itertools.count(100)

    def get_blueprint_library(self):
        return self.library

    def get_actor(self, actor_id):
        if self.vehicle is not None and self.vehicle.id == actor_id:
            return self.vehicle
        return None

    def spawn_actor(self, blueprint, transform, attach_to=None):
        if self.fail_on_spawn is not None and len(self.sensors) == self.fail_on_spawn:
            raise RuntimeError("Spawn failed because of collision at spawn position")
        sensor = FakeSensor(next(self._ids), blueprint, transform, attach_to)
        self.sensors.append(sensor)
        return sensor


class FakeImage:
    def __init__(self, width, height, frame=1, timestamp=0.05, fill=0, raw_data=None):
        self.width = width
        self.height = height
        self.frame = frame
        self.timestamp = timestamp
        if raw_data is None:
            raw_data = bytes([fill % 256]) * (width * height * 4)
        self.raw_data = raw_data


class FakeDisplay:
    """Records every call; asks to quit after quit_after polls (None = never)."""

    def __init__(self, quit_after=None, on_poll=None):
        self.quit_after = quit_after
        self.on_poll = on_poll
        self.opened_size = None
        self.windows = {}
        self.shown = []
        self.presents = 0
        self.polls = 0
        self.closed = False

    def open(self, size):
        self.opened_size = tuple(size)

    def create_window(self, title, size):
        self.windows[title] = {"size": tuple(size), "position": None}

    def move_window(self, title, x, y):
        self.windows[title]["position"] = (x, y)

    def show_image(self, title, frame):
        self.shown.append((title, frame))

    def present(self):
        self.presents += 1

    def poll_input(self, timeout_ms=0):
        self.polls += 1
        if self.on_poll is not None:
            self.on_poll(self.polls)
        return self.quit_after is not None and self.polls >= self.quit_after

    def close(self):
        self.closed = True


def make_image(width, height, frame=1, fill=0):
    return FakeImage(width, height, frame=frame, fill=fill)


def make_frame_data(width=4, height=2, fill=0):
    return np.full((height, width, 4), fill, dtype=np.uint8)


@pytest.fixture(autouse=True)
def transforms_without_carla(monkeypatch):
    """Keep Geometry as its own transform so no CARLA client is needed."""
    monkeypatch.setattr(Geometry, "to_transform", lambda self: self)


@pytest.fixture
def world():
    return FakeWorld()


@pytest.fixture
def vehicle(world):
    return world.vehicle
