# MountPresets.py
import os
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from Core.Exceptions import MountConfigError
from Core.Sensors.Camera import DEFAULT_GEOMETRY, Geometry

ENV_VAR = "CAMERA_MOUNTS_PATH"
QUAD_CAMERA_COUNT = 4

# Mount positions measured on the ego vehicle (x, y, z / pitch, yaw, roll)
BUILTIN_PRESETS: Dict[str, Geometry] = {
    "front": DEFAULT_GEOMETRY,
    "rear": Geometry(x=-2.0, y=0.0, z=1.5, pitch=9.08, yaw=180.0, roll=-0.68),
    "left": Geometry(x=0.7, y=-0.75, z=1.5, pitch=3.4, yaw=-93.5, roll=0.7),
    "right": Geometry(x=0.7, y=0.75, z=1.5, pitch=1.45, yaw=90.0, roll=-0.4),
}


@dataclass
class MountPresets:
    presets: Dict[str, Geometry] = field(default_factory=lambda: dict(BUILTIN_PRESETS))
    quad_order: List[str] = field(default_factory=lambda: ["front", "rear", "left", "right"])
    default: str = "front"

    def __post_init__(self):
        missing = [n for n in self.quad_order + [self.default] if n not in self.presets]
        if missing:
            raise MountConfigError(f"Mount presets reference unknown names: {missing}")
        if len(self.quad_order) != QUAD_CAMERA_COUNT:
            raise MountConfigError(f"quad_order needs {QUAD_CAMERA_COUNT} entries, got {len(self.quad_order)}")

    @classmethod
    def from_dict(cls, d) -> "MountPresets":
        """Builtin presets overlaid with the ones in d."""
        presets = dict(BUILTIN_PRESETS)
        kwargs = {"presets": presets}
        try:
            for name, geo in (d.get("presets") or {}).items():
                presets[str(name)] = Geometry.from_dict(geo)
            if "quad_order" in d:
                if not isinstance(d["quad_order"], list):
                    raise TypeError(f"quad_order must be a list, got {type(d['quad_order']).__name__}")
                kwargs["quad_order"] = [str(n) for n in d["quad_order"]]
            if "default" in d:
                kwargs["default"] = str(d["default"])
        except (AttributeError, TypeError, ValueError) as e:
            raise MountConfigError(f"Bad mount config entry: {e}") from e
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "MountPresets":
        """
        Resolve the preset file: explicit path, then $CAMERA_MOUNTS_PATH, then
        the builtin table.
        """
        path = path or os.environ.get(ENV_VAR, "")
        if not path:
            return cls()
        if not os.path.isfile(path):
            raise MountConfigError(f"Mount config not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise MountConfigError(f"Failed reading mount config {path}: {e}") from e
        if not isinstance(raw, dict):
            raise MountConfigError(f"Mount config {path} must be a JSON object")
        presets = cls.from_dict(raw)
        logging.info(f"[MountPresets] loaded {len(presets.presets)} presets from {os.path.basename(path)}")
        return presets

    def get(self, name: str) -> Geometry:
        try:
            return self.presets[name]
        except KeyError:
            raise MountConfigError(f"Unknown mount preset '{name}'") from None

    def geometries_for(self, num_cameras: int) -> List[Geometry]:
        """
        Four cameras get the surround set (front, rear, left, right); any
        other count gets that many cameras on the default mount.
        """
        if num_cameras == QUAD_CAMERA_COUNT:
            return [self.presets[name] for name in self.quad_order]
        return [self.presets[self.default]] * max(0, num_cameras)
