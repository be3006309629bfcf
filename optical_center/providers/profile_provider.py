from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from optical_center.types import (
    ActiveArray,
    CameraCharacteristics,
    CameraDescriptor,
    ConfigurationError,
    ICameraCatalog,
)

logger = logging.getLogger(__name__)


class ProfileCameraCatalog(ICameraCatalog):
    """
    Camera catalog backed by a device profile (YAML), e.g.

        cameras:              # what enumeration returns
          - id: "0"
            facing: back
            logical: true
            physical_ids: ["2", "3"]
            active_array: [0, 0, 4000, 3000]
            sensor_orientation: 90
        physical:             # reachable only through a logical camera
          - id: "2"
            facing: back
            active_array: [0, 0, 4000, 3000]
            intrinsic_calibration: [3100.0, 3100.0, 1980.0, 1510.0, 0.0]
            sensor_orientation: 90
            lens_pose_rotation: [0.0, 0.0, 0.0, 1.0]
    """
    def __init__(self, cameras: List[Dict[str, Any]], physical: Optional[List[Dict[str, Any]]] = None):
        self._enumerated: List[str] = []
        self._descriptors: Dict[str, CameraDescriptor] = {}
        self._chars: Dict[str, CameraCharacteristics] = {}

        for entry in cameras:
            desc, chars = self._parse_entry(entry)
            self._enumerated.append(desc.camera_id)
            self._descriptors[desc.camera_id] = desc
            self._chars[desc.camera_id] = chars
        for entry in physical or []:
            desc, chars = self._parse_entry(entry)
            self._chars[desc.camera_id] = chars

    @classmethod
    def from_yaml(cls, profile_path: str | Path) -> "ProfileCameraCatalog":
        path = Path(profile_path)
        if not path.exists():
            raise FileNotFoundError(f"Device profile not found: {profile_path}")
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loading device profile from {profile_path}")
        return cls(data.get("cameras", []), data.get("physical", []))

    # ---------- catalog ----------

    def enumerate_back_facing_cameras(self) -> List[CameraDescriptor]:
        return [self._descriptors[cid] for cid in self._enumerated if self._chars[cid].facing == "back"]

    def get_characteristics(self, camera_id: str) -> CameraCharacteristics:
        try:
            return self._chars[camera_id]
        except KeyError:
            raise ConfigurationError(f"Unknown camera id {camera_id!r}") from None

    # ---------- helpers ----------

    @staticmethod
    def _floats(value, name: str, cam_id: str) -> Optional[Tuple[float, ...]]:
        if value is None:
            return None
        try:
            return tuple(float(v) for v in value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"camera {cam_id}: {name} must be a list of numbers") from None

    def _parse_entry(self, entry: Dict[str, Any]) -> Tuple[CameraDescriptor, CameraCharacteristics]:
        if "id" not in entry:
            raise ConfigurationError(f"camera entry without id: {entry}")
        cam_id = str(entry["id"])

        facing = entry.get("facing", "back")
        if facing not in ("back", "front", "external"):
            raise ConfigurationError(f"camera {cam_id}: unknown facing {facing!r}")

        active = None
        if entry.get("active_array") is not None:
            rect = entry["active_array"]
            if len(rect) != 4:
                raise ConfigurationError(f"camera {cam_id}: active_array must be [x, y, width, height]")
            x, y, w, h = (int(v) for v in rect)
            active = ActiveArray(x=x, y=y, width=w, height=h)

        orientation = entry.get("sensor_orientation")
        chars = CameraCharacteristics(
            camera_id=cam_id,
            facing=facing,
            active_array=active,
            intrinsic_calibration=self._floats(entry.get("intrinsic_calibration"), "intrinsic_calibration", cam_id),
            sensor_orientation=None if orientation is None else int(orientation),
            lens_pose_rotation=self._floats(entry.get("lens_pose_rotation"), "lens_pose_rotation", cam_id),
        )
        desc = CameraDescriptor(
            camera_id=cam_id,
            is_logical=bool(entry.get("logical", False)),
            physical_ids=tuple(str(p) for p in entry.get("physical_ids", [])),
        )
        return desc, chars
