"""Shared fakes for the platform collaborators."""

import threading
from typing import Dict, List, Optional

import pytest

from optical_center.types import (
    ActiveArray,
    CameraCharacteristics,
    CameraDescriptor,
    ConfigurationError,
)


class FakeCatalog:
    """In-memory camera catalog; optionally blocks enumeration until released."""

    def __init__(
        self,
        descriptors: List[CameraDescriptor],
        chars: Dict[str, CameraCharacteristics],
        gate: Optional[threading.Event] = None,
    ):
        self.descriptors = descriptors
        self.chars = chars
        self.gate = gate
        self.enumerated = threading.Event()
        self.enumerate_calls = 0

    def enumerate_back_facing_cameras(self):
        self.enumerate_calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        out = [d for d in self.descriptors if self.chars[d.camera_id].facing == "back"]
        self.enumerated.set()
        return out

    def get_characteristics(self, camera_id):
        if camera_id not in self.chars:
            raise ConfigurationError(f"Unknown camera id {camera_id!r}")
        return self.chars[camera_id]


def single_back_camera(
    principal=(1980.0, 1510.0),
    orientation=0,
    active=(4000, 3000),
    lens_pose=(0.0, 0.0, 0.0, 1.0),
    gate=None,
) -> FakeCatalog:
    intr = None if principal is None else (3000.0, 3000.0, principal[0], principal[1], 0.0)
    chars = CameraCharacteristics(
        camera_id="0",
        facing="back",
        active_array=None if active is None else ActiveArray(0, 0, active[0], active[1]),
        intrinsic_calibration=intr,
        sensor_orientation=orientation,
        lens_pose_rotation=lens_pose,
    )
    return FakeCatalog([CameraDescriptor("0", is_logical=True)], {"0": chars}, gate=gate)


@pytest.fixture
def catalog_factory():
    return single_back_camera
