"""Tests for the YAML device-profile camera catalog."""

from pathlib import Path

import pytest

from optical_center.core.selection import select_intrinsics
from optical_center.providers.profile_provider import ProfileCameraCatalog
from optical_center.types import ConfigurationError

DATA = Path(__file__).resolve().parent.parent / "data"


class TestProfileCameraCatalog:

    def test_shipped_profile(self):
        cat = ProfileCameraCatalog.from_yaml(DATA / "device_profile.yaml")
        back = cat.enumerate_back_facing_cameras()
        assert [d.camera_id for d in back] == ["0"]
        assert back[0].is_logical
        assert back[0].physical_ids == ("2", "3")

        sel = select_intrinsics(cat)
        assert sel.kind == "ok"
        assert sel.intrinsics.logical_id == "0"
        assert sel.intrinsics.chosen_id == "2"
        assert sel.intrinsics.principal_point == (1980.0, 1510.0)
        assert sel.intrinsics.sensor_orientation == 90
        assert sel.intrinsics.lens_pose.yaw == pytest.approx(90.0, abs=1.0)

    def test_physical_not_enumerated(self):
        cat = ProfileCameraCatalog(
            [{"id": "0", "logical": True, "physical_ids": [5], "active_array": [0, 0, 100, 50]}],
            [{"id": "5", "active_array": [0, 0, 100, 50], "intrinsic_calibration": [1, 1, 40, 20, 0]}],
        )
        assert [d.camera_id for d in cat.enumerate_back_facing_cameras()] == ["0"]
        assert cat.get_characteristics("5").principal_point == (40.0, 20.0)
        assert cat.get_characteristics("0").principal_point is None

    def test_unresolvable_physical_child_falls_back(self):
        cat = ProfileCameraCatalog(
            [{"id": "0", "logical": True, "physical_ids": ["9"], "active_array": [0, 0, 4000, 3000]}],
        )
        sel = select_intrinsics(cat)
        assert sel.kind == "degraded"
        assert sel.intrinsics.principal_point == (2000.0, 1500.0)

    def test_unknown_id(self):
        cat = ProfileCameraCatalog([])
        with pytest.raises(ConfigurationError):
            cat.get_characteristics("9")

    @pytest.mark.parametrize("entry", [
        {"facing": "back"},
        {"id": "0", "facing": "sideways"},
        {"id": "0", "active_array": [0, 0, 100]},
        {"id": "0", "intrinsic_calibration": ["a", "b"]},
    ])
    def test_malformed_entries(self, entry):
        with pytest.raises(ConfigurationError):
            ProfileCameraCatalog([entry])

    def test_missing_profile(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProfileCameraCatalog.from_yaml(tmp_path / "nope.yaml")
