"""
Tests for the pose-delta tilt scorer and the per-frame compute.
"""

import math

import numpy as np
import pytest

from optical_center.types import ActiveArray, CameraIntrinsics, Pose, ViewSize
from optical_center.core.pose import make_pose, pose_compose
from optical_center.core.rotations import euler_to_quat, quat_from_axis_angle
from optical_center.core.tilt import compute_frame, score_poses, snap_to_90
from optical_center.core.view_mapping import FillCenterMapper

INTRINSICS = CameraIntrinsics(
    logical_id="0",
    chosen_id="0",
    active_array=ActiveArray(0, 0, 4000, 3000),
    principal_point=(2000.0, 1500.0),
    sensor_orientation=90,
)
VIEW = ViewSize(1080, 2280)


class TestSnapTo90:

    @pytest.mark.parametrize("angle,ideal,residual", [
        (0.3, 0.0, 0.3),
        (89.0, 90.0, -1.0),
        (-179.6, -180.0, 0.4),
        (271.0, 270.0, 1.0),
        (-44.0, 0.0, -44.0),
    ])
    def test_nearest_multiple(self, angle, ideal, residual):
        a = snap_to_90(angle)
        assert a.ideal == pytest.approx(ideal)
        assert a.residual == pytest.approx(residual)
        assert a.error == pytest.approx(abs(residual))


class TestScorePoses:

    def test_boresight_90_has_zero_error(self):
        """A camera turned exactly 90 degrees about its boresight is not tilted."""
        cam = make_pose(quat_from_axis_angle([0, 0, 1], 90.0))
        s = score_poses(Pose.identity(), cam)
        assert s.euler.yaw == pytest.approx(90.0, abs=1e-9)
        assert s.pitch.error == pytest.approx(0.0, abs=1e-9)
        assert s.roll.error == pytest.approx(0.0, abs=1e-9)
        assert s.yaw.error == pytest.approx(0.0, abs=1e-9)
        assert s.total == pytest.approx(0.0, abs=1e-9)
        assert s.passed

    def test_91_about_pitch_axis(self):
        cam = make_pose(quat_from_axis_angle([0, 1, 0], 91.0))
        s = score_poses(Pose.identity(), cam)
        assert s.pitch.error == pytest.approx(1.0, abs=1e-6)
        assert s.roll.error == pytest.approx(0.0, abs=1e-6)
        assert s.total == pytest.approx(1.0, abs=1e-6)
        assert not s.passed

    def test_yaw_not_scored(self):
        cam = make_pose(euler_to_quat(93.0, 0.0, 0.0))
        s = score_poses(Pose.identity(), cam)
        assert s.yaw.error == pytest.approx(3.0, abs=1e-6)
        assert s.total == pytest.approx(0.0, abs=1e-6)

    def test_pitch_and_roll_combine(self):
        cam = make_pose(euler_to_quat(90.0, 0.3, -0.4))
        s = score_poses(Pose.identity(), cam)
        assert s.total == pytest.approx(0.5, abs=1e-6)

    def test_world_motion_does_not_change_score(self):
        rng = np.random.default_rng(11)
        mount = make_pose(euler_to_quat(-90.0, 0.2, 0.15), [0.0, 0.03, 0.0])
        ref = score_poses(Pose.identity(), mount)
        for _ in range(10):
            device = make_pose(rng.normal(size=4), rng.normal(size=3))
            s = score_poses(device, pose_compose(device, mount))
            assert s.total == pytest.approx(ref.total, abs=1e-6)
            assert s.pitch.error == pytest.approx(0.2, abs=1e-6)
            assert s.roll.error == pytest.approx(0.15, abs=1e-6)

    def test_threshold_is_configurable(self):
        cam = make_pose(euler_to_quat(0.0, 0.3, 0.0))
        assert not score_poses(Pose.identity(), cam, threshold_deg=0.2).passed
        assert score_poses(Pose.identity(), cam, threshold_deg=0.5).passed


class TestComputeFrame:

    def test_ok_frame(self):
        cam = make_pose(euler_to_quat(90.0, 0.3, 0.0))
        r = compute_frame(Pose.identity(), cam, "tracking", INTRINSICS, VIEW, FillCenterMapper(), t_ns=42)
        assert r.kind == "ok"
        snap = r.snapshot
        assert snap.t_ns == 42
        assert snap.total_angular_difference == pytest.approx(0.3, abs=1e-6)
        assert (snap.screen_cx, snap.screen_cy) == (540.0, 1140.0)
        assert snap.optical_cx == pytest.approx(540.0)
        assert snap.delta_x == pytest.approx(0.0, abs=1e-9)
        assert not snap.provisional

    def test_limited_tracking_still_computes(self):
        cam = make_pose(euler_to_quat(90.0, 1.0, 0.0))
        r = compute_frame(Pose.identity(), cam, "limited", INTRINSICS, VIEW, FillCenterMapper())
        assert r.kind == "ok"
        assert r.snapshot.provisional
        assert r.snapshot.tracking_state == "limited"
        assert r.snapshot.total_angular_difference == pytest.approx(1.0, abs=1e-6)

    def test_non_finite_pose_is_frame_error(self):
        bad = Pose(q=np.array([math.nan, 0.0, 0.0, 1.0]), t=np.zeros(3))
        r = compute_frame(Pose.identity(), bad, "tracking", INTRINSICS, VIEW, FillCenterMapper())
        assert r.kind == "error"

    def test_zero_view_is_frame_error(self):
        r = compute_frame(Pose.identity(), Pose.identity(), "tracking", INTRINSICS, ViewSize(0, 0), FillCenterMapper())
        assert r.kind == "error"

    def test_unknown_tracking_state(self):
        r = compute_frame(Pose.identity(), Pose.identity(), "paused", INTRINSICS, VIEW, FillCenterMapper())
        assert r.kind == "error"
