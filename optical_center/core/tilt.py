# optical_center/core/tilt.py
'''
Factory-tilt scoring from one pair of tracked poses.

R = D^-1 ∘ C removes the world motion shared by device and camera, leaving the
camera's mounting rotation in the device frame. Each Euler axis is snapped to the
nearest multiple of 90 degrees; the residual is the tilt on that axis. Yaw is the
sensor mount class and is reported but not scored.
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional, Union
import math
import numpy as np

from optical_center.types import (
    CameraIntrinsics,
    EulerAngles,
    IViewMapper,
    Pose,
    TrackingState,
    TRACKING_STATES,
    ViewSize,
)
from optical_center.core.pose import relative_pose
from optical_center.core.rotations import quat_to_euler
from optical_center.core.overlay import SlamCalibrationInfo, assemble_slam_info

DEFAULT_TILT_THRESHOLD_DEG = 0.5


@dataclass(frozen=True)
class AxisError:
    actual: float     # degrees
    ideal: float      # nearest multiple of 90
    residual: float   # actual - ideal (signed)

    @property
    def error(self) -> float:
        return abs(self.residual)


@dataclass(frozen=True)
class TiltScore:
    euler: EulerAngles
    yaw: AxisError
    pitch: AxisError
    roll: AxisError
    total: float          # sqrt(pitch_err^2 + roll_err^2)
    threshold_deg: float

    @property
    def passed(self) -> bool:
        return self.total <= self.threshold_deg


@dataclass(frozen=True)
class FrameOk:
    kind: Literal["ok"]
    snapshot: SlamCalibrationInfo


@dataclass(frozen=True)
class FrameError:
    kind: Literal["error"]
    reason: str


FrameResult = Union[FrameOk, FrameError]


def snap_to_90(angle_deg: float) -> AxisError:
    ideal = round(angle_deg / 90.0) * 90.0
    return AxisError(actual=angle_deg, ideal=ideal, residual=angle_deg - ideal)


def score_euler(euler: EulerAngles, threshold_deg: float = DEFAULT_TILT_THRESHOLD_DEG) -> TiltScore:
    yaw = snap_to_90(euler.yaw)
    pitch = snap_to_90(euler.pitch)
    roll = snap_to_90(euler.roll)
    total = math.sqrt(pitch.error ** 2 + roll.error ** 2)
    return TiltScore(euler=euler, yaw=yaw, pitch=pitch, roll=roll, total=total, threshold_deg=threshold_deg)


def score_poses(device: Pose, camera: Pose, threshold_deg: float = DEFAULT_TILT_THRESHOLD_DEG) -> TiltScore:
    rel = relative_pose(device, camera)
    return score_euler(quat_to_euler(rel.q), threshold_deg)


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


def compute_frame(
    device: Pose,
    camera: Pose,
    tracking_state: TrackingState,
    intrinsics: CameraIntrinsics,
    view: ViewSize,
    mapper: IViewMapper,
    threshold_deg: float = DEFAULT_TILT_THRESHOLD_DEG,
    t_ns: Optional[int] = None,
) -> FrameResult:
    """
    One full compute for the live pipeline: tilt from the pose pair plus the
    principal point mapped into the current view. Never raises for bad input;
    returns FrameError instead so the caller can drop the frame.
    """
    if tracking_state not in TRACKING_STATES:
        return FrameError(kind="error", reason=f"unknown tracking state {tracking_state!r}")
    if not view.is_valid:
        return FrameError(kind="error", reason=f"view not laid out yet ({view.width}x{view.height})")

    try:
        score = score_poses(device, camera, threshold_deg)
        cx, cy = intrinsics.principal_point
        optical = mapper.sensor_to_view(
            np.array([[cx, cy]], dtype=np.float64),
            intrinsics.active_array,
            intrinsics.sensor_orientation,
            view,
        )[0]
    except ValueError as e:
        return FrameError(kind="error", reason=str(e))

    ox, oy = float(optical[0]), float(optical[1])
    if not _finite(score.total, score.pitch.error, score.roll.error, score.yaw.error, ox, oy):
        return FrameError(kind="error", reason="non-finite result")

    snapshot = assemble_slam_info(view, (ox, oy), score, tracking_state, t_ns=t_ns)
    return FrameOk(kind="ok", snapshot=snapshot)
