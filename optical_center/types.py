from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union, Literal, Tuple, List
import numpy as np


# -----------------------------
# Camera metadata records
# -----------------------------

LensFacing = Literal["back", "front", "external"]


@dataclass(frozen=True)
class CameraDescriptor:
    camera_id: str
    is_logical: bool
    physical_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ActiveArray:
    x: int
    y: int
    width: int   # sensor pixels
    height: int  # sensor pixels


@dataclass(frozen=True)
class CameraCharacteristics:
    """Raw characteristics of one camera as reported by the platform.

    Every calibration field may be missing; the selector decides how to degrade.
    """
    camera_id: str
    facing: LensFacing
    active_array: Optional[ActiveArray] = None
    intrinsic_calibration: Optional[Tuple[float, ...]] = None  # [fx, fy, cx, cy, s]
    sensor_orientation: Optional[int] = None                    # degrees, multiple of 90
    lens_pose_rotation: Optional[Tuple[float, ...]] = None      # quaternion (x, y, z, w)

    @property
    def principal_point(self) -> Optional[Tuple[float, float]]:
        if self.intrinsic_calibration is None or len(self.intrinsic_calibration) < 4:
            return None
        return float(self.intrinsic_calibration[2]), float(self.intrinsic_calibration[3])


@dataclass(frozen=True)
class EulerAngles:
    yaw: float    # degrees, about Z
    pitch: float  # degrees, about Y
    roll: float   # degrees, about X


@dataclass(frozen=True)
class CameraIntrinsics:
    """Calibration the pipelines compute with, one per session."""
    logical_id: str
    chosen_id: str
    active_array: ActiveArray
    principal_point: Tuple[float, float]   # (cx, cy) sensor pixels
    sensor_orientation: int                # 0, 90, 180 or 270
    lens_pose: EulerAngles = EulerAngles(0.0, 0.0, 0.0)
    focal_length: Optional[Tuple[float, float]] = None
    lens_pose_quat: Optional[Tuple[float, float, float, float]] = None


@dataclass(frozen=True)
class ViewSize:
    width: int
    height: int

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def center(self) -> Tuple[float, float]:
        return self.width / 2.0, self.height / 2.0


# -----------------------------
# Tracking
# -----------------------------

TrackingState = Literal["tracking", "limited", "lost"]
TRACKING_STATES: Tuple[str, ...] = ("tracking", "limited", "lost")


@dataclass(frozen=True)
class Pose:
    q: np.ndarray  # (4,) unit quaternion, scalar-last (x, y, z, w)
    t: np.ndarray  # (3,) translation in meters

    @staticmethod
    def identity() -> "Pose":
        return Pose(q=np.array([0.0, 0.0, 0.0, 1.0]), t=np.zeros(3))


@dataclass(frozen=True)
class TrackedPoses:
    t_ns: int
    device: Pose   # IMU-fused device pose in world
    camera: Pose   # visual-inertial camera pose in world
    tracking_state: TrackingState = "tracking"


# -----------------------------
# Platform collaborators
# -----------------------------

class ICameraCatalog(Protocol):
    """Camera enumeration and per-camera characteristics."""
    def enumerate_back_facing_cameras(self) -> List[CameraDescriptor]: ...
    def get_characteristics(self, camera_id: str) -> CameraCharacteristics: ...


class ITrackingSession(Protocol):
    """Externally owned visual-inertial tracking session."""
    def resume(self) -> None: ...
    def close(self) -> None: ...
    def is_running(self) -> bool: ...
    def get_current_tracked_poses(self) -> TrackedPoses: ...


class IViewMapper(Protocol):
    """Maps sensor-space points into view-space pixels (fill-center preview)."""
    def sensor_to_view(
        self,
        points: np.ndarray,
        active: ActiveArray,
        sensor_orientation: int,
        view: ViewSize,
    ) -> np.ndarray: ...


# -----------------------------
# Discriminated results
# -----------------------------

@dataclass(frozen=True)
class SelectionOk:
    kind: Literal["ok"]
    intrinsics: CameraIntrinsics


@dataclass(frozen=True)
class SelectionDegraded:
    kind: Literal["degraded"]
    intrinsics: CameraIntrinsics
    reasons: Tuple[str, ...]


@dataclass(frozen=True)
class SelectionFatal:
    kind: Literal["fatal"]
    reason: str


Selection = Union[SelectionOk, SelectionDegraded, SelectionFatal]


@dataclass(frozen=True)
class PipelineStatus:
    kind: Literal["running", "done", "fatal"]
    message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.kind != "running"


# -----------------------------
# Errors
# -----------------------------

class CalibrationError(RuntimeError):
    pass


class ConfigurationError(CalibrationError):
    pass


class SessionError(CalibrationError):
    pass


class PoseUnavailableError(CalibrationError):
    pass


class TimestampError(RuntimeError):
    pass


def assert_non_decreasing(prev_t_ns: Optional[int], new_t_ns: int, name: str) -> int:
    if prev_t_ns is not None and new_t_ns < prev_t_ns:
        raise TimestampError(f"{name}: timestamps decreased ({new_t_ns} < {prev_t_ns})")
    return new_t_ns
