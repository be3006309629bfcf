# optical_center/core/overlay.py
# Immutable overlay snapshots and the single-writer slot that hands them to the renderer.
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, List, Optional, Tuple, TypeVar, Union
import threading

from optical_center.types import EulerAngles, TrackingState, ViewSize

if TYPE_CHECKING:
    from optical_center.core.tilt import TiltScore


@dataclass(frozen=True)
class OpticalInfo:
    screen_cx: float
    screen_cy: float
    optical_cx: float
    optical_cy: float
    delta_x: float
    delta_y: float
    # lens pose, degrees
    pitch: float
    roll: float
    yaw: float


@dataclass(frozen=True)
class SlamCalibrationInfo:
    screen_cx: float
    screen_cy: float
    optical_cx: float
    optical_cy: float
    delta_x: float
    delta_y: float
    total_angular_difference: float
    pitch_error: float
    roll_error: float
    yaw_error: float
    relative: EulerAngles      # camera-in-device angles the errors came from
    passed: bool
    tracking_state: TrackingState
    t_ns: Optional[int] = None

    @property
    def provisional(self) -> bool:
        return self.tracking_state != "tracking"


Snapshot = Union[OpticalInfo, SlamCalibrationInfo]


def _centers(view: ViewSize, optical: Tuple[float, float]) -> Tuple[float, float, float, float, float, float]:
    screen_cx, screen_cy = view.center
    ox, oy = float(optical[0]), float(optical[1])
    return screen_cx, screen_cy, ox, oy, ox - screen_cx, oy - screen_cy


def assemble_optical_info(view: ViewSize, optical: Tuple[float, float], lens_pose: EulerAngles) -> OpticalInfo:
    sx, sy, ox, oy, dx, dy = _centers(view, optical)
    return OpticalInfo(
        screen_cx=sx, screen_cy=sy,
        optical_cx=ox, optical_cy=oy,
        delta_x=dx, delta_y=dy,
        pitch=lens_pose.pitch, roll=lens_pose.roll, yaw=lens_pose.yaw,
    )


def assemble_slam_info(
    view: ViewSize,
    optical: Tuple[float, float],
    score: "TiltScore",
    tracking_state: TrackingState,
    t_ns: Optional[int] = None,
) -> SlamCalibrationInfo:
    sx, sy, ox, oy, dx, dy = _centers(view, optical)
    return SlamCalibrationInfo(
        screen_cx=sx, screen_cy=sy,
        optical_cx=ox, optical_cy=oy,
        delta_x=dx, delta_y=dy,
        total_angular_difference=score.total,
        pitch_error=score.pitch.error,
        roll_error=score.roll.error,
        yaw_error=score.yaw.error,
        relative=score.euler,
        passed=score.passed,
        tracking_state=tracking_state,
        t_ns=t_ns,
    )


def format_summary(info: Snapshot) -> List[str]:
    lines = [f"Pos Delta: {int(info.delta_x)} px, {int(info.delta_y)} px"]
    if isinstance(info, OpticalInfo):
        lines.append(f"Rot Delta: P:{info.pitch:.5f}°, R:{info.roll:.5f}°, Y:{info.yaw:.5f}°")
        return lines

    verdict = "PASS" if info.passed else "FAIL"
    tilt = f"Tilt: {info.total_angular_difference:.3f}° ({verdict})"
    if info.provisional:
        tilt += f" [{info.tracking_state}]"
    lines.append(tilt)
    lines.append(f"Pitch err: {info.pitch_error:.3f}°, Roll err: {info.roll_error:.3f}°")
    return lines


S = TypeVar("S")


class SnapshotSlot(Generic[S]):
    """
    Latest-value handoff. publish() swaps the reference; readers get whatever
    snapshot was current, never a partially built one.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Optional[S] = None
        self._version = 0

    def publish(self, snapshot: S) -> int:
        with self._lock:
            self._latest = snapshot
            self._version += 1
            return self._version

    def latest(self) -> Optional[S]:
        return self._latest

    def read(self) -> Tuple[int, Optional[S]]:
        with self._lock:
            return self._version, self._latest

    @property
    def version(self) -> int:
        return self._version
