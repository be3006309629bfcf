from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np

from optical_center.types import (
    ITrackingSession,
    PoseUnavailableError,
    SessionError,
    TrackedPoses,
    TRACKING_STATES,
    assert_non_decreasing,
)
from optical_center.core.pose import make_pose

logger = logging.getLogger(__name__)

POSE_LOG_HEADER = [
    "t_ns",
    "dev_qx", "dev_qy", "dev_qz", "dev_qw", "dev_tx", "dev_ty", "dev_tz",
    "cam_qx", "cam_qy", "cam_qz", "cam_qw", "cam_tx", "cam_ty", "cam_tz",
    "tracking_state",
]


class ReplayTrackingSession(ITrackingSession):
    """
    Replays a recorded pose log (CSV, POSE_LOG_HEADER columns), one row per
    frame. Rows with empty pose fields stand for frames where the tracker had
    no pose; they raise PoseUnavailableError when reached.
    """
    def __init__(self, pose_log: str | Path):
        self.pose_log = Path(pose_log)
        self._rows: List[List[str]] = []
        self._i = 0
        self._last_t: Optional[int] = None
        self._open = False

    # ---------- lifecycle ----------

    def resume(self) -> None:
        if self._open:
            return
        if not self.pose_log.exists():
            raise SessionError(f"Pose log not found: {self.pose_log}")
        self._rows = self._load_rows(self.pose_log)
        self._i = 0
        self._last_t = None
        self._open = True
        logger.info(f"Replaying {len(self._rows)} frames from {self.pose_log}")

    def close(self) -> None:
        self._open = False

    def is_running(self) -> bool:
        return self._open and self._i < len(self._rows)

    # ---------- frames ----------

    def get_current_tracked_poses(self) -> TrackedPoses:
        if not self._open:
            raise SessionError("session is not resumed")
        if self._i >= len(self._rows):
            raise PoseUnavailableError("pose log exhausted")

        row = self._rows[self._i]
        self._i += 1

        try:
            t_ns = int(row[0])
        except ValueError:
            raise PoseUnavailableError(f"row {self._i}: bad timestamp {row[0]!r}") from None
        self._last_t = assert_non_decreasing(self._last_t, t_ns, "ReplayTrackingSession")

        state = row[15].strip() if len(row) > 15 and row[15].strip() else "tracking"
        if state not in TRACKING_STATES:
            raise PoseUnavailableError(f"t={t_ns}: unknown tracking state {state!r}")

        fields = row[1:15]
        if len(fields) < 14 or any(not v.strip() for v in fields):
            raise PoseUnavailableError(f"t={t_ns}: no pose ({state})")

        try:
            vals = np.array([float(v) for v in fields], dtype=np.float64)
            device = make_pose(vals[0:4], vals[4:7])
            camera = make_pose(vals[7:11], vals[11:14])
        except ValueError as e:
            raise PoseUnavailableError(f"t={t_ns}: {e}") from e
        return TrackedPoses(t_ns=t_ns, device=device, camera=camera, tracking_state=state)

    # ---------- helpers ----------

    def _load_rows(self, path: Path) -> List[List[str]]:
        out = []
        with path.open("r", newline="") as f:
            r = csv.reader(f)
            next(r, None)  # header
            for row in r:
                if not row or row[0].startswith("#"):
                    continue
                out.append(row)
        return out


def write_pose_log(path: str | Path, frames: Iterable[TrackedPoses]) -> int:
    n = 0
    with Path(path).open("w", newline="") as f:
        w = csv.writer(f)
        w.writerow(POSE_LOG_HEADER)
        for fr in frames:
            w.writerow([
                fr.t_ns,
                *[repr(float(v)) for v in fr.device.q], *[repr(float(v)) for v in fr.device.t],
                *[repr(float(v)) for v in fr.camera.q], *[repr(float(v)) for v in fr.camera.t],
                fr.tracking_state,
            ])
            n += 1
    return n
