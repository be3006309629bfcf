# optical_center/core/selection.py
'''
Picks the camera whose calibration the pipelines compute with.

1. first back-facing logical camera (any back camera if none is logical)
2. if it has no principal point, the first back-facing physical child that does
3. otherwise the logical camera itself with the active-array center as principal point

Missing principal point / lens pose degrade the result; missing back camera or
active array are fatal. Physical children the catalog cannot describe are skipped.
Bad calibration data is reported through the returned Selection; only a
failing enumeration call propagates.
'''
from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from optical_center.types import (
    CalibrationError,
    CameraCharacteristics,
    CameraDescriptor,
    CameraIntrinsics,
    EulerAngles,
    ICameraCatalog,
    Selection,
    SelectionDegraded,
    SelectionFatal,
    SelectionOk,
)
from optical_center.core.rotations import quat_to_euler
from optical_center.core.view_mapping import VALID_ORIENTATIONS

logger = logging.getLogger(__name__)

DEFAULT_SENSOR_ORIENTATION = 90


def pick_logical_back_camera(cameras: List[CameraDescriptor]) -> Optional[CameraDescriptor]:
    if not cameras:
        return None
    for cam in cameras:
        if cam.is_logical:
            return cam
    return cameras[0]


def pick_calibrated_physical(
    catalog: ICameraCatalog,
    physical_ids: Tuple[str, ...],
) -> Optional[CameraCharacteristics]:
    for pid in physical_ids:
        try:
            chars = catalog.get_characteristics(pid)
        except CalibrationError as e:
            logger.warning(f"Skipping physical camera {pid}: {e}")
            continue
        if chars.facing == "back" and chars.principal_point is not None:
            return chars
    return None


def lens_pose_euler(chars: CameraCharacteristics) -> Tuple[EulerAngles, Optional[Tuple[float, float, float, float]]]:
    q = chars.lens_pose_rotation
    if q is None or len(q) != 4:
        return EulerAngles(0.0, 0.0, 0.0), None
    quat = (float(q[0]), float(q[1]), float(q[2]), float(q[3]))
    try:
        return quat_to_euler(quat), quat
    except ValueError:  # zero or non-finite
        return EulerAngles(0.0, 0.0, 0.0), None


def select_intrinsics(
    catalog: ICameraCatalog,
    default_orientation: int = DEFAULT_SENSOR_ORIENTATION,
) -> Selection:
    cameras = catalog.enumerate_back_facing_cameras()
    logical = pick_logical_back_camera(cameras)
    if logical is None:
        logger.error("No back camera found on device")
        return SelectionFatal(kind="fatal", reason="No back camera found on device")

    try:
        logical_chars = catalog.get_characteristics(logical.camera_id)
    except CalibrationError as e:
        reason = f"No characteristics for camera {logical.camera_id}: {e}"
        logger.error(reason)
        return SelectionFatal(kind="fatal", reason=reason)

    chosen = logical_chars
    if logical_chars.principal_point is None:
        physical = pick_calibrated_physical(catalog, logical.physical_ids)
        if physical is not None:
            logger.info(
                f"Logical camera {logical.camera_id} has no intrinsics, "
                f"using physical camera {physical.camera_id}"
            )
            chosen = physical

    if chosen.active_array is None:
        reason = f"Camera {chosen.camera_id} has no Active Array Size"
        logger.error(reason)
        return SelectionFatal(kind="fatal", reason=reason)

    active = chosen.active_array
    reasons: List[str] = []

    principal = chosen.principal_point
    if principal is None:
        principal = (float(active.width // 2), float(active.height // 2))
        reasons.append(f"no intrinsics for camera {chosen.camera_id}, using active-array center")
        logger.warning(f"No intrinsics found for ID {chosen.camera_id}. Using center fallback.")

    orientation = chosen.sensor_orientation
    if orientation is None:
        orientation = default_orientation
        reasons.append(f"no sensor orientation for camera {chosen.camera_id}, assuming {orientation}")
        logger.warning(f"No sensor orientation for ID {chosen.camera_id}, assuming {orientation}")
    elif int(orientation) % 360 not in VALID_ORIENTATIONS:
        reason = f"Camera {chosen.camera_id} reports invalid sensor orientation {orientation}"
        logger.error(reason)
        return SelectionFatal(kind="fatal", reason=reason)

    lens_pose, lens_quat = lens_pose_euler(chosen)
    if lens_quat is None:
        reasons.append(f"no lens pose for camera {chosen.camera_id}, rotation defaults to zero")
        logger.debug(f"No lens pose rotation for ID {chosen.camera_id}")

    focal = None
    if chosen.intrinsic_calibration is not None and len(chosen.intrinsic_calibration) >= 2:
        focal = (float(chosen.intrinsic_calibration[0]), float(chosen.intrinsic_calibration[1]))

    intrinsics = CameraIntrinsics(
        logical_id=logical.camera_id,
        chosen_id=chosen.camera_id,
        active_array=active,
        principal_point=principal,
        sensor_orientation=int(orientation) % 360,
        lens_pose=lens_pose,
        focal_length=focal,
        lens_pose_quat=lens_quat,
    )

    if reasons:
        return SelectionDegraded(kind="degraded", intrinsics=intrinsics, reasons=tuple(reasons))
    return SelectionOk(kind="ok", intrinsics=intrinsics)
