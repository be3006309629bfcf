# optical_center/core/rotations.py
# Quaternion / Euler / rotation-matrix conversions.
# Quaternions are scalar-last (x, y, z, w) throughout.
# Euler angles are aerospace Z-Y-X (yaw, pitch, roll), degrees at the boundary.
from __future__ import annotations
import math
import numpy as np

from optical_center.types import EulerAngles


def skew(w: np.ndarray) -> np.ndarray:
    return np.array([[0, -w[2], w[1]],
                     [w[2], 0, -w[0]],
                     [-w[1], w[0], 0]], dtype=np.float64)


def so3_exp(phi: np.ndarray) -> np.ndarray:
    theta = np.linalg.norm(phi)
    if theta < 1e-12:
        return np.eye(3) + skew(phi)
    K = skew(phi / theta)
    return np.eye(3) + np.sin(theta) * K + (1 - np.cos(theta)) * (K @ K)


def quat_normalize(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    n = np.linalg.norm(q)
    if n < 1e-12 or not np.isfinite(n):
        raise ValueError(f"quaternion has no usable norm: {q}")
    return q / n


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    x, y, z, w = q
    return np.array([-x, -y, -z, w], dtype=np.float64)


def quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a ⊗ b (apply b first, then a)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ], dtype=np.float64)


def quat_from_axis_angle(axis: np.ndarray, angle_deg: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=np.float64)
    n = np.linalg.norm(axis)
    if n < 1e-12 or not np.isfinite(n):
        raise ValueError(f"rotation axis has no usable norm: {axis}")
    axis = axis / n
    half = math.radians(angle_deg) / 2.0
    s = math.sin(half)
    return np.array([axis[0] * s, axis[1] * s, axis[2] * s, math.cos(half)], dtype=np.float64)


def quat_to_R(q: np.ndarray) -> np.ndarray:
    x, y, z, w = quat_normalize(q)
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w),     2 * (x * z + y * w)],
        [2 * (x * y + z * w),     1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w),     2 * (y * z + x * w),     1 - 2 * (x * x + y * y)],
    ], dtype=np.float64)


def R_to_quat(R: np.ndarray) -> np.ndarray:
    """
    Shepperd's method: branch on the largest diagonal term so the square root
    never sees a near-zero argument. Returned quaternion has w >= 0.
    """
    tr = R[0, 0] + R[1, 1] + R[2, 2]
    if tr > 0.0:
        s = 2.0 * math.sqrt(tr + 1.0)
        w = 0.25 * s
        x = (R[2, 1] - R[1, 2]) / s
        y = (R[0, 2] - R[2, 0]) / s
        z = (R[1, 0] - R[0, 1]) / s
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * math.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        w = (R[2, 1] - R[1, 2]) / s
        x = 0.25 * s
        y = (R[0, 1] + R[1, 0]) / s
        z = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * math.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        w = (R[0, 2] - R[2, 0]) / s
        x = (R[0, 1] + R[1, 0]) / s
        y = 0.25 * s
        z = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * math.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        w = (R[1, 0] - R[0, 1]) / s
        x = (R[0, 2] + R[2, 0]) / s
        y = (R[1, 2] + R[2, 1]) / s
        z = 0.25 * s
    q = np.array([x, y, z, w], dtype=np.float64)
    if q[3] < 0.0:
        q = -q
    return quat_normalize(q)


GIMBAL_EPS = 1e-12


def wrap_deg(a: float) -> float:
    """Wrap to (-180, 180]."""
    a = math.fmod(a, 360.0)
    if a <= -180.0:
        a += 360.0
    elif a > 180.0:
        a -= 360.0
    return a


def quat_to_euler(q) -> EulerAngles:
    """
    Convert a scalar-last unit quaternion to aerospace Z-Y-X Euler angles.

    Returns EulerAngles(yaw, pitch, roll) in degrees. When |sin(pitch)| reaches 1
    (gimbal lock, or float overshoot past it) pitch is pinned to +/-90 degrees
    instead of calling asin out of its domain. Yaw and roll are not separable
    there, so roll is set to 0 and the whole rotation about the vertical goes
    into yaw.

    The input is normalized first; a zero or non-finite quaternion raises ValueError.
    """
    x, y, z, w = (float(v) for v in quat_normalize(q))

    sinp = 2.0 * (w * y - z * x)
    if abs(sinp) >= 1.0 - GIMBAL_EPS:
        pitch = math.copysign(90.0, sinp)
        # +90: y == w, x == -z;  -90: y == -w, x == z
        yaw = -math.copysign(1.0, sinp) * 2.0 * math.degrees(math.atan2(x, w))
        return EulerAngles(yaw=wrap_deg(yaw) + 0.0, pitch=pitch, roll=0.0)
    pitch = math.degrees(math.asin(sinp))

    sinr_cosp = 2.0 * (w * x + y * z)
    cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
    roll = math.degrees(math.atan2(sinr_cosp, cosr_cosp))

    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = math.degrees(math.atan2(siny_cosp, cosy_cosp))

    return EulerAngles(yaw=yaw, pitch=pitch, roll=roll)


def euler_to_quat(yaw_deg: float, pitch_deg: float, roll_deg: float) -> np.ndarray:
    """Inverse of quat_to_euler: q = Rz(yaw) * Ry(pitch) * Rx(roll)."""
    cy, sy = math.cos(math.radians(yaw_deg) / 2), math.sin(math.radians(yaw_deg) / 2)
    cp, sp = math.cos(math.radians(pitch_deg) / 2), math.sin(math.radians(pitch_deg) / 2)
    cr, sr = math.cos(math.radians(roll_deg) / 2), math.sin(math.radians(roll_deg) / 2)

    return np.array([
        sr * cp * cy - cr * sp * sy,
        cr * sp * cy + sr * cp * sy,
        cr * cp * sy - sr * sp * cy,
        cr * cp * cy + sr * sp * sy,
    ], dtype=np.float64)


def angle_between_deg(q_a: np.ndarray, q_b: np.ndarray) -> float:
    """Geodesic angle between two orientations, in degrees."""
    d = abs(float(np.dot(quat_normalize(q_a), quat_normalize(q_b))))
    return math.degrees(2.0 * math.acos(min(1.0, d)))
