# optical_center/core/pose.py
# Rigid-body pose algebra (quaternion + translation).
from __future__ import annotations
import numpy as np

from optical_center.types import Pose
from optical_center.core.rotations import (
    quat_conjugate,
    quat_multiply,
    quat_normalize,
    quat_to_R,
)


def make_pose(q, t=None) -> Pose:
    q = quat_normalize(np.asarray(q, dtype=np.float64).reshape(4))
    t = np.zeros(3) if t is None else np.asarray(t, dtype=np.float64).reshape(3)
    return Pose(q=q, t=t)


def pose_inverse(p: Pose) -> Pose:
    # T^-1 = [R^T, -R^T t]
    q_inv = quat_conjugate(quat_normalize(p.q))
    t_inv = -(quat_to_R(q_inv) @ p.t)
    return Pose(q=q_inv, t=t_inv)


def pose_compose(a: Pose, b: Pose) -> Pose:
    """a ∘ b: map a point through b first, then a."""
    q = quat_normalize(quat_multiply(a.q, b.q))
    t = a.t + quat_to_R(a.q) @ b.t
    return Pose(q=q, t=t)


def relative_pose(device: Pose, camera: Pose) -> Pose:
    """
    Camera pose expressed in the device frame: D^-1 ∘ C.
    Any rotation/translation common to both (world motion) cancels out.
    """
    return pose_compose(pose_inverse(device), camera)


def pose_to_T(p: Pose) -> np.ndarray:
    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = quat_to_R(p.q)
    T[:3, 3] = p.t
    return T


def transform_point(p: Pose, x: np.ndarray) -> np.ndarray:
    return quat_to_R(p.q) @ np.asarray(x, dtype=np.float64) + p.t
