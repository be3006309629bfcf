'''
writes a synthetic pose log:
device wanders through the world (random rotation/translation walk)
camera = device ∘ mount, mount = nominal 90-degree orientation plus a small tilt
a few frames are marked limited / lost so the replay exercises the provisional path
'''
from __future__ import annotations
import argparse

import numpy as np

from optical_center.types import Pose, TrackedPoses
from optical_center.core.pose import make_pose, pose_compose
from optical_center.core.rotations import R_to_quat, euler_to_quat, quat_to_R, so3_exp
from optical_center.providers.replay_provider import write_pose_log


def simulate(
    n: int,
    mount_yaw: float,
    tilt_pitch: float,
    tilt_roll: float,
    noise_deg: float,
    fps: float = 30.0,
    seed: int = 0,
) -> list[TrackedPoses]:
    rng = np.random.default_rng(seed)
    mount = make_pose(euler_to_quat(mount_yaw, tilt_pitch, tilt_roll), [0.01, 0.02, 0.0])

    R = np.eye(3)
    p = np.zeros(3)
    frames = []
    for k in range(n):
        R = R @ so3_exp(rng.normal(scale=np.radians(1.0), size=3))
        p = p + rng.normal(scale=0.005, size=3)
        device = Pose(q=R_to_quat(R), t=p.copy())

        jitter = so3_exp(rng.normal(scale=np.radians(noise_deg), size=3))
        cam = pose_compose(device, mount)
        cam = Pose(q=R_to_quat(quat_to_R(cam.q) @ jitter), t=cam.t)

        state = "tracking"
        if k % 97 == 50:
            state = "limited"
        elif k % 151 == 120:
            state = "lost"
        frames.append(TrackedPoses(t_ns=int(k * 1e9 / fps), device=device, camera=cam, tracking_state=state))
    return frames


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", required=True, help="pose log CSV to write")
    ap.add_argument("--n", type=int, default=300, help="num frames")
    ap.add_argument("--mount-yaw", type=float, default=90.0)
    ap.add_argument("--pitch", type=float, default=0.3, help="mounting tilt about pitch (deg)")
    ap.add_argument("--roll", type=float, default=-0.2, help="mounting tilt about roll (deg)")
    ap.add_argument("--noise", type=float, default=0.02, help="per-frame camera pose noise (deg)")
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()

    frames = simulate(args.n, args.mount_yaw, args.pitch, args.roll, args.noise, seed=args.seed)
    n = write_pose_log(args.out, frames)
    print(f"wrote {n} frames to {args.out}")


if __name__ == "__main__":
    main()
