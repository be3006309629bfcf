from __future__ import annotations
import argparse
import logging
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from optical_center.config import CalibrationConfig, setup_logging
from optical_center.types import SessionError, ViewSize
from optical_center.core.selection import select_intrinsics
from optical_center.core.overlay import format_summary
from optical_center.providers.profile_provider import ProfileCameraCatalog
from optical_center.providers.replay_provider import ReplayTrackingSession
from optical_center.frontend.live_pipeline import LivePosePipeline, run_at_cadence, tracking_session
from optical_center.scripts.run_optical_center import parse_size

logger = logging.getLogger(__name__)


def plot_tilt(history, threshold_deg: float, out_path: Path) -> None:
    t = np.array([s.t_ns for s in history], dtype=np.float64)
    t = (t - t[0]) * 1e-9
    total = np.array([s.total_angular_difference for s in history])
    pitch = np.array([s.pitch_error for s in history])
    roll = np.array([s.roll_error for s in history])
    provisional = np.array([s.provisional for s in history])

    plt.figure()
    plt.plot(t, total, label="total", color="tab:blue")
    plt.plot(t, pitch, label="pitch err", color="tab:orange", alpha=0.7)
    plt.plot(t, roll, label="roll err", color="tab:green", alpha=0.7)
    if provisional.any():
        plt.scatter(t[provisional], total[provisional], marker="x", color="tab:red", label="not tracking")
    plt.axhline(threshold_deg, linestyle="--", color="gray", label=f"threshold {threshold_deg} deg")
    plt.title("Camera mounting tilt vs time")
    plt.xlabel("time (s)")
    plt.ylabel("error (deg)")
    plt.legend()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=200, bbox_inches="tight")
    plt.close()


def main() -> int:
    ap = argparse.ArgumentParser(description="Replay a pose log through the factory-tilt pipeline")
    ap.add_argument("--profile", required=True, help="device profile YAML")
    ap.add_argument("--poses", required=True, help="pose log CSV")
    ap.add_argument("--view", type=parse_size, default=(1080, 2280))
    ap.add_argument("--config", default=None, help="calibration config YAML")
    ap.add_argument("--period", type=float, default=0.0, help="seconds between frames (0 = as fast as possible)")
    ap.add_argument("--plot", default=None, help="write tilt-vs-time PNG here")
    args = ap.parse_args()

    config = CalibrationConfig.from_yaml(args.config) if args.config else CalibrationConfig()
    setup_logging(config.log_level)

    sel = select_intrinsics(ProfileCameraCatalog.from_yaml(args.profile), config.default_sensor_orientation)
    if sel.kind == "fatal":
        print(f"Error: {sel.reason}")
        return 1

    pipeline = LivePosePipeline(sel.intrinsics, config, view=ViewSize(*args.view))
    history = []

    def frame():
        snap = pipeline.on_draw_frame(session)
        if snap is not None:
            history.append(snap)

    try:
        with tracking_session(lambda: ReplayTrackingSession(args.poses)) as session:
            n = run_at_cadence(frame, period_s=args.period, should_continue=session.is_running)
    except SessionError as e:
        print(f"Session error: {e}")
        return 1

    print(f"frames: {n}  published: {pipeline.frames_published}  dropped: {pipeline.frames_dropped}")
    if not history:
        print("no frame produced a result")
        return 1

    for line in format_summary(history[-1]):
        print(line)

    tracked = [s.total_angular_difference for s in history if not s.provisional]
    if tracked:
        print(f"median tilt (tracking frames): {float(np.median(tracked)):.3f} deg")

    if args.plot:
        out = Path(args.plot)
        plot_tilt(history, config.tilt_threshold_deg, out)
        print(f"Saved tilt plot to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
    # python -m optical_center.scripts.run_tilt_replay --profile device.yaml --poses poses.csv --plot results/tilt.png
