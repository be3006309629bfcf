'''
reads a device profile
selects the calibrated back camera
waits for a view size (given on the command line) and prints the optical-center offset
optionally renders the overlay to a PNG
'''
from __future__ import annotations
import argparse
import logging
from pathlib import Path

import cv2

from optical_center.config import CalibrationConfig, setup_logging
from optical_center.providers.profile_provider import ProfileCameraCatalog
from optical_center.frontend.static_pipeline import StaticIntrinsicsPipeline
from optical_center.frontend.overlay_render import render_overlay
from optical_center.core.overlay import format_summary

logger = logging.getLogger(__name__)


def parse_size(s: str) -> tuple[int, int]:
    try:
        w, h = s.lower().split("x")
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {s!r}") from None


def main() -> int:
    ap = argparse.ArgumentParser(description="Optical center vs screen center from camera calibration")
    ap.add_argument("--profile", required=True, help="device profile YAML")
    ap.add_argument("--view", type=parse_size, default=(1080, 2280), help="preview size, e.g. 1080x2280")
    ap.add_argument("--config", default=None, help="calibration config YAML")
    ap.add_argument("--render", default=None, help="write overlay PNG here")
    ap.add_argument("--timeout", type=float, default=10.0)
    args = ap.parse_args()

    config = CalibrationConfig.from_yaml(args.config) if args.config else CalibrationConfig()
    setup_logging(config.log_level)

    catalog = ProfileCameraCatalog.from_yaml(args.profile)

    with StaticIntrinsicsPipeline(catalog, config) as pipeline:
        pipeline.on_layout(*args.view)
        status = pipeline.wait(timeout=args.timeout)

    if status.kind == "fatal":
        print(status.message)
        return 1

    sel = pipeline.selection
    intr = sel.intrinsics
    print(f"logical camera : {intr.logical_id}")
    print(f"chosen camera  : {intr.chosen_id}")
    print(f"active array   : {intr.active_array.width}x{intr.active_array.height}")
    print(f"principal point: ({intr.principal_point[0]:.2f}, {intr.principal_point[1]:.2f})")
    print(f"orientation    : {intr.sensor_orientation}")
    if sel.kind == "degraded":
        for r in sel.reasons:
            print(f"degraded       : {r}")

    info = pipeline.slot.latest()
    for line in format_summary(info):
        print(line)

    if args.render:
        img = render_overlay(info, *args.view)
        out = Path(args.render)
        out.parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(out), img)
        print(f"Saved overlay to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
    # python -m optical_center.scripts.run_optical_center --profile device.yaml --view 1080x2280
