# optical_center/core/view_mapping.py
'''
Sensor-space -> view-space mapping for a fill-center preview.

The sensor image is rotated by its mount orientation, scaled uniformly so it
covers the whole view (crop, not letterbox) and centered. A sensor point lands at
    view_center + (scale * rotated_point - drawn_extent / 2)

Two implementations with the same contract:
  FillCenterMapper  closed-form, pure python
  AffineViewMapper  builds the 2x3 affine and lets OpenCV apply it
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import numpy as np
import cv2

from optical_center.types import ActiveArray, ViewSize, ConfigurationError

VALID_ORIENTATIONS = (0, 90, 180, 270)


def check_orientation(sensor_orientation: int) -> int:
    o = int(sensor_orientation) % 360
    if o not in VALID_ORIENTATIONS:
        raise ConfigurationError(f"sensor orientation must be a multiple of 90, got {sensor_orientation}")
    return o


def is_rotated(sensor_orientation: int) -> bool:
    return check_orientation(sensor_orientation) in (90, 270)


def rotated_extent(active: ActiveArray, sensor_orientation: int) -> Tuple[float, float]:
    """(w, h) of the sensor image once turned upright for display."""
    w, h = float(active.width), float(active.height)
    return (h, w) if is_rotated(sensor_orientation) else (w, h)


def fill_scale(active: ActiveArray, sensor_orientation: int, view: ViewSize) -> float:
    # aspect of the upright extents, not the raw sensor width/height, so 90/270
    # scale the same as a pre-rotated rect at 0
    sw, sh = rotated_extent(active, sensor_orientation)
    sensor_aspect = sw / sh
    view_aspect = view.width / view.height
    # tighter axis wins so the image covers the view
    return view.width / sw if view_aspect > sensor_aspect else view.height / sh


def rotate_sensor_point(cx: float, cy: float, active: ActiveArray, sensor_orientation: int) -> Tuple[float, float]:
    o = check_orientation(sensor_orientation)
    w, h = float(active.width), float(active.height)
    if o == 90:
        return cy, w - cx
    if o == 270:
        return h - cy, cx
    # 0 and 180 are drawn unflipped
    return cx, cy


def _check_inputs(active: ActiveArray, view: ViewSize) -> None:
    if active.width <= 0 or active.height <= 0:
        raise ValueError(f"active array must be non-empty, got {active.width}x{active.height}")
    if not view.is_valid:
        raise ValueError(f"view must be non-empty, got {view.width}x{view.height}")


@dataclass(frozen=True)
class FillCenterMapper:
    name: str = "analytic"

    def map_point(
        self,
        cx: float,
        cy: float,
        active: ActiveArray,
        sensor_orientation: int,
        view: ViewSize,
    ) -> Tuple[float, float]:
        _check_inputs(active, view)
        scale = fill_scale(active, sensor_orientation, view)
        rx, ry = rotate_sensor_point(cx, cy, active, sensor_orientation)
        sw, sh = rotated_extent(active, sensor_orientation)
        drawn_w, drawn_h = sw * scale, sh * scale
        center_x, center_y = view.center
        return center_x + (rx * scale - drawn_w / 2.0), center_y + (ry * scale - drawn_h / 2.0)

    def sensor_to_view(
        self,
        points: np.ndarray,
        active: ActiveArray,
        sensor_orientation: int,
        view: ViewSize,
    ) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        out = np.empty_like(pts)
        for i, (cx, cy) in enumerate(pts):
            out[i] = self.map_point(cx, cy, active, sensor_orientation, view)
        return out


def fill_center_affine(active: ActiveArray, sensor_orientation: int, view: ViewSize) -> np.ndarray:
    """2x3 affine A with [u, v]^T = A @ [cx, cy, 1]^T."""
    _check_inputs(active, view)
    o = check_orientation(sensor_orientation)
    s = fill_scale(active, o, view)
    sw, sh = rotated_extent(active, o)
    center_x, center_y = view.center
    ox = center_x - sw * s / 2.0
    oy = center_y - sh * s / 2.0
    w, h = float(active.width), float(active.height)

    if o == 90:
        # u = s*cy + ox,  v = s*(w - cx) + oy
        return np.array([[0.0, s, ox],
                         [-s, 0.0, s * w + oy]], dtype=np.float64)
    if o == 270:
        # u = s*(h - cy) + ox,  v = s*cx + oy
        return np.array([[0.0, -s, s * h + ox],
                         [s, 0.0, oy]], dtype=np.float64)
    return np.array([[s, 0.0, ox],
                     [0.0, s, oy]], dtype=np.float64)


@dataclass(frozen=True)
class AffineViewMapper:
    name: str = "affine"

    def sensor_to_view(
        self,
        points: np.ndarray,
        active: ActiveArray,
        sensor_orientation: int,
        view: ViewSize,
    ) -> np.ndarray:
        A = fill_center_affine(active, sensor_orientation, view)
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 1, 2)
        return cv2.transform(pts, A).reshape(-1, 2)


def make_mapper(name: str):
    if name == "analytic":
        return FillCenterMapper()
    if name == "affine":
        return AffineViewMapper()
    raise ConfigurationError(f"unknown view mapper: {name!r}")
