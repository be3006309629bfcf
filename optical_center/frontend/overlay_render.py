# optical_center/frontend/overlay_render.py
# Debug rendering of a snapshot: red cross at screen center, green cross at optical center.
from __future__ import annotations
import numpy as np
import cv2

from optical_center.core.overlay import Snapshot, format_summary

RED = (0, 0, 255)      # BGR
GREEN = (0, 255, 0)
YELLOW = (0, 255, 255)
WHITE = (255, 255, 255)


def draw_cross(img: np.ndarray, x: float, y: float, color, half: int = 40, thickness: int = 5) -> None:
    xi, yi = int(round(x)), int(round(y))
    cv2.line(img, (xi - half, yi), (xi + half, yi), color, thickness)
    cv2.line(img, (xi, yi - half), (xi, yi + half), color, thickness)


def render_overlay(info: Snapshot, width: int, height: int, background: np.ndarray | None = None) -> np.ndarray:
    if background is None:
        img = np.zeros((height, width, 3), dtype=np.uint8)
    else:
        img = cv2.resize(background, (width, height))
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

    draw_cross(img, info.screen_cx, info.screen_cy, RED)
    draw_cross(img, info.optical_cx, info.optical_cy, GREEN)

    lines = format_summary(info)
    y = height - 20 - 30 * (len(lines) - 1)
    for i, line in enumerate(lines):
        # Hershey fonts have no degree sign
        text = line.replace("°", " deg")
        color = WHITE if i == 0 else YELLOW
        cv2.putText(img, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)
        y += 30
    return img
