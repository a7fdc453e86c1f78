"""Pillow-backed drawing surface with a canvas-style API.

One Surface is owned by a FrameGenerator and reused for every frame. Paths
are built in device space (each point is transformed when it is added),
curves are flattened to polylines, and fills use the even-odd rule.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .easing import clamp
from .path import Point, cubic_points, curve_segments, quad_points
from .utils import parse_color


class Surface:
    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 255))
        self.fill_style = "#ffffff"
        self.stroke_style = "#ffffff"
        self.line_width = 1.0
        self.global_alpha = 1.0
        self._matrix = np.identity(3)
        self._stack: List[Tuple[np.ndarray, str, str, float, float]] = []
        self._subpaths: List[List[Point]] = []
        self._closed: List[bool] = []

    # State

    def save(self) -> None:
        self._stack.append(
            (self._matrix.copy(), self.fill_style, self.stroke_style, self.line_width, self.global_alpha)
        )

    def restore(self) -> None:
        if not self._stack:
            return
        self._matrix, self.fill_style, self.stroke_style, self.line_width, self.global_alpha = self._stack.pop()

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def translate(self, tx: float, ty: float) -> None:
        self._matrix = self._matrix @ np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])

    def scale(self, sx: float, sy: float) -> None:
        self._matrix = self._matrix @ np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])

    def rotate(self, angle: float) -> None:
        c, s = math.cos(angle), math.sin(angle)
        self._matrix = self._matrix @ np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    def reset_transform(self) -> None:
        self._matrix = np.identity(3)
        self._stack.clear()

    def _device(self, x: float, y: float) -> Point:
        m = self._matrix
        return (m[0, 0] * x + m[0, 1] * y + m[0, 2], m[1, 0] * x + m[1, 1] * y + m[1, 2])

    def _linear_scale(self) -> float:
        return math.sqrt(abs(float(np.linalg.det(self._matrix[:2, :2]))))

    # Path building

    def begin_path(self) -> None:
        self._subpaths = []
        self._closed = []

    def _current(self) -> Optional[List[Point]]:
        return self._subpaths[-1] if self._subpaths else None

    def move_to(self, x: float, y: float) -> None:
        self._subpaths.append([self._device(x, y)])
        self._closed.append(False)

    def line_to(self, x: float, y: float) -> None:
        current = self._current()
        if current is None:
            self.move_to(x, y)
            return
        current.append(self._device(x, y))

    def bezier_curve_to(self, x1: float, y1: float, x2: float, y2: float, x: float, y: float) -> None:
        current = self._current()
        if current is None:
            self.move_to(x1, y1)
            current = self._subpaths[-1]
        p0 = current[-1]
        p1, p2, p3 = self._device(x1, y1), self._device(x2, y2), self._device(x, y)
        current.extend(cubic_points(p0, p1, p2, p3, curve_segments([p0, p1, p2, p3])))

    def quadratic_curve_to(self, x1: float, y1: float, x: float, y: float) -> None:
        current = self._current()
        if current is None:
            self.move_to(x1, y1)
            current = self._subpaths[-1]
        p0 = current[-1]
        p1, p2 = self._device(x1, y1), self._device(x, y)
        current.extend(quad_points(p0, p1, p2, curve_segments([p0, p1, p2])))

    def close_path(self) -> None:
        current = self._current()
        if current is None:
            return
        self._closed[-1] = True
        # The next segment starts a fresh subpath at the closing point.
        self._subpaths.append([current[0]])
        self._closed.append(False)

    def rect(self, x: float, y: float, width: float, height: float) -> None:
        self.move_to(x, y)
        self.line_to(x + width, y)
        self.line_to(x + width, y + height)
        self.line_to(x, y + height)
        self.close_path()

    def arc(self, cx: float, cy: float, radius: float, start: float, end: float) -> None:
        device_radius = radius * self._linear_scale()
        segments = max(16, min(256, int(abs(end - start) * device_radius / 2)))
        for i in range(segments + 1):
            a = start + (end - start) * i / segments
            self.line_to(cx + radius * math.cos(a), cy + radius * math.sin(a))

    def path_bounds(self) -> Optional[Tuple[float, float, float, float]]:
        points = [p for sub in self._subpaths for p in sub]
        if not points:
            return None
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return (min(xs), min(ys), max(xs), max(ys))

    # Painting

    def fill(self) -> None:
        self._fill_polygons(self._subpaths, self.fill_style)

    def stroke(self) -> None:
        lines = []
        for sub, closed in zip(self._subpaths, self._closed):
            lines.append(sub + [sub[0]] if closed else sub)
        self._stroke_polylines(lines, self.stroke_style)

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        self._fill_polygons([self._rect_points(x, y, width, height)], self.fill_style)

    def stroke_rect(self, x: float, y: float, width: float, height: float) -> None:
        points = self._rect_points(x, y, width, height)
        self._stroke_polylines([points + [points[0]]], self.stroke_style)

    def clear(self, color: str) -> None:
        r, g, b, _ = parse_color(color, default=(0, 0, 0, 255))
        self.image.paste((r, g, b, 255), (0, 0, self.width, self.height))

    def draw_text(self, text: str, x: float, y: float, size: float) -> None:
        """Draw ``text`` with the default font, baseline-anchored at (x, y).

        Only the position and overall scale of the current transform apply.
        """
        if not text:
            return
        font_size = max(1, int(round(size * self._linear_scale())))
        font = ImageFont.load_default(size=font_size)
        left, top, right, bottom = font.getbbox(text, anchor="ls")
        width, height = right - left + 1, bottom - top + 1
        if width <= 0 or height <= 0:
            return
        layer = Image.new("L", (width, height), 0)
        ImageDraw.Draw(layer).text((-left, -top), text, fill=255, font=font, anchor="ls")
        px, py = self._device(x, y)
        self._composite(np.asarray(layer) > 0, int(round(px)) + left, int(round(py)) + top, self.fill_style)

    def get_rgba(self) -> bytes:
        return self.image.tobytes()

    def _rect_points(self, x: float, y: float, width: float, height: float) -> List[Point]:
        return [
            self._device(x, y),
            self._device(x + width, y),
            self._device(x + width, y + height),
            self._device(x, y + height),
        ]

    def _region(self, points: Sequence[Point], pad: float = 0.0) -> Optional[Tuple[int, int, int, int]]:
        if not points:
            return None
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        x0 = max(0, int(math.floor(min(xs) - pad)))
        y0 = max(0, int(math.floor(min(ys) - pad)))
        x1 = min(self.width, int(math.ceil(max(xs) + pad)) + 1)
        y1 = min(self.height, int(math.ceil(max(ys) + pad)) + 1)
        if x1 <= x0 or y1 <= y0:
            return None
        return (x0, y0, x1, y1)

    def _fill_polygons(self, polygons: Sequence[List[Point]], color: str) -> None:
        polygons = [p for p in polygons if len(p) >= 3]
        region = self._region([pt for p in polygons for pt in p])
        if region is None:
            return
        x0, y0, x1, y1 = region
        mask = np.zeros((y1 - y0, x1 - x0), dtype=bool)
        for polygon in polygons:
            layer = Image.new("L", (x1 - x0, y1 - y0), 0)
            ImageDraw.Draw(layer).polygon([(px - x0, py - y0) for px, py in polygon], fill=255)
            mask ^= np.asarray(layer) > 0
        self._composite(mask, x0, y0, color)

    def _stroke_polylines(self, lines: Sequence[List[Point]], color: str) -> None:
        lines = [line for line in lines if len(line) >= 2]
        width = max(1, int(round(self.line_width * self._linear_scale())))
        region = self._region([pt for line in lines for pt in line], pad=width)
        if region is None:
            return
        x0, y0, x1, y1 = region
        layer = Image.new("L", (x1 - x0, y1 - y0), 0)
        draw = ImageDraw.Draw(layer)
        for line in lines:
            draw.line([(px - x0, py - y0) for px, py in line], fill=255, width=width, joint="curve")
        self._composite(np.asarray(layer) > 0, x0, y0, color)

    def _composite(self, mask: np.ndarray, x0: int, y0: int, color: str) -> None:
        rgba = parse_color(color)
        if rgba is None:
            return
        r, g, b, a = rgba
        alpha = (a / 255.0) * clamp(self.global_alpha, 0.0, 1.0)
        if alpha <= 0.0 or not mask.any():
            return
        # Crop the mask to the visible part of the surface.
        h, w = mask.shape
        left, top = max(0, -x0), max(0, -y0)
        right, bottom = min(w, self.width - x0), min(h, self.height - y0)
        if right <= left or bottom <= top:
            return
        mask = mask[top:bottom, left:right]
        alpha_channel = (mask.astype(np.uint8) * int(round(255 * alpha))).astype(np.uint8)
        layer = Image.new("RGBA", (mask.shape[1], mask.shape[0]), (r, g, b, 0))
        layer.putalpha(Image.fromarray(alpha_channel))
        self.image.alpha_composite(layer, dest=(x0 + left, y0 + top))
