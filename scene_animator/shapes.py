from __future__ import annotations

import math
from typing import Tuple

from .surface import Surface
from .types import (
    CircleObject,
    ObjectState,
    RectangleObject,
    SceneObject,
    ShapeStyle,
    TriangleObject,
)


DEFAULT_STROKE_COLOR = "#ffffff"
DEFAULT_STROKE_WIDTH = 2.0

# sin(60deg): base corners of an equilateral triangle with apex at (0, -size)
_SIN60 = 0.866


def _apply_style(surface: Surface, fill_color: str, stroke_color: str, stroke_width: float) -> None:
    surface.fill_style = fill_color
    surface.stroke_style = stroke_color
    surface.line_width = stroke_width


def draw_triangle(surface: Surface, size: float, fill_color: str, stroke_color: str, stroke_width: float) -> None:
    _apply_style(surface, fill_color, stroke_color, stroke_width)
    surface.begin_path()
    surface.move_to(0.0, -size)
    surface.line_to(-size * _SIN60, size * 0.5)
    surface.line_to(size * _SIN60, size * 0.5)
    surface.close_path()
    surface.fill()
    surface.stroke()


def draw_circle(surface: Surface, radius: float, fill_color: str, stroke_color: str, stroke_width: float) -> None:
    _apply_style(surface, fill_color, stroke_color, stroke_width)
    surface.begin_path()
    surface.arc(0.0, 0.0, radius, 0.0, math.pi * 2)
    surface.close_path()
    surface.fill()
    surface.stroke()


def draw_rectangle(
    surface: Surface, width: float, height: float, fill_color: str, stroke_color: str, stroke_width: float
) -> None:
    _apply_style(surface, fill_color, stroke_color, stroke_width)
    surface.fill_rect(-width / 2, -height / 2, width, height)
    surface.stroke_rect(-width / 2, -height / 2, width, height)


def _stroke_of(style: ShapeStyle, state: ObjectState) -> Tuple[str, float]:
    color = state.stroke_color or style.stroke_color or DEFAULT_STROKE_COLOR
    width = style.stroke_width if style.stroke_width is not None else DEFAULT_STROKE_WIDTH
    return color, width


def draw_object(surface: Surface, obj: SceneObject, state: ObjectState) -> None:
    """Draw ``obj`` at the origin; the caller sets up its transform."""
    stroke_color, stroke_width = _stroke_of(obj.properties, state)
    if isinstance(obj, TriangleObject):
        draw_triangle(surface, obj.properties.size, state.fill_color, stroke_color, stroke_width)
    elif isinstance(obj, CircleObject):
        draw_circle(surface, obj.properties.radius, state.fill_color, stroke_color, stroke_width)
    elif isinstance(obj, RectangleObject):
        draw_rectangle(
            surface, obj.properties.width, obj.properties.height, state.fill_color, stroke_color, stroke_width
        )
    else:
        raise TypeError(f"Unknown scene object kind: {type(obj).__name__}")
