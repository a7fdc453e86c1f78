from __future__ import annotations

import math
import re
from typing import List, Optional, Tuple

from .markup import FreeLine, FreePath, FreeRect, VectorMarkupModel
from .path import interpret_cached, parse_numbers, replay
from .surface import Surface
from .types import Point2D


DEFAULT_FOREGROUND = "#ffffff"
# Glyph outlines live in a y-up font space of 1000 units per em.
GLYPH_SCALE = 0.01
FALLBACK_FONT_SIZE = 10.0
FALLBACK_ADVANCE = 5.0

_TRANSFORM_RE = re.compile(r"(translate|scale|rotate)\s*\(([^)]*)\)")

TransformStep = Tuple[str, Tuple[float, ...]]


def parse_transform(transform: Optional[str]) -> List[TransformStep]:
    """Parse translate/scale/rotate steps in the order they appear.

    Malformed steps are dropped, so an unparseable attribute is the identity.
    Rotation angles stay in degrees.
    """
    steps: List[TransformStep] = []
    if not transform:
        return steps
    for name, args in _TRANSFORM_RE.findall(transform):
        nums = parse_numbers(args)
        if name == "translate" and nums:
            steps.append(("translate", (nums[0], nums[1] if len(nums) > 1 else 0.0)))
        elif name == "scale" and nums:
            steps.append(("scale", (nums[0], nums[1] if len(nums) > 1 else nums[0])))
        elif name == "rotate" and nums:
            steps.append(("rotate", (nums[0],)))
    return steps


def apply_transform(surface: Surface, transform: Optional[str]) -> None:
    for name, args in parse_transform(transform):
        if name == "translate":
            surface.translate(args[0], args[1])
        elif name == "scale":
            surface.scale(args[0], args[1])
        else:
            surface.rotate(math.radians(args[0]))


def _visible(paint: Optional[str]) -> bool:
    return bool(paint) and paint != "none"


def _draw_path(surface: Surface, element: FreePath, foreground: str) -> None:
    surface.save()
    apply_transform(surface, element.transform)
    surface.begin_path()
    replay(interpret_cached(element.path_data), surface)
    if _visible(element.fill):
        surface.fill_style = element.fill  # type: ignore[assignment]
        surface.fill()
    if _visible(element.stroke):
        surface.stroke_style = element.stroke  # type: ignore[assignment]
        surface.line_width = element.stroke_width or 1.0
        surface.stroke()
    elif element.fill is None:
        surface.fill_style = foreground
        surface.fill()
    surface.restore()


def _draw_line(surface: Surface, element: FreeLine, foreground: str) -> None:
    if element.stroke == "none":
        return
    surface.save()
    apply_transform(surface, element.transform)
    surface.begin_path()
    surface.move_to(element.x1, element.y1)
    surface.line_to(element.x2, element.y2)
    surface.stroke_style = element.stroke or foreground
    surface.line_width = element.stroke_width or 1.0
    surface.stroke()
    surface.restore()


def _draw_rect(surface: Surface, element: FreeRect, foreground: str) -> None:
    surface.save()
    apply_transform(surface, element.transform)
    if _visible(element.fill):
        surface.fill_style = element.fill  # type: ignore[assignment]
        surface.fill_rect(element.x, element.y, element.width, element.height)
    if _visible(element.stroke):
        surface.stroke_style = element.stroke  # type: ignore[assignment]
        surface.line_width = element.stroke_width or 1.0
        surface.stroke_rect(element.x, element.y, element.width, element.height)
    elif element.fill is None:
        surface.fill_style = foreground
        surface.fill_rect(element.x, element.y, element.width, element.height)
    surface.restore()


def _advance(model: VectorMarkupModel, char: str) -> float:
    glyph = model.glyphs.get(char)
    if glyph is None:
        return FALLBACK_ADVANCE
    return glyph.advance_width * GLYPH_SCALE


def text_extent(model: VectorMarkupModel) -> Optional[Tuple[float, float]]:
    """Horizontal (min, max) covered by all text runs, or None without text."""
    min_x = math.inf
    max_x = -math.inf
    for run in model.text_runs:
        x = run.x
        for char in run.text:
            step = _advance(model, char)
            min_x = min(min_x, x)
            max_x = max(max_x, x + step)
            x += step
    if min_x == math.inf:
        return None
    return (min_x, max_x)


def render_markup(
    model: VectorMarkupModel,
    anchor: Point2D,
    scale: float,
    surface: Surface,
    center: bool = True,
    foreground: str = DEFAULT_FOREGROUND,
) -> None:
    """Draw ``model`` with its origin at ``anchor``, uniformly scaled.

    Paths, lines and rectangles are drawn first, then text runs glyph by
    glyph. With ``center`` the text is shifted so its horizontal extent is
    centred on the anchor.
    """
    surface.save()
    surface.translate(anchor.x, anchor.y)
    surface.scale(scale, scale)

    for path_element in model.free_paths:
        _draw_path(surface, path_element, foreground)
    for line_element in model.free_lines:
        _draw_line(surface, line_element, foreground)
    for rect_element in model.free_rects:
        _draw_rect(surface, rect_element, foreground)

    offset = 0.0
    if center:
        extent = text_extent(model)
        if extent is not None:
            offset = -(extent[0] + extent[1]) / 2

    surface.fill_style = foreground
    for run in model.text_runs:
        x = run.x + offset
        for char in run.text:
            glyph = model.glyphs.get(char)
            if glyph is not None:
                surface.save()
                surface.translate(x, run.y)
                surface.scale(GLYPH_SCALE, -GLYPH_SCALE)
                surface.begin_path()
                replay(interpret_cached(glyph.path_data), surface)
                surface.fill()
                surface.restore()
            else:
                surface.draw_text(char, x, run.y, FALLBACK_FONT_SIZE)
            x += _advance(model, char)

    surface.restore()
