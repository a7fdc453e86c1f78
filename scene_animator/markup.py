"""Vector markup model built from the expression compiler's SVG output.

Parsing is lenient: malformed or missing attributes fall back to defaults
instead of raising, and unknown elements are ignored.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_ADVANCE_WIDTH = 500.0

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_GLYPH_RE = re.compile(r"<glyph\b[^>]*>", re.DOTALL)
_TEXT_RE = re.compile(r"<text\b[^>]*>.*?</text>", re.DOTALL)
_PATH_RE = re.compile(r"<path\b[^>]*>", re.DOTALL)
_LINE_RE = re.compile(r"<line\b[^>]*>", re.DOTALL)
_RECT_RE = re.compile(r"<rect\b[^>]*>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class Glyph:
    advance_width: float
    path_data: str


@dataclass(frozen=True)
class TextRun:
    x: float
    y: float
    text: str


@dataclass(frozen=True)
class FreePath:
    path_data: str
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    fill: Optional[str] = None
    transform: Optional[str] = None


@dataclass(frozen=True)
class FreeLine:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    transform: Optional[str] = None


@dataclass(frozen=True)
class FreeRect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    transform: Optional[str] = None


@dataclass
class VectorMarkupModel:
    glyphs: Dict[str, Glyph] = field(default_factory=dict)
    text_runs: List[TextRun] = field(default_factory=list)
    free_paths: List[FreePath] = field(default_factory=list)
    free_lines: List[FreeLine] = field(default_factory=list)
    free_rects: List[FreeRect] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.text_runs or self.free_paths or self.free_lines or self.free_rects)


def attribute_value(tag: str, name: str) -> Optional[str]:
    """Raw value of attribute ``name`` in an opening tag, quoted or bare."""
    pattern = rf"(?<![\w:-]){re.escape(name)}\s*=\s*(?:'([^']*)'|\"([^\"]*)\"|([^\s>/]+))"
    match = re.search(pattern, tag)
    if match is None:
        return None
    for group in match.groups():
        if group is not None:
            return group
    return None


def numeric_attribute(tag: str, name: str, default: Optional[float] = None) -> Optional[float]:
    value = attribute_value(tag, name)
    if value is None:
        return default
    match = _NUMBER_RE.match(value.strip())
    if match is None:
        return default
    return float(match.group(0))


def _style(tag: str, name: str) -> Optional[str]:
    value = attribute_value(tag, name)
    if value is not None:
        return value
    # style='fill:#000;stroke:none' is also emitted by some backends
    style = attribute_value(tag, "style")
    if style:
        for decl in style.split(";"):
            key, _, val = decl.partition(":")
            if key.strip() == name and val.strip():
                return val.strip()
    return None


def _style_number(tag: str, name: str) -> Optional[float]:
    value = _style(tag, name)
    if value is None:
        return None
    match = _NUMBER_RE.match(value.strip())
    return float(match.group(0)) if match else None


def parse_markup(source: str) -> VectorMarkupModel:
    model = VectorMarkupModel()

    for match in _GLYPH_RE.finditer(source):
        tag = match.group(0)
        key = attribute_value(tag, "unicode")
        if key is None:
            key = attribute_value(tag, "glyph-name")
        path_data = attribute_value(tag, "d")
        if not key or not path_data:
            continue
        advance = numeric_attribute(tag, "horiz-adv-x", DEFAULT_ADVANCE_WIDTH)
        model.glyphs[html.unescape(key)] = Glyph(advance_width=advance, path_data=path_data)

    for match in _TEXT_RE.finditer(source):
        element = match.group(0)
        opening = element[: element.find(">") + 1]
        inner = element[len(opening): element.rfind("</text>")]
        text = html.unescape(_TAG_RE.sub("", inner))
        if not text:
            continue
        model.text_runs.append(
            TextRun(
                x=numeric_attribute(opening, "x", 0.0),
                y=numeric_attribute(opening, "y", 0.0),
                text=text,
            )
        )

    for match in _PATH_RE.finditer(source):
        tag = match.group(0)
        path_data = attribute_value(tag, "d")
        if not path_data:
            continue
        model.free_paths.append(
            FreePath(
                path_data=path_data,
                stroke=_style(tag, "stroke"),
                stroke_width=_style_number(tag, "stroke-width"),
                fill=_style(tag, "fill"),
                transform=attribute_value(tag, "transform"),
            )
        )

    for match in _LINE_RE.finditer(source):
        tag = match.group(0)
        model.free_lines.append(
            FreeLine(
                x1=numeric_attribute(tag, "x1", 0.0),
                y1=numeric_attribute(tag, "y1", 0.0),
                x2=numeric_attribute(tag, "x2", 0.0),
                y2=numeric_attribute(tag, "y2", 0.0),
                stroke=_style(tag, "stroke"),
                stroke_width=_style_number(tag, "stroke-width"),
                transform=attribute_value(tag, "transform"),
            )
        )

    for match in _RECT_RE.finditer(source):
        tag = match.group(0)
        model.free_rects.append(
            FreeRect(
                x=numeric_attribute(tag, "x", 0.0),
                y=numeric_attribute(tag, "y", 0.0),
                width=numeric_attribute(tag, "width", 0.0),
                height=numeric_attribute(tag, "height", 0.0),
                fill=_style(tag, "fill"),
                stroke=_style(tag, "stroke"),
                stroke_width=_style_number(tag, "stroke-width"),
                transform=attribute_value(tag, "transform"),
            )
        )

    return model
