"""Path-data interpreter for the SVG path grammar.

Each command letter consumes exactly one argument group. Repeated
implicit groups after a single letter (``L 1 2 3 4``) are not expanded,
only the first group is honoured. A command with too few numbers is
skipped and leaves the cursor where it was.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from .easing import lerp


Point = Tuple[float, float]

COMMAND_LETTERS = "MmLlHhVvCcSsQqTtAaZz"
_COMMAND_RE = re.compile(f"[{COMMAND_LETTERS}]")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "Z": 0}


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class CubicTo:
    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float


@dataclass(frozen=True)
class QuadTo:
    x1: float
    y1: float
    x: float
    y: float


@dataclass(frozen=True)
class ClosePath:
    pass


PathOp = Union[MoveTo, LineTo, CubicTo, QuadTo, ClosePath]


class PathSink(Protocol):
    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def bezier_curve_to(self, x1: float, y1: float, x2: float, y2: float, x: float, y: float) -> None: ...

    def quadratic_curve_to(self, x1: float, y1: float, x: float, y: float) -> None: ...

    def close_path(self) -> None: ...


def tokenize(path_data: str) -> List[Tuple[str, str]]:
    """Split path data into (letter, argument text) pairs.

    Text before the first command letter is dropped.
    """
    tokens: List[Tuple[str, str]] = []
    matches = list(_COMMAND_RE.finditer(path_data))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(path_data)
        tokens.append((match.group(0), path_data[match.end():end]))
    return tokens


def parse_numbers(text: str) -> List[float]:
    return [float(m.group(0)) for m in _NUMBER_RE.finditer(text)]


def interpret(path_data: str) -> List[PathOp]:
    ops: List[PathOp] = []
    if not path_data:
        return ops

    cx = cy = 0.0
    sx = sy = 0.0
    # Last control point of the previous cubic or quadratic, for S and T.
    last_cubic: Optional[Point] = None
    last_quad: Optional[Point] = None

    for letter, args in tokenize(path_data):
        command = letter.upper()
        if command not in ARITY:
            # Arcs are never emitted by the markup compiler.
            last_cubic = last_quad = None
            continue
        relative = letter.islower()
        nums = parse_numbers(args)
        if len(nums) < ARITY[command]:
            continue
        ox, oy = (cx, cy) if relative else (0.0, 0.0)
        next_cubic: Optional[Point] = None
        next_quad: Optional[Point] = None

        if command == "M":
            cx, cy = ox + nums[0], oy + nums[1]
            sx, sy = cx, cy
            ops.append(MoveTo(cx, cy))
        elif command == "L":
            cx, cy = ox + nums[0], oy + nums[1]
            ops.append(LineTo(cx, cy))
        elif command == "H":
            cx = ox + nums[0]
            ops.append(LineTo(cx, cy))
        elif command == "V":
            cy = oy + nums[0]
            ops.append(LineTo(cx, cy))
        elif command == "C":
            x1, y1 = ox + nums[0], oy + nums[1]
            x2, y2 = ox + nums[2], oy + nums[3]
            cx, cy = ox + nums[4], oy + nums[5]
            ops.append(CubicTo(x1, y1, x2, y2, cx, cy))
            next_cubic = (x2, y2)
        elif command == "S":
            x1, y1 = _reflect(last_cubic, cx, cy)
            x2, y2 = ox + nums[0], oy + nums[1]
            cx, cy = ox + nums[2], oy + nums[3]
            ops.append(CubicTo(x1, y1, x2, y2, cx, cy))
            next_cubic = (x2, y2)
        elif command == "Q":
            x1, y1 = ox + nums[0], oy + nums[1]
            cx, cy = ox + nums[2], oy + nums[3]
            ops.append(QuadTo(x1, y1, cx, cy))
            next_quad = (x1, y1)
        elif command == "T":
            x1, y1 = _reflect(last_quad, cx, cy)
            cx, cy = ox + nums[0], oy + nums[1]
            ops.append(QuadTo(x1, y1, cx, cy))
            next_quad = (x1, y1)
        else:  # Z
            ops.append(LineTo(sx, sy))
            ops.append(ClosePath())
            cx, cy = sx, sy

        last_cubic, last_quad = next_cubic, next_quad

    return ops


def _reflect(control: Optional[Point], cx: float, cy: float) -> Point:
    if control is None:
        return (cx, cy)
    return (2 * cx - control[0], 2 * cy - control[1])


def replay(ops: Sequence[PathOp], sink: PathSink) -> None:
    for op in ops:
        if isinstance(op, MoveTo):
            sink.move_to(op.x, op.y)
        elif isinstance(op, LineTo):
            sink.line_to(op.x, op.y)
        elif isinstance(op, CubicTo):
            sink.bezier_curve_to(op.x1, op.y1, op.x2, op.y2, op.x, op.y)
        elif isinstance(op, QuadTo):
            sink.quadratic_curve_to(op.x1, op.y1, op.x, op.y)
        elif isinstance(op, ClosePath):
            sink.close_path()
        else:
            raise TypeError(f"Unknown path op: {type(op).__name__}")


def cubic_points(p0: Point, p1: Point, p2: Point, p3: Point, segments: int) -> List[Point]:
    """Sample a cubic Bezier, excluding ``p0`` and ending exactly at ``p3``."""
    points: List[Point] = []
    for i in range(1, segments + 1):
        t = i / segments
        a = (lerp(p0[0], p1[0], t), lerp(p0[1], p1[1], t))
        b = (lerp(p1[0], p2[0], t), lerp(p1[1], p2[1], t))
        c = (lerp(p2[0], p3[0], t), lerp(p2[1], p3[1], t))
        d = (lerp(a[0], b[0], t), lerp(a[1], b[1], t))
        e = (lerp(b[0], c[0], t), lerp(b[1], c[1], t))
        points.append((lerp(d[0], e[0], t), lerp(d[1], e[1], t)))
    points[-1] = p3
    return points


def quad_points(p0: Point, p1: Point, p2: Point, segments: int) -> List[Point]:
    points: List[Point] = []
    for i in range(1, segments + 1):
        t = i / segments
        a = (lerp(p0[0], p1[0], t), lerp(p0[1], p1[1], t))
        b = (lerp(p1[0], p2[0], t), lerp(p1[1], p2[1], t))
        points.append((lerp(a[0], b[0], t), lerp(a[1], b[1], t)))
    points[-1] = p2
    return points


def curve_segments(points: Sequence[Point]) -> int:
    """Segment count for flattening, from the control polygon length."""
    length = 0.0
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        length += ((x1 - x0) ** 2 + (y1 - y0) ** 2) ** 0.5
    return max(4, min(64, int(length / 3)))


@lru_cache(maxsize=2048)
def interpret_cached(path_data: str) -> Tuple[PathOp, ...]:
    """Memoised ``interpret`` for path data that is replayed every frame."""
    return tuple(interpret(path_data))
