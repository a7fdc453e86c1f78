from __future__ import annotations

from typing import Callable, Dict

from .types import Point2D


EasingFunction = Callable[[float], float]


def clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def lerp_point(start: Point2D, end: Point2D, t: float) -> Point2D:
    return Point2D(x=lerp(start.x, end.x, t), y=lerp(start.y, end.y, t))


def normalize(value: float, min_value: float, max_value: float) -> float:
    return (value - min_value) / (max_value - min_value)


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    return lerp(out_min, out_max, normalize(value, in_min, in_max))


def linear(t: float) -> float:
    return clamp(t, 0.0, 1.0)


def ease_in_quad(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    return t * t


def ease_out_quad(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    return t * (2 - t)


def ease_in_out_quad(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    if t < 0.5:
        return 2 * t * t
    return -1 + (4 - 2 * t) * t


def ease_in_cubic(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    return t * t * t


def ease_out_cubic(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    t -= 1
    return t * t * t + 1


def ease_in_out_cubic(t: float) -> float:
    t = clamp(t, 0.0, 1.0)
    if t < 0.5:
        return 4 * t * t * t
    t -= 1
    return 4 * t * t * t + 1


EASING_FUNCTIONS: Dict[str, EasingFunction] = {
    "linear": linear,
    "easeInQuad": ease_in_quad,
    "easeOutQuad": ease_out_quad,
    "easeInOutQuad": ease_in_out_quad,
    "easeInCubic": ease_in_cubic,
    "easeOutCubic": ease_out_cubic,
    "easeInOutCubic": ease_in_out_cubic,
}

# Track easing names resolve to the cubic family.
TRACK_EASINGS: Dict[str, EasingFunction] = {
    "linear": linear,
    "easeIn": ease_in_cubic,
    "easeOut": ease_out_cubic,
    "easeInOut": ease_in_out_cubic,
}


def get_easing(name: str) -> EasingFunction:
    """Look up an easing by track name or full name, defaulting to linear."""
    if name in TRACK_EASINGS:
        return TRACK_EASINGS[name]
    return EASING_FUNCTIONS.get(name, linear)
