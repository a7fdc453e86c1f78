"""Timeline evaluation: object state at an arbitrary scene time.

Tracks for an object are applied in declaration order and each one
overwrites the property it targets, so when two tracks on the same
property are both active the later one wins. Tracks are never blended.
"""
from __future__ import annotations

import math
import re
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .easing import get_easing, lerp, lerp_point
from .types import (
    AnimationScene,
    AnimationTrack,
    ColorPayload,
    ColorTrack,
    FadeTrack,
    MoveTrack,
    ObjectState,
    Point2D,
    RotatePayload,
    RotateTrack,
    ScalePayload,
    ScaleTrack,
    SceneObject,
)


TrackValue = Union[Point2D, float, str]

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def hex_to_rgb(value: str) -> Optional[Tuple[int, int, int]]:
    match = _HEX_RE.match(value)
    if match is None:
        return None
    return (int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16))


def lerp_color(start: str, end: str, t: float) -> str:
    """Blend two 6-digit hex colours, returning ``rgb(r, g, b)``.

    Anything that is not 6-digit hex leaves the start colour untouched.
    """
    a = hex_to_rgb(start)
    b = hex_to_rgb(end)
    if a is None or b is None:
        return start
    r, g, bl = (int(round(lerp(a[i], b[i], t))) for i in range(3))
    return f"rgb({r}, {g}, {bl})"


def _as_point(value: Union[Point2D, float]) -> Point2D:
    if isinstance(value, Point2D):
        return value
    return Point2D(x=float(value), y=float(value))


def _rotate_at(payload: RotatePayload, progress: float) -> float:
    if payload.rotations:
        return payload.from_ + progress * payload.rotations * math.pi * 2
    return lerp(payload.from_, payload.to, progress)


def _scale_at(payload: ScalePayload, progress: float) -> Point2D:
    if not isinstance(payload.from_, Point2D) and not isinstance(payload.to, Point2D):
        value = lerp(payload.from_, payload.to, progress)
        return Point2D(x=value, y=value)
    return lerp_point(_as_point(payload.from_), _as_point(payload.to), progress)


def track_end_value(track: AnimationTrack) -> TrackValue:
    if isinstance(track, MoveTrack):
        return track.payload.to
    if isinstance(track, RotateTrack):
        payload = track.payload
        if payload.rotations:
            return payload.from_ + payload.rotations * math.pi * 2
        return payload.to
    if isinstance(track, ScaleTrack):
        return _as_point(track.payload.to)
    if isinstance(track, FadeTrack):
        return track.payload.to
    if isinstance(track, ColorTrack):
        return track.payload.to
    raise TypeError(f"Unknown animation track: {type(track).__name__}")


def interpolate_track(track: AnimationTrack, progress: float) -> TrackValue:
    if isinstance(track, MoveTrack):
        return lerp_point(track.payload.from_, track.payload.to, progress)
    if isinstance(track, RotateTrack):
        return _rotate_at(track.payload, progress)
    if isinstance(track, ScaleTrack):
        return _scale_at(track.payload, progress)
    if isinstance(track, FadeTrack):
        return lerp(track.payload.from_, track.payload.to, progress)
    if isinstance(track, ColorTrack):
        return lerp_color(track.payload.from_, track.payload.to, progress)
    raise TypeError(f"Unknown animation track: {type(track).__name__}")


def evaluate_track(track: AnimationTrack, time: float) -> Optional[TrackValue]:
    """Value a track contributes at ``time``, or None before it starts."""
    if time < track.start_time:
        return None
    if time >= track.start_time + track.duration:
        return track_end_value(track)
    progress = (time - track.start_time) / track.duration
    eased = get_easing(track.easing)(progress)
    return interpolate_track(track, eased)


def initial_state(obj: SceneObject) -> ObjectState:
    return ObjectState(
        position=obj.initial_position,
        rotation=obj.initial_rotation,
        scale=obj.initial_scale,
        opacity=obj.initial_opacity,
        fill_color=obj.properties.fill_color,
        stroke_color=obj.properties.stroke_color,
    )


def _apply(state: ObjectState, track: AnimationTrack, value: TrackValue) -> None:
    if isinstance(track, MoveTrack):
        state.position = value  # type: ignore[assignment]
    elif isinstance(track, RotateTrack):
        state.rotation = value  # type: ignore[assignment]
    elif isinstance(track, ScaleTrack):
        state.scale = value  # type: ignore[assignment]
    elif isinstance(track, FadeTrack):
        state.opacity = value  # type: ignore[assignment]
    elif isinstance(track, ColorTrack):
        if track.payload.target == "fill":
            state.fill_color = value  # type: ignore[assignment]
        else:
            state.stroke_color = value  # type: ignore[assignment]
    else:
        raise TypeError(f"Unknown animation track: {type(track).__name__}")


def evaluate_object(obj: SceneObject, animations: Iterable[AnimationTrack], time: float) -> ObjectState:
    state = initial_state(obj)
    for track in animations:
        if track.object_id != obj.id:
            continue
        value = evaluate_track(track, time)
        if value is None:
            continue
        _apply(state, track, value)
    return state


def evaluate(scene: AnimationScene, object_id: str, time: float) -> ObjectState:
    for obj in scene.objects:
        if obj.id == object_id:
            return evaluate_object(obj, scene.animations, time)
    raise KeyError(f"Unknown object: {object_id}")


def evaluate_scene(scene: AnimationScene, time: float) -> Dict[str, ObjectState]:
    return {obj.id: evaluate_object(obj, scene.animations, time) for obj in scene.objects}


def create_move_animation(
    object_id: str,
    from_: Point2D,
    to: Point2D,
    start_time: float,
    duration: float,
    easing: str = "easeInOut",
) -> MoveTrack:
    return MoveTrack(
        object_id=object_id,
        start_time=start_time,
        duration=duration,
        easing=easing,
        payload={"from": from_, "to": to},
    )


def create_rotate_animation(
    object_id: str,
    rotations: float,
    start_time: float,
    duration: float,
    easing: str = "linear",
) -> RotateTrack:
    return RotateTrack(
        object_id=object_id,
        start_time=start_time,
        duration=duration,
        easing=easing,
        payload={"from": 0.0, "to": 0.0, "rotations": rotations},
    )


def create_scale_animation(
    object_id: str,
    from_: float,
    to: float,
    start_time: float,
    duration: float,
    easing: str = "easeInOut",
) -> ScaleTrack:
    return ScaleTrack(
        object_id=object_id,
        start_time=start_time,
        duration=duration,
        easing=easing,
        payload={"from": from_, "to": to},
    )


def create_fade_animation(
    object_id: str,
    from_: float,
    to: float,
    start_time: float,
    duration: float,
    easing: str = "easeOut",
) -> FadeTrack:
    return FadeTrack(
        object_id=object_id,
        start_time=start_time,
        duration=duration,
        easing=easing,
        payload={"from": from_, "to": to},
    )


def create_color_animation(
    object_id: str,
    from_: str,
    to: str,
    start_time: float,
    duration: float,
    target: str = "fill",
    easing: str = "linear",
) -> ColorTrack:
    return ColorTrack(
        object_id=object_id,
        start_time=start_time,
        duration=duration,
        easing=easing,
        payload=ColorPayload(from_=from_, to=to, target=target),
    )


def tracks_for(scene: AnimationScene, object_id: str) -> List[AnimationTrack]:
    return [track for track in scene.animations if track.object_id == object_id]
