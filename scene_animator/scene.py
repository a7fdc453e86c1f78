from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .types import AnimationScene, CircleObject, Point2D, RectangleObject, TriangleObject


BEYOND_DURATION_PREFIX = "Animation extends beyond scene duration"


class SceneValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__(f"Scene validation failed: {', '.join(errors)}")
        self.errors = errors


def validate_scene(scene: AnimationScene) -> List[str]:
    """Collect every structural problem in ``scene``.

    Never raises and never mutates the scene. An empty list means valid.
    """
    errors: List[str] = []

    if scene.duration <= 0:
        errors.append("Scene duration must be positive")

    if not scene.objects:
        errors.append("Scene must contain at least one object")

    object_ids = set(scene.object_ids())
    for track in scene.animations:
        if track.object_id not in object_ids:
            errors.append(f"Animation references unknown object: {track.object_id}")
        if track.start_time < 0:
            errors.append(f"Animation start time cannot be negative: {track.object_id}")
        if track.start_time + track.duration > scene.duration:
            errors.append(f"{BEYOND_DURATION_PREFIX}: {track.object_id}")

    return errors


def split_validation(errors: List[str]) -> Tuple[List[str], List[str]]:
    """Split validator output into (fatal, warnings).

    A track running past the scene end only loses its tail, so it is
    reported without stopping the render.
    """
    fatal = [e for e in errors if not e.startswith(BEYOND_DURATION_PREFIX)]
    warnings = [e for e in errors if e.startswith(BEYOND_DURATION_PREFIX)]
    return fatal, warnings


def load_scene_data(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Scene file not found: {path}")
    with open(p, "r", encoding="utf-8") as f:
        if p.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    # Accept both a bare scene and the {"scene": ..., "config": ...} request form
    if isinstance(data, dict) and "scene" in data:
        return data["scene"]
    return data


def load_scene(path: Union[str, Path]) -> AnimationScene:
    return AnimationScene.model_validate(load_scene_data(path))


def create_simple_scene(duration: float, background_color: str = "#000000") -> AnimationScene:
    return AnimationScene(duration=duration, background_color=background_color)


def add_triangle(
    scene: AnimationScene,
    id: str,
    position: Point2D,
    size: float,
    color: str,
    stroke_color: Optional[str] = None,
    stroke_width: Optional[float] = None,
) -> TriangleObject:
    obj = TriangleObject(
        id=id,
        initial_position=position,
        properties={"size": size, "color": color, "strokeColor": stroke_color, "strokeWidth": stroke_width},
    )
    scene.objects.append(obj)
    return obj


def add_circle(
    scene: AnimationScene,
    id: str,
    position: Point2D,
    radius: float,
    color: str,
    stroke_color: Optional[str] = None,
    stroke_width: Optional[float] = None,
) -> CircleObject:
    obj = CircleObject(
        id=id,
        initial_position=position,
        properties={"radius": radius, "color": color, "strokeColor": stroke_color, "strokeWidth": stroke_width},
    )
    scene.objects.append(obj)
    return obj


def add_rectangle(
    scene: AnimationScene,
    id: str,
    position: Point2D,
    width: float,
    height: float,
    color: str,
    stroke_color: Optional[str] = None,
    stroke_width: Optional[float] = None,
) -> RectangleObject:
    obj = RectangleObject(
        id=id,
        initial_position=position,
        properties={
            "width": width,
            "height": height,
            "color": color,
            "strokeColor": stroke_color,
            "strokeWidth": stroke_width,
        },
    )
    scene.objects.append(obj)
    return obj
