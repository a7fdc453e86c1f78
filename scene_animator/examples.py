from __future__ import annotations

from typing import Callable, Dict

from .scene import add_circle, add_rectangle, add_triangle, create_simple_scene
from .timeline import (
    create_fade_animation,
    create_move_animation,
    create_rotate_animation,
    create_scale_animation,
)
from .types import AnimationScene, MarkupOverlay, Point2D


def _p(x: float, y: float) -> Point2D:
    return Point2D(x=x, y=y)


def triangle_formation() -> AnimationScene:
    """Three triangles fade in one after another, then spin."""
    scene = create_simple_scene(4.0, background_color="#1a1a2e")
    corners = [
        ("tri-top", _p(960, 200), "#ff6b6b"),
        ("tri-left", _p(500, 600), "#4ecdc4"),
        ("tri-right", _p(1420, 600), "#45b7d1"),
    ]
    for object_id, position, color in corners:
        obj = add_triangle(scene, object_id, position, 80, color, "#ffffff", 2)
        obj.initial_opacity = 0.0

    for delay, (object_id, _, _) in zip((0.0, 0.5, 1.0), corners):
        scene.animations.append(create_fade_animation(object_id, 0.0, 1.0, delay, 1.0))
    scene.animations.append(create_rotate_animation("tri-top", 1, 1.5, 2.5))
    scene.animations.append(create_rotate_animation("tri-left", -1, 1.5, 2.5))
    scene.animations.append(create_rotate_animation("tri-right", 1, 1.5, 2.5))
    return scene


def geometric_dance() -> AnimationScene:
    """A pulsing circle, two spinning triangles and corner squares, with a formula."""
    scene = create_simple_scene(6.0, background_color="#0c0c0c")
    add_circle(scene, "center-circle", _p(960, 540), 100, "#f39c12", "#ffffff", 3)
    add_triangle(scene, "orbit-tri-1", _p(1160, 540), 40, "#e74c3c", "#ffffff", 2)
    add_triangle(scene, "orbit-tri-2", _p(760, 540), 40, "#3498db", "#ffffff", 2)
    add_rectangle(scene, "corner-rect-1", _p(100, 100), 60, 60, "#9b59b6", "#ffffff", 2)
    add_rectangle(scene, "corner-rect-2", _p(1820, 980), 60, 60, "#2ecc71", "#ffffff", 2)

    scene.animations.extend(
        [
            create_scale_animation("center-circle", 1.0, 1.3, 0, 6),
            create_move_animation("orbit-tri-1", _p(1160, 540), _p(960, 340), 0, 6, easing="linear"),
            create_move_animation("orbit-tri-2", _p(760, 540), _p(960, 740), 0, 6, easing="linear"),
            create_rotate_animation("orbit-tri-1", 4, 0, 6),
            create_rotate_animation("orbit-tri-2", -4, 0, 6),
            create_move_animation("corner-rect-1", _p(100, 100), _p(800, 400), 1, 2),
            create_move_animation("corner-rect-1", _p(800, 400), _p(100, 100), 4, 2),
            create_move_animation("corner-rect-2", _p(1820, 980), _p(1120, 680), 1.5, 2),
            create_move_animation("corner-rect-2", _p(1120, 680), _p(1820, 980), 4.5, 1.5),
        ]
    )
    scene.markup_overlay = MarkupOverlay(
        source=r"\sum_{n=1}^{\infty} \frac{1}{n^2} = \frac{\pi^2}{6}",
        anchor=_p(600, 150),
        scale=4,
    )
    return scene


# (object id, radius, colour, [(start, duration, easing, from, to), ...])
_BOUNCES = [
    (
        "ball-1",
        30,
        "#ff4757",
        [
            (0.0, 1.0, "easeIn", (200, 200), (300, 800)),
            (1.0, 0.8, "easeOut", (300, 800), (500, 300)),
            (1.8, 0.6, "easeIn", (500, 300), (700, 700)),
            (2.4, 0.4, "easeOut", (700, 700), (900, 450)),
            (2.8, 2.2, "easeIn", (900, 450), (1400, 850)),
        ],
    ),
    (
        "ball-2",
        25,
        "#5352ed",
        [
            (0.3, 1.2, "easeIn", (400, 200), (600, 750)),
            (1.5, 1.0, "easeOut", (600, 750), (900, 250)),
            (2.5, 2.5, "easeIn", (900, 250), (1500, 800)),
        ],
    ),
    (
        "ball-3",
        35,
        "#00d2d3",
        [
            (0.6, 1.5, "easeIn", (600, 200), (900, 700)),
            (2.1, 1.2, "easeOut", (900, 700), (1300, 300)),
            (3.3, 1.7, "easeIn", (1300, 300), (1700, 750)),
        ],
    ),
]


def bouncing_balls() -> AnimationScene:
    """Three balls bouncing along chained move tracks."""
    scene = create_simple_scene(5.0, background_color="#2f3542")
    for object_id, radius, color, bounces in _BOUNCES:
        add_circle(scene, object_id, _p(*bounces[0][3]), radius, color, "#ffffff", 1)
        for start, duration, easing, start_pos, end_pos in bounces:
            scene.animations.append(
                create_move_animation(object_id, _p(*start_pos), _p(*end_pos), start, duration, easing=easing)
            )
    return scene


SCENE_EXAMPLES: Dict[str, Callable[[], AnimationScene]] = {
    "triangle_formation": triangle_formation,
    "geometric_dance": geometric_dance,
    "bouncing_balls": bouncing_balls,
}
