from __future__ import annotations

import math
from typing import Callable, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from .compiler import MarkupCompileError, MarkupCompiler, compile_markup
from .easing import ease_in_out_cubic, linear
from .encoder import VideoEncoder
from .frames import AnimationFrame, EncoderFactory, FrameConfig, FrameGenerator
from .markup import VectorMarkupModel, parse_markup
from .markup_renderer import render_markup
from .scene import SceneValidationError, split_validation, validate_scene
from .shapes import draw_object, draw_triangle
from .surface import Surface
from .timeline import evaluate_scene
from .types import (
    AnimationScene,
    MarkupOverlay,
    ObjectState,
    Point2D,
    RenderConfig,
    SceneObject,
    Transform,
    VideoConfig,
)
from .utils import unique_output_path

console = Console(stderr=True)


def object_transform(state: ObjectState) -> Transform:
    return Transform(translate=state.position, rotate=state.rotation, scale=state.scale)


def apply_object_transform(surface: Surface, transform: Transform) -> None:
    """Compose translate, then rotate, then scale onto the surface matrix."""
    surface.translate(transform.translate.x, transform.translate.y)
    surface.rotate(transform.rotate)
    surface.scale(transform.scale.x, transform.scale.y)


class SceneRenderer:
    """Draws one scene at a given time onto a Surface."""

    def __init__(self, scene: AnimationScene, markup: Optional[VectorMarkupModel] = None) -> None:
        self.scene = scene
        self.markup = markup

    def render_object(self, surface: Surface, obj: SceneObject, state: ObjectState) -> None:
        surface.save()
        surface.global_alpha *= state.opacity
        apply_object_transform(surface, object_transform(state))
        draw_object(surface, obj, state)
        surface.restore()

    def render_overlay(self, surface: Surface) -> None:
        overlay = self.scene.markup_overlay
        if overlay is None or self.markup is None:
            return
        render_markup(self.markup, overlay.anchor, overlay.scale, surface)

    def render_contents(self, surface: Surface, time: float) -> None:
        states = evaluate_scene(self.scene, time)
        for obj in self.scene.objects:
            self.render_object(surface, obj, states[obj.id])
        self.render_overlay(surface)

    def render_frame(self, surface: Surface, time: float) -> None:
        """Draw a complete frame, background included, onto ``surface``."""
        if self.scene.background_color:
            surface.clear(self.scene.background_color)
        self.render_contents(surface, time)

    def draw(self, surface: Surface, frame: AnimationFrame, config: FrameConfig) -> None:
        # the frame loop has already cleared to the background
        self.render_contents(surface, frame.time)


def load_overlay(overlay: MarkupOverlay, compiler: Optional[MarkupCompiler] = None) -> Optional[VectorMarkupModel]:
    """Compile and parse an overlay, or None when the compiler fails."""
    try:
        source = compile_markup(overlay.source, compiler)
    except MarkupCompileError as exc:
        console.print(f"[yellow]Markup overlay skipped:[/yellow] {escape(str(exc))}")
        return None
    model = parse_markup(source)
    if model.is_empty():
        console.print("[yellow]Markup overlay produced no drawable elements[/yellow]")
    return model


def render_scene(
    scene: AnimationScene,
    config: Optional[RenderConfig] = None,
    compiler: Optional[MarkupCompiler] = None,
    output_path: Optional[str] = None,
    progress: bool = True,
    on_progress: Optional[Callable[[int, int], None]] = None,
    encoder_factory: EncoderFactory = VideoEncoder,
) -> str:
    """Validate, render and encode ``scene``; returns the video path."""
    config = config or RenderConfig()

    fatal, warnings = split_validation(validate_scene(scene))
    if fatal:
        raise SceneValidationError(fatal)
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    markup = load_overlay(scene.markup_overlay, compiler) if scene.markup_overlay is not None else None
    renderer = SceneRenderer(scene, markup)

    frame_config = FrameConfig(
        width=config.width,
        height=config.height,
        fps=config.fps,
        duration=scene.duration,
        background_color=scene.background_color or config.background_color,
    )
    video_config = VideoConfig(
        width=config.width,
        height=config.height,
        fps=config.fps,
        preset=config.video_preset,
        crf=config.video_crf,
    )
    output_path = output_path or unique_output_path(config.output_dir, prefix="scene")
    console.print(
        f"[cyan]Rendering[/cyan] {len(scene.objects)} objects, {len(scene.animations)} tracks, "
        f"{frame_config.total_frames} frames -> {output_path}"
    )

    generator = FrameGenerator(frame_config, easing=linear)
    return generator.generate_animation(
        output_path,
        renderer.draw,
        video_config=video_config,
        encoder_factory=encoder_factory,
        progress=progress,
        on_progress=on_progress,
    )


class TriangleShowcaseConfig(BaseModel):
    width: int = 1920
    height: int = 1080
    fps: int = 120
    duration: float = 3.0
    triangle_size: float = 80.0
    margin: float = 100.0
    rotations: float = 2.0
    background_color: str = "#000000"
    triangle_color: str = "#ff4444"
    stroke_color: str = "#ffffff"
    stroke_width: float = 3.0
    video_preset: str = "medium"
    video_crf: int = 18
    output_dir: str = "./animations"


def showcase_draw(
    config: TriangleShowcaseConfig, markup: Optional[VectorMarkupModel] = None
) -> Callable[[Surface, AnimationFrame, FrameConfig], None]:
    def draw(surface: Surface, frame: AnimationFrame, frame_config: FrameConfig) -> None:
        distance = frame_config.width - config.margin * 2
        x = config.margin + frame.eased_progress * distance
        y = frame_config.height / 2
        surface.save()
        surface.translate(x, y)
        surface.rotate(frame.eased_progress * math.pi * 2 * config.rotations)
        draw_triangle(surface, config.triangle_size, config.triangle_color, config.stroke_color, config.stroke_width)
        surface.restore()
        if markup is not None:
            anchor = Point2D(x=frame_config.width / 2 + 500, y=frame_config.height / 2 - 200)
            render_markup(markup, anchor, 8.0, surface)

    return draw


def render_triangle_showcase(
    expression: Optional[str] = None,
    config: Optional[TriangleShowcaseConfig] = None,
    compiler: Optional[MarkupCompiler] = None,
    output_path: Optional[str] = None,
    progress: bool = True,
    encoder_factory: EncoderFactory = VideoEncoder,
) -> str:
    """Sweep one triangle across the frame with ease-in-out motion.

    The global eased progress drives position and rotation, unlike scene
    renders which run on linear time.
    """
    config = config or TriangleShowcaseConfig()
    markup = None
    if expression:
        markup = load_overlay(MarkupOverlay(source=expression, anchor=Point2D(x=0.0, y=0.0)), compiler)

    frame_config = FrameConfig(
        width=config.width,
        height=config.height,
        fps=config.fps,
        duration=config.duration,
        background_color=config.background_color,
    )
    video_config = VideoConfig(
        width=config.width,
        height=config.height,
        fps=config.fps,
        preset=config.video_preset,
        crf=config.video_crf,
    )
    output_path = output_path or unique_output_path(config.output_dir, prefix="triangle")
    generator = FrameGenerator(frame_config, easing=ease_in_out_cubic)
    return generator.generate_animation(
        output_path,
        showcase_draw(config, markup),
        video_config=video_config,
        encoder_factory=encoder_factory,
        progress=progress,
    )
