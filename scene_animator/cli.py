from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print
from rich.markup import escape

from .compiler import MarkupCompiler
from .config import AppConfig, load_config
from .encoder import EncoderError, VideoEncoder
from .examples import SCENE_EXAMPLES
from .renderer import TriangleShowcaseConfig, render_scene, render_triangle_showcase
from .scene import SceneValidationError, load_scene, split_validation, validate_scene
from .timeline import evaluate_scene, tracks_for
from .types import AnimationScene, RenderConfig


app = typer.Typer(add_completion=False, no_args_is_help=True)


def _read_scene(scene_file: Path) -> AnimationScene:
    try:
        return load_scene(scene_file)
    except (ValidationError, ValueError) as exc:
        print(f"[bold red]Invalid scene document[/bold red] {scene_file}:\n{escape(str(exc))}")
        raise typer.Exit(code=1)


def _encoder_factory(ffmpeg: Optional[str]):
    def factory(output_path, video_config):
        return VideoEncoder(output_path, video_config, ffmpeg=ffmpeg)

    return factory


@app.command()
def render(
    scene_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scene document (.json or .yaml)"),
    width: Optional[int] = typer.Option(None, help="Output width (default 1920)"),
    height: Optional[int] = typer.Option(None, help="Output height (default 1080)"),
    fps: Optional[int] = typer.Option(None, help="Frames per second (default 60)"),
    background: Optional[str] = typer.Option(None, help="Background colour when the scene sets none"),
    preset: Optional[str] = typer.Option(None, help="x264 preset (default medium)"),
    crf: Optional[int] = typer.Option(None, help="x264 CRF quality (default 18)"),
    output_dir: Optional[str] = typer.Option(None, help="Directory for rendered videos"),
    output: Optional[str] = typer.Option(None, help="Exact output path; overrides --output-dir"),
    ffmpeg: Optional[str] = typer.Option(None, help="ffmpeg binary; otherwise $SCENE_ANIMATOR_FFMPEG or imageio-ffmpeg"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    prefer_config: bool = typer.Option(False, help="If true, config overrides CLI when set"),
    progress: bool = typer.Option(True, help="Show a progress bar"),
):
    """Render a scene document to an mp4 video."""
    load_dotenv()

    cfg: Optional[AppConfig] = load_config(config) if config else None

    def choose(val, cfg_val):
        if prefer_config and cfg_val is not None:
            return cfg_val
        return val if val is not None else cfg_val

    defaults = RenderConfig()
    render_config = RenderConfig(
        width=int(choose(width, cfg.width if cfg else None) or defaults.width),
        height=int(choose(height, cfg.height if cfg else None) or defaults.height),
        fps=int(choose(fps, cfg.fps if cfg else None) or defaults.fps),
        background_color=choose(background, cfg.background_color if cfg else None) or defaults.background_color,
        video_preset=choose(preset, cfg.video_preset if cfg else None) or defaults.video_preset,
        video_crf=int(choose(crf, cfg.video_crf if cfg else None) or defaults.video_crf),
        output_dir=choose(output_dir, cfg.output_dir if cfg else None) or defaults.output_dir,
    )
    ffmpeg = choose(ffmpeg, cfg.ffmpeg if cfg else None)
    compiler = MarkupCompiler(
        latex=(cfg.latex if cfg and cfg.latex else "latex"),
        dvisvgm=(cfg.dvisvgm if cfg and cfg.dvisvgm else "dvisvgm"),
    )

    scene = _read_scene(scene_file)
    try:
        path = render_scene(
            scene,
            render_config,
            compiler=compiler,
            output_path=output,
            progress=progress,
            encoder_factory=_encoder_factory(ffmpeg),
        )
    except SceneValidationError as exc:
        print("[bold red]Scene is invalid:[/bold red]")
        for error in exc.errors:
            print(f"  - {escape(error)}")
        raise typer.Exit(code=1)
    except EncoderError as exc:
        print(f"[bold red]Encoding failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    print(f"[bold green]Wrote video:[/bold green] {path}")


@app.command()
def validate(
    scene_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scene document (.json or .yaml)"),
):
    """Check a scene document without rendering it."""
    scene = _read_scene(scene_file)
    fatal, warnings = split_validation(validate_scene(scene))
    for warning in warnings:
        print(f"[yellow]Warning:[/yellow] {warning}")
    if fatal:
        for error in fatal:
            print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=1)
    print(
        f"[bold green]Scene is valid[/bold green]: {len(scene.objects)} objects, "
        f"{len(scene.animations)} tracks, {scene.duration:g}s"
    )


@app.command()
def examples(
    output_dir: str = typer.Option("./scenes", help="Directory to write example scene documents"),
):
    """Write the built-in example scenes as JSON documents."""
    p = Path(output_dir)
    p.mkdir(parents=True, exist_ok=True)
    for name, factory in SCENE_EXAMPLES.items():
        document = factory().model_dump(mode="json", by_alias=True, exclude_none=True)
        (p / f"{name}.json").write_text(json.dumps(document, indent=2), encoding="utf-8")
        print(f"[bold green]Wrote[/bold green] {p / f'{name}.json'}")


@app.command()
def triangle(
    expression: Optional[str] = typer.Option(None, help="Math expression to overlay, e.g. 'e^{i\\pi}+1=0'"),
    duration: float = typer.Option(3.0, help="Duration in seconds"),
    rotations: float = typer.Option(2.0, help="Full turns over the sweep"),
    width: int = typer.Option(1920, help="Output width"),
    height: int = typer.Option(1080, help="Output height"),
    fps: int = typer.Option(120, help="Frames per second"),
    output_dir: str = typer.Option("./animations", help="Directory for rendered videos"),
    ffmpeg: Optional[str] = typer.Option(None, help="ffmpeg binary"),
    progress: bool = typer.Option(True, help="Show a progress bar"),
):
    """Render the single-triangle sweep, optionally with a formula overlay."""
    load_dotenv()
    showcase = TriangleShowcaseConfig(
        width=width,
        height=height,
        fps=fps,
        duration=duration,
        rotations=rotations,
        output_dir=output_dir,
    )
    try:
        path = render_triangle_showcase(
            expression,
            showcase,
            progress=progress,
            encoder_factory=_encoder_factory(ffmpeg),
        )
    except EncoderError as exc:
        print(f"[bold red]Encoding failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    print(f"[bold green]Wrote video:[/bold green] {path}")


@app.command()
def state(
    scene_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scene document (.json or .yaml)"),
    time: float = typer.Option(0.0, "--time", "-t", help="Scene time in seconds"),
):
    """Print every object's evaluated state at a point in time."""
    scene = _read_scene(scene_file)
    print(f"[bold]State at t={time:g}s[/bold]")
    for object_id, s in evaluate_scene(scene, time).items():
        print(
            f"[cyan]{object_id}[/cyan] tracks={len(tracks_for(scene, object_id))} "
            f"position=({s.position.x:.2f}, {s.position.y:.2f}) "
            f"rotation={math.degrees(s.rotation):.1f}deg "
            f"scale=({s.scale.x:.3f}, {s.scale.y:.3f}) "
            f"opacity={s.opacity:.3f} fill={s.fill_color} stroke={s.stroke_color or '-'}"
        )


if __name__ == "__main__":
    app()
