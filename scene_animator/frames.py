from __future__ import annotations

import math
import os
from typing import Callable, Iterator, List, Optional

from pydantic import BaseModel, Field
from rich.console import Console
from tqdm import tqdm

from .easing import EasingFunction, linear
from .encoder import VideoEncoder
from .surface import Surface
from .types import VideoConfig
from .utils import rgba_to_rgb

console = Console(stderr=True)


class FrameConfig(BaseModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    fps: int = Field(..., gt=0)
    duration: float = Field(..., description="Seconds")
    background_color: str = "#000000"

    @property
    def total_frames(self) -> int:
        # frames cover [0, fps * duration); float noise above a whole count adds none
        return int(math.ceil(self.fps * self.duration - 1e-9))


class AnimationFrame(BaseModel):
    progress: float
    eased_progress: float
    frame_index: int
    time: float


DrawCallback = Callable[[Surface, AnimationFrame, FrameConfig], None]
ProgressCallback = Callable[[int, int], None]
EncoderFactory = Callable[[str, VideoConfig], VideoEncoder]


def frame_timings(config: FrameConfig, easing: EasingFunction = linear) -> Iterator[AnimationFrame]:
    """Yield the timing of every frame.

    Progress runs from exactly 0 to exactly 1. Scene time follows the raw
    progress, the easing only shapes ``eased_progress``.
    """
    total = config.total_frames
    for index in range(total):
        progress = index / (total - 1) if total > 1 else 0.0
        yield AnimationFrame(
            progress=progress,
            eased_progress=easing(progress),
            frame_index=index,
            time=progress * config.duration,
        )


class FrameGenerator:
    """Renders frames onto one reused Surface and streams them to an encoder."""

    def __init__(self, config: FrameConfig, easing: EasingFunction = linear) -> None:
        self.config = config
        self.easing = easing
        self._surface = Surface(config.width, config.height)

    @property
    def surface(self) -> Surface:
        return self._surface

    def set_easing(self, easing: EasingFunction) -> None:
        self.easing = easing

    def _render(self, frame: AnimationFrame, draw: DrawCallback) -> bytes:
        surface = self._surface
        surface.reset_transform()
        surface.clear(self.config.background_color)
        draw(surface, frame, self.config)
        return rgba_to_rgb(surface.get_rgba(), self.config.width, self.config.height)

    def generate_frames(self, draw: DrawCallback) -> List[bytes]:
        """Render every frame into memory as packed RGB24 buffers."""
        return [self._render(frame, draw) for frame in frame_timings(self.config, self.easing)]

    def generate_animation(
        self,
        output_path: str,
        draw: DrawCallback,
        video_config: Optional[VideoConfig] = None,
        encoder_factory: EncoderFactory = VideoEncoder,
        progress: bool = True,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Render all frames and encode them to ``output_path``.

        Frames are written in order, each only after the previous write
        returned. On any failure the encoder is killed, the partial file is
        removed and the error propagates.
        """
        config = self.config
        if video_config is None:
            video_config = VideoConfig(width=config.width, height=config.height, fps=config.fps)
        encoder = encoder_factory(output_path, video_config)
        total = config.total_frames

        try:
            encoder.start()
            frames = frame_timings(config, self.easing)
            for frame in tqdm(frames, total=total, desc="Frames", disable=not progress):
                encoder.write_frame(self._render(frame, draw))
                if on_progress is not None:
                    on_progress(frame.frame_index + 1, total)
            encoder.finish()
        except BaseException:
            encoder.kill()
            if os.path.exists(output_path):
                console.print(f"[yellow]Removing partial output {output_path}[/yellow]")
                os.remove(output_path)
            raise

        return output_path
