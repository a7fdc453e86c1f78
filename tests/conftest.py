"""Shared fixtures: small scenes and fakes for the ffmpeg subprocess."""
from __future__ import annotations

import io
from typing import List
from unittest.mock import MagicMock, patch

import pytest

from scene_animator.encoder import EncoderState
from scene_animator.scene import add_circle, add_triangle, create_simple_scene
from scene_animator.timeline import create_move_animation
from scene_animator.types import AnimationScene, Point2D, VideoConfig


class RecordingStdin(io.BytesIO):
    """Pipe stand-in that keeps every chunk written to it."""

    def __init__(self) -> None:
        super().__init__()
        self.chunks: List[bytes] = []

    def write(self, data) -> int:  # type: ignore[override]
        self.chunks.append(bytes(data))
        return super().write(data)


class FakeEncoder:
    """In-memory encoder with the VideoEncoder surface."""

    def __init__(self, output_path: str, config: VideoConfig, fail_on_frame: int = -1) -> None:
        self.output_path = output_path
        self.config = config
        self.fail_on_frame = fail_on_frame
        self.state = EncoderState.CREATED
        self.frames: List[bytes] = []
        self.events: List[str] = []

    def start(self) -> None:
        self.events.append("start")
        self.state = EncoderState.STARTED
        with open(self.output_path, "wb") as f:
            f.write(b"partial")

    def write_frame(self, frame: bytes) -> None:
        if len(self.frames) == self.fail_on_frame:
            raise BrokenPipeError("encoder went away")
        self.events.append("write")
        self.frames.append(frame)

    def finish(self) -> None:
        self.events.append("finish")
        self.state = EncoderState.FINISHED

    def kill(self) -> None:
        self.events.append("kill")
        self.state = EncoderState.KILLED


@pytest.fixture
def fake_encoders():
    """Factory for FakeEncoder that remembers every instance it made."""
    made: List[FakeEncoder] = []

    def factory(output_path: str, config: VideoConfig) -> FakeEncoder:
        encoder = FakeEncoder(output_path, config, fail_on_frame=factory.fail_on_frame)  # type: ignore[attr-defined]
        made.append(encoder)
        return encoder

    factory.made = made  # type: ignore[attr-defined]
    factory.fail_on_frame = -1  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def fake_process():
    process = MagicMock()
    process.stdin = RecordingStdin()
    process.poll.return_value = None
    process.wait.return_value = 0
    return process


@pytest.fixture
def mock_popen(fake_process):
    with patch("scene_animator.encoder.subprocess.Popen", return_value=fake_process) as popen:
        yield popen


@pytest.fixture
def move_scene() -> AnimationScene:
    """One triangle at the origin with a 2 s linear move to (100, 100)."""
    scene = create_simple_scene(4.0)
    add_triangle(scene, "tri", Point2D(x=0, y=0), 20, "#ff0000")
    scene.animations.append(
        create_move_animation("tri", Point2D(x=0, y=0), Point2D(x=100, y=100), 0, 2, easing="linear")
    )
    return scene


@pytest.fixture
def still_scene() -> AnimationScene:
    """One circle, no tracks, one second long."""
    scene = create_simple_scene(1.0, background_color="#102030")
    add_circle(scene, "dot", Point2D(x=8, y=6), 3, "#ffffff")
    return scene
