from __future__ import annotations

import os
import subprocess
import tempfile
from enum import Enum
from typing import IO, List, Optional

from rich.console import Console

from .types import VideoConfig

console = Console(stderr=True)

FFMPEG_ENV_VAR = "SCENE_ANIMATOR_FFMPEG"


class EncoderState(str, Enum):
    CREATED = "created"
    STARTED = "started"
    FINISHED = "finished"
    KILLED = "killed"


class EncoderError(RuntimeError):
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        detail = f"{message}\n{stderr}" if stderr else message
        super().__init__(detail)
        self.returncode = returncode
        self.stderr = stderr


def resolve_ffmpeg() -> str:
    """Encoder binary: $SCENE_ANIMATOR_FFMPEG, else the one imageio-ffmpeg finds."""
    override = os.getenv(FFMPEG_ENV_VAR)
    if override:
        return override
    try:
        import imageio_ffmpeg
    except ImportError as exc:  # pragma: no cover
        raise EncoderError("imageio-ffmpeg is required to locate ffmpeg") from exc
    try:
        return imageio_ffmpeg.get_ffmpeg_exe()
    except RuntimeError as exc:
        raise EncoderError(f"ffmpeg not found: {exc}") from exc


def build_ffmpeg_command(ffmpeg: str, config: VideoConfig, output_path: str) -> List[str]:
    return [
        ffmpeg,
        "-y",
        "-loglevel", "error",
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{config.width}x{config.height}",
        "-r", str(config.fps),
        "-i", "pipe:0",
        "-pix_fmt", "yuv420p",
        "-c:v", "libx264",
        "-preset", config.preset,
        "-crf", str(config.crf),
        output_path,
    ]


class VideoEncoder:
    """Streams raw RGB24 frames into one ffmpeg process.

    Lifecycle: created -> started -> (write_frame)* -> finished | killed.
    A session is single-use. ``write_frame`` blocks while the pipe is full,
    which is the only backpressure the frame loop sees.
    """

    def __init__(
        self,
        output_path: str,
        config: VideoConfig,
        ffmpeg: Optional[str] = None,
        startup_grace: float = 0.1,
    ) -> None:
        self.output_path = output_path
        self.config = config
        self.ffmpeg = ffmpeg
        self.startup_grace = startup_grace
        self.state = EncoderState.CREATED
        self.frames_written = 0
        self._process: Optional[subprocess.Popen] = None
        self._stderr: Optional[IO[bytes]] = None

    @property
    def frame_size(self) -> int:
        return self.config.width * self.config.height * 3

    def start(self) -> None:
        if self.state is not EncoderState.CREATED:
            raise EncoderError(f"Encoder cannot start from state '{self.state.value}'")
        output_dir = os.path.dirname(self.output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        cmd = build_ffmpeg_command(self.ffmpeg or resolve_ffmpeg(), self.config, self.output_path)
        # stderr goes to a file so a chatty encoder can never block on a full pipe
        self._stderr = tempfile.TemporaryFile()
        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=self._stderr,
            )
        except OSError as exc:
            self._close_stderr()
            self.state = EncoderState.KILLED
            raise EncoderError(f"FFmpeg failed to start: {exc}") from exc

        if self.startup_grace > 0:
            try:
                code = self._process.wait(timeout=self.startup_grace)
            except subprocess.TimeoutExpired:
                code = None
        else:
            code = self._process.poll()
        if code is not None:
            stderr = self._stderr_tail()
            self._process = None
            self._close_stderr()
            self.state = EncoderState.KILLED
            raise EncoderError(f"FFmpeg exited with code {code} before accepting frames", code, stderr)

        self.state = EncoderState.STARTED

    def write_frame(self, frame: bytes) -> None:
        if self.state is not EncoderState.STARTED or self._process is None or self._process.stdin is None:
            raise EncoderError(f"Cannot write a frame while the encoder is '{self.state.value}'")
        if len(frame) != self.frame_size:
            raise EncoderError(
                f"Frame is {len(frame)} bytes, expected {self.frame_size} "
                f"for {self.config.width}x{self.config.height} RGB24"
            )
        try:
            self._process.stdin.write(frame)
            self._process.stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            raise EncoderError(f"Failed to write frame {self.frames_written}: {exc}", stderr=self._stderr_tail()) from exc
        self.frames_written += 1

    def finish(self) -> None:
        if self.state is EncoderState.FINISHED:
            return
        if self.state is not EncoderState.STARTED or self._process is None:
            raise EncoderError(f"Cannot finish an encoder that is '{self.state.value}'")
        try:
            if self._process.stdin is not None:
                self._process.stdin.close()
        except BrokenPipeError:
            # the exit code below reports what went wrong
            pass
        code = self._process.wait()
        stderr = self._stderr_tail() if code != 0 else ""
        self._process = None
        self._close_stderr()
        self.state = EncoderState.FINISHED
        if code != 0:
            raise EncoderError(f"FFmpeg exited with code {code}", code, stderr)

    def kill(self) -> None:
        process = self._process
        if process is not None:
            if process.poll() is None:
                console.print(f"[yellow]Killing encoder for {self.output_path}[/yellow]")
                process.kill()
                process.wait()
            if process.stdin is not None and not process.stdin.closed:
                try:
                    process.stdin.close()
                except OSError:
                    pass
        self._process = None
        self._close_stderr()
        if self.state is not EncoderState.FINISHED:
            self.state = EncoderState.KILLED

    def _stderr_tail(self, limit: int = 2000) -> str:
        if self._stderr is None:
            return ""
        try:
            self._stderr.seek(0)
            data = self._stderr.read()
        except (OSError, ValueError):
            return ""
        return data.decode("utf-8", errors="replace").strip()[-limit:]

    def _close_stderr(self) -> None:
        if self._stderr is not None:
            self._stderr.close()
            self._stderr = None
