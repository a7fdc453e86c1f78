import subprocess
from unittest.mock import MagicMock

import pytest

from scene_animator.encoder import (
    EncoderError,
    EncoderState,
    VideoEncoder,
    build_ffmpeg_command,
    resolve_ffmpeg,
)
from scene_animator.types import VideoConfig

CONFIG = VideoConfig(width=2, height=1, fps=10, preset="fast", crf=23)
FRAME = bytes(range(6))


@pytest.fixture
def encoder(tmp_path):
    return VideoEncoder(str(tmp_path / "out" / "video.mp4"), CONFIG, ffmpeg="ffmpeg-test", startup_grace=0)


class TestCommand:
    def test_raw_rgb24_in_x264_out(self):
        cmd = build_ffmpeg_command("ff", CONFIG, "o.mp4")
        assert cmd[0] == "ff"
        assert cmd[-1] == "o.mp4"
        joined = " ".join(cmd)
        assert "-f rawvideo -pix_fmt rgb24 -s 2x1 -r 10 -i pipe:0" in joined
        assert "-pix_fmt yuv420p -c:v libx264 -preset fast -crf 23" in joined

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SCENE_ANIMATOR_FFMPEG", "/opt/ffmpeg")
        assert resolve_ffmpeg() == "/opt/ffmpeg"


class TestLifecycle:
    def test_start_spawns_with_stdin_pipe(self, encoder, mock_popen):
        encoder.start()
        args, kwargs = mock_popen.call_args
        assert args[0][0] == "ffmpeg-test"
        assert kwargs["stdin"] == subprocess.PIPE
        assert encoder.state is EncoderState.STARTED

    def test_frames_written_in_order(self, encoder, mock_popen, fake_process):
        encoder.start()
        encoder.write_frame(FRAME)
        encoder.write_frame(bytes(reversed(FRAME)))
        assert fake_process.stdin.chunks == [FRAME, bytes(reversed(FRAME))]
        assert encoder.frames_written == 2

    def test_finish_closes_stdin_and_waits(self, encoder, mock_popen, fake_process):
        encoder.start()
        encoder.write_frame(FRAME)
        encoder.finish()
        assert fake_process.stdin.closed
        fake_process.wait.assert_called_once_with()
        assert encoder.state is EncoderState.FINISHED

    def test_finish_nonzero_exit(self, encoder, mock_popen, fake_process):
        fake_process.wait.return_value = 1
        encoder.start()
        with pytest.raises(EncoderError) as info:
            encoder.finish()
        assert info.value.returncode == 1

    def test_single_use(self, encoder, mock_popen):
        encoder.start()
        encoder.finish()
        with pytest.raises(EncoderError):
            encoder.start()
        with pytest.raises(EncoderError):
            encoder.write_frame(FRAME)

    def test_kill_terminates_running_process(self, encoder, mock_popen, fake_process):
        encoder.start()
        encoder.kill()
        fake_process.kill.assert_called_once()
        assert encoder.state is EncoderState.KILLED
        encoder.kill()
        fake_process.kill.assert_called_once()

    def test_startup_grace_waits_for_early_exit(self, tmp_path, mock_popen, fake_process):
        fake_process.wait.side_effect = subprocess.TimeoutExpired("ffmpeg", 0.1)
        encoder = VideoEncoder(str(tmp_path / "v.mp4"), CONFIG, ffmpeg="ff", startup_grace=0.1)
        encoder.start()
        assert encoder.state is EncoderState.STARTED


class TestFailures:
    def test_write_before_start(self, encoder):
        with pytest.raises(EncoderError):
            encoder.write_frame(FRAME)

    def test_wrong_frame_size(self, encoder, mock_popen):
        encoder.start()
        with pytest.raises(EncoderError, match="expected 6"):
            encoder.write_frame(b"\x00" * 8)

    def test_binary_missing(self, encoder, mock_popen):
        mock_popen.side_effect = FileNotFoundError("ffmpeg-test")
        with pytest.raises(EncoderError, match="failed to start"):
            encoder.start()
        assert encoder.state is EncoderState.KILLED

    def test_process_exits_before_input(self, encoder, mock_popen, fake_process):
        fake_process.poll.return_value = 1
        with pytest.raises(EncoderError) as info:
            encoder.start()
        assert info.value.returncode == 1

    def test_broken_pipe_surfaces_as_encoder_error(self, encoder, mock_popen, fake_process):
        fake_process.stdin = MagicMock()
        fake_process.stdin.write.side_effect = BrokenPipeError()
        encoder.start()
        with pytest.raises(EncoderError):
            encoder.write_frame(FRAME)
