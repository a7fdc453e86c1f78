import json
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from scene_animator.cli import app
from scene_animator.encoder import EncoderError
from scene_animator.scene import load_scene
from scene_animator.timeline import create_fade_animation

runner = CliRunner(env={"COLUMNS": "200"})


def write_scene(path, scene):
    path.write_text(json.dumps(scene.model_dump(mode="json", by_alias=True)), encoding="utf-8")
    return str(path)


@pytest.fixture
def scene_file(tmp_path, move_scene):
    return write_scene(tmp_path / "scene.json", move_scene)


class TestValidateCommand:
    def test_valid_scene(self, scene_file):
        result = runner.invoke(app, ["validate", scene_file])
        assert result.exit_code == 0
        assert "Scene is valid" in result.output

    def test_unknown_object_fails(self, tmp_path, move_scene):
        move_scene.animations.append(create_fade_animation("ghost", 1, 0, 0, 1))
        result = runner.invoke(app, ["validate", write_scene(tmp_path / "bad.json", move_scene)])
        assert result.exit_code == 1
        assert "ghost" in result.output

    def test_malformed_document(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"duration": 1, "objects": [{"id": "a", "type": "blob"}]}), encoding="utf-8")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid scene document" in result.output


class TestStateCommand:
    def test_prints_evaluated_state(self, scene_file):
        result = runner.invoke(app, ["state", scene_file, "--time", "1"])
        assert result.exit_code == 0
        assert "tri" in result.output
        assert "position=(50.00, 50.00)" in result.output
        assert "tracks=1" in result.output


class TestExamplesCommand:
    def test_writes_loadable_documents(self, tmp_path):
        result = runner.invoke(app, ["examples", "--output-dir", str(tmp_path)])
        assert result.exit_code == 0
        names = sorted(p.name for p in tmp_path.glob("*.json"))
        assert names == ["bouncing_balls.json", "geometric_dance.json", "triangle_formation.json"]
        dance = load_scene(tmp_path / "geometric_dance.json")
        assert dance.markup_overlay is not None
        assert dance.background_color == "#0c0c0c"


class TestRenderCommand:
    def test_cli_values_win_without_prefer_config(self, tmp_path, scene_file):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.safe_dump({"width": 320, "fps": 12, "video_crf": 30}), encoding="utf-8")
        with patch("scene_animator.cli.render_scene", return_value="out.mp4") as render:
            result = runner.invoke(app, ["render", scene_file, "--config", str(cfg), "--fps", "24"])
        assert result.exit_code == 0, result.output
        config = render.call_args.args[1]
        assert config.width == 320
        assert config.fps == 24
        assert config.video_crf == 30
        assert config.height == 1080
        assert "out.mp4" in result.output

    def test_prefer_config(self, tmp_path, scene_file):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(yaml.safe_dump({"fps": 12}), encoding="utf-8")
        with patch("scene_animator.cli.render_scene", return_value="out.mp4") as render:
            runner.invoke(app, ["render", scene_file, "--config", str(cfg), "--fps", "24", "--prefer-config"])
        assert render.call_args.args[1].fps == 12

    def test_encoder_failure_exit_code(self, scene_file):
        with patch("scene_animator.cli.render_scene", side_effect=EncoderError("ffmpeg exited", 1)):
            result = runner.invoke(app, ["render", scene_file])
        assert result.exit_code == 1
        assert "Encoding failed" in result.output
