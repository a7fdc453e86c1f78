import os
import subprocess
from unittest.mock import patch

import pytest

from scene_animator.compiler import MarkupCompileError, MarkupCompiler, build_document, strip_math_delimiters


class TestDocument:
    @pytest.mark.parametrize(
        "expression",
        [r"\[ a+b \]", r"\(a+b\)", "$$a+b$$", "$a+b$", "  a+b  "],
    )
    def test_delimiters_stripped(self, expression):
        assert strip_math_delimiters(expression) == "a+b"

    def test_display_math_document(self):
        doc = build_document("$x^2$")
        assert doc.startswith(r"\documentclass[preview,border=2pt]{standalone}")
        assert r"$\displaystyle x^2$" in doc
        assert r"\usepackage{amsmath}" in doc


class TestMarkupCompiler:
    def test_runs_latex_then_dvisvgm(self):
        calls = []

        def fake_run(cmd, cwd, **kwargs):
            calls.append((cmd, cwd))
            if cmd[0] == "dvisvgm":
                with open(os.path.join(cwd, "eq.svg"), "w", encoding="utf-8") as f:
                    f.write("<svg/>")
            return subprocess.CompletedProcess(cmd, 0)

        with patch("scene_animator.compiler.subprocess.run", side_effect=fake_run):
            assert MarkupCompiler().compile("x") == "<svg/>"

        assert [c[0][0] for c in calls] == ["latex", "dvisvgm"]
        workdir = calls[0][1]
        assert not os.path.exists(workdir)

    def test_missing_binary(self):
        with patch("scene_animator.compiler.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(MarkupCompileError, match="latex not found"):
                MarkupCompiler().compile("x")

    def test_nonzero_exit_includes_output(self):
        error = subprocess.CalledProcessError(1, ["latex"], output=b"! Undefined control sequence.")
        with patch("scene_animator.compiler.subprocess.run", side_effect=error):
            with pytest.raises(MarkupCompileError, match="Undefined control sequence"):
                MarkupCompiler().compile(r"\bogus")

    def test_no_output_file(self):
        with patch("scene_animator.compiler.subprocess.run"):
            with pytest.raises(MarkupCompileError, match="no output"):
                MarkupCompiler().compile("x")
