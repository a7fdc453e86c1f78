from __future__ import annotations

import os
import re
import subprocess
import tempfile
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True)


DOCUMENT_TEMPLATE = r"""\documentclass[preview,border=2pt]{standalone}
\usepackage{amsmath}
\usepackage{amsfonts}
\begin{document}
$\displaystyle %s$
\end{document}
"""

_DELIMITERS = [
    (r"^\\\[", r"\\\]$"),
    (r"^\\\(", r"\\\)$"),
    (r"^\$\$", r"\$\$$"),
    (r"^\$", r"\$$"),
]


class MarkupCompileError(RuntimeError):
    pass


def strip_math_delimiters(expression: str) -> str:
    r"""Remove surrounding ``\[ \]``, ``\( \)``, ``$$`` or ``$`` delimiters."""
    text = expression.strip()
    for opening, closing in _DELIMITERS:
        text = re.sub(opening, "", text, count=1)
        text = re.sub(closing, "", text, count=1)
    return text.strip()


def build_document(expression: str) -> str:
    return DOCUMENT_TEMPLATE % strip_math_delimiters(expression)


class MarkupCompiler:
    """Turns a math expression into SVG markup with latex and dvisvgm.

    Each call works in its own temporary directory, removed afterwards.
    """

    def __init__(self, latex: str = "latex", dvisvgm: str = "dvisvgm", timeout: float = 60.0) -> None:
        self.latex = latex
        self.dvisvgm = dvisvgm
        self.timeout = timeout

    def _run(self, cmd: List[str], cwd: str) -> None:
        try:
            subprocess.run(cmd, cwd=cwd, capture_output=True, check=True, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise MarkupCompileError(f"{cmd[0]} not found on PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise MarkupCompileError(f"{cmd[0]} timed out after {self.timeout:g}s") from exc
        except subprocess.CalledProcessError as exc:
            output = (exc.stdout or b"") + (exc.stderr or b"")
            tail = output.decode("utf-8", errors="replace").strip()[-1000:]
            raise MarkupCompileError(f"{cmd[0]} exited with code {exc.returncode}\n{tail}") from exc

    def compile(self, expression: str) -> str:
        with tempfile.TemporaryDirectory(prefix="markup_") as workdir:
            with open(os.path.join(workdir, "eq.tex"), "w", encoding="utf-8") as f:
                f.write(build_document(expression))
            self._run([self.latex, "-interaction=nonstopmode", "-halt-on-error", "eq.tex"], workdir)
            self._run([self.dvisvgm, "eq.dvi", "-o", "eq.svg"], workdir)
            svg_path = os.path.join(workdir, "eq.svg")
            if not os.path.exists(svg_path):
                raise MarkupCompileError("dvisvgm produced no output")
            with open(svg_path, "r", encoding="utf-8") as f:
                return f.read()


def compile_markup(expression: str, compiler: Optional[MarkupCompiler] = None) -> str:
    compiler = compiler or MarkupCompiler()
    console.print(f"[cyan]Compiling markup:[/cyan] {escape(expression)}")
    return compiler.compile(expression)
