from __future__ import annotations

from typing import Optional

import yaml
from pydantic import BaseModel


class AppConfig(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    background_color: Optional[str] = None
    video_preset: Optional[str] = None
    video_crf: Optional[int] = None
    output_dir: Optional[str] = None
    ffmpeg: Optional[str] = None
    latex: Optional[str] = None
    dvisvgm: Optional[str] = None


def load_config(path: str) -> AppConfig:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return AppConfig(**data)
