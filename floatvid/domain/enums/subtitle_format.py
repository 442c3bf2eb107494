# floatvid/domain/enums/subtitle_format.py
from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Optional


class SubtitleFormat(StrEnum):
    SMI = "smi"
    SRT = "srt"
    VTT = "vtt"

    @classmethod
    def from_path(cls, path: Path | str) -> Optional["SubtitleFormat"]:
        ext = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(ext)
        except ValueError:
            return None
