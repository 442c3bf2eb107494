from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class SubtitleCue:
    start_ms: int
    end_ms: int
    text: str
