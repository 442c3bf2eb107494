from __future__ import annotations
from enum import StrEnum


class TranscodeState(StrEnum):
    idle = "idle"
    running = "running"
