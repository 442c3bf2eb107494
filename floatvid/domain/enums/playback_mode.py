from __future__ import annotations
from enum import StrEnum


class PlaybackMode(StrEnum):
    native = "native"
    stream = "stream"
