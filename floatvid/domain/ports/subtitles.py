from __future__ import annotations
from pathlib import Path
from typing import Protocol

class SubtitleConverterPort(Protocol):
    async def convert(self, path: Path | str) -> str: ...
