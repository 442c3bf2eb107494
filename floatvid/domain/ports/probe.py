from __future__ import annotations
from pathlib import Path
from typing import Protocol
from floatvid.domain.entities.probe import MediaCapabilityReport

class MediaProbePort(Protocol):
    async def probe(self, path: Path | str) -> MediaCapabilityReport: ...
