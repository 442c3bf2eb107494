# floatvid/services/subtitles/converter.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import aiofiles

from floatvid.common.logging import get_logger
from floatvid.common.settings import SubtitleConfig, get_settings
from floatvid.common.subtitles.charset import decode_subtitle_bytes
from floatvid.common.subtitles.webvtt import parse_smi, render_vtt, srt_to_vtt
from floatvid.domain.entities.subtitle import SubtitleCue
from floatvid.domain.enums.subtitle_format import SubtitleFormat
from floatvid.domain.errors import (
    EmptySubtitle,
    UnsupportedSubtitleFormat,
    classify_os_error,
)
from floatvid.domain.ports.subtitles import SubtitleConverterPort

logger = get_logger(__name__)


class SubtitleConverter(SubtitleConverterPort):
    """
    Turns .srt / .smi / .vtt sidecar files into WebVTT text for the player.
    Stateless; every call reads and converts the file afresh.
    """

    def __init__(self, cfg: Optional[SubtitleConfig] = None):
        self.cfg = cfg or get_settings().subtitles

    async def convert(self, path: Path | str) -> str:
        path = Path(path)
        fmt = self._format_of(path)
        text = await self._read_text(path)

        if fmt is SubtitleFormat.VTT:
            return text
        if fmt is SubtitleFormat.SRT:
            return srt_to_vtt(text)
        return render_vtt(self._smi_cues(text))

    async def cues(self, path: Path | str) -> List[SubtitleCue]:
        """Cue list of a SAMI file (sorted by start)."""
        path = Path(path)
        if self._format_of(path) is not SubtitleFormat.SMI:
            raise UnsupportedSubtitleFormat(path)
        return self._smi_cues(await self._read_text(path))

    # ---- internals ------------------------------------------------------------
    @staticmethod
    def _format_of(path: Path) -> SubtitleFormat:
        fmt = SubtitleFormat.from_path(path)
        if fmt is None:
            raise UnsupportedSubtitleFormat(path)
        return fmt

    async def _read_text(self, path: Path) -> str:
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise classify_os_error(e, path) from e

        text = decode_subtitle_bytes(
            data,
            legacy_encoding=self.cfg.legacy_encoding,
            replacement_threshold=self.cfg.replacement_threshold,
        )
        if not text.strip():
            raise EmptySubtitle(path)
        return text

    def _smi_cues(self, text: str) -> List[SubtitleCue]:
        cues = parse_smi(text, last_cue_ms=self.cfg.last_cue_ms, min_cue_ms=self.cfg.min_cue_ms)
        if not cues:
            logger.warning("SAMI document produced no cues")
        return cues
