# floatvid/services/transcode/encoders.py
from __future__ import annotations

import asyncio
import contextlib
import re
from typing import Optional, Set

from floatvid.common.logging import get_logger
from floatvid.common.settings import FFmpegConfig, get_settings
from floatvid.services.transcode.commands import build_encoders_cmd

logger = get_logger(__name__)

# " V....D h264_videotoolbox    VideoToolbox H.264 Encoder (codec h264)"
_ENCODER_LINE_RE = re.compile(r"^\s*[VAS][A-Z.]{5}\s+(\S+)", re.MULTILINE)


def parse_encoder_list(text: str) -> Set[str]:
    return set(_ENCODER_LINE_RE.findall(text or ""))


class EncoderProbe:
    """
    Answers "is the hardware H.264 encoder available?" by asking ffmpeg for its
    encoder list once. The answer is memoized for the lifetime of the instance;
    concurrent first callers share one query behind the lock.
    Any failure means "no hardware", never an error.
    """

    def __init__(self, ff: Optional[FFmpegConfig] = None, timeout_sec: float = 15.0):
        if ff is None:
            cfg = get_settings()
            ff = cfg.ffmpeg.model_copy(update={"bin": cfg.ffmpeg_bin})
        self.ff = ff
        self.timeout_sec = timeout_sec
        self._available: Optional[bool] = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Optional[bool]:
        return self._available

    async def hardware_available(self) -> bool:
        if self._available is not None:
            return self._available
        async with self._lock:
            if self._available is None:
                self._available = await self._query()
                logger.info("Hardware acceleration (%s) available: %s", self.ff.hw_encoder, self._available)
        return self._available

    async def _query(self) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                *build_encoders_cmd(self.ff),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error("Could not list ffmpeg encoders: %s", e)
            return False

        try:
            out, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_sec)
        except asyncio.TimeoutError:
            logger.error("Listing ffmpeg encoders timed out after %ss", self.timeout_sec)
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            return False

        if proc.returncode != 0:
            logger.error("ffmpeg -encoders exited with %s", proc.returncode)
            return False
        return self.ff.hw_encoder in parse_encoder_list(out.decode("utf-8", "replace"))

