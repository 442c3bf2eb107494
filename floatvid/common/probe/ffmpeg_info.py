# floatvid/common/probe/ffmpeg_info.py
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from floatvid.common.logging import get_logger
logger = get_logger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+:\d{1,2}:\d{1,2}(?:\.\d+)?)")
_STREAM_RE = {
    "video": re.compile(r"Stream #\d+:\d+[^\n]*?: Video: (\w+)"),
    "audio": re.compile(r"Stream #\d+:\d+[^\n]*?: Audio: (\w+)"),
}
_INPUT_RE = re.compile(r"Input #\d+, (.+?), from ")


def build_probe_cmd(input_path: str | Path, ffmpeg_bin: str = "ffmpeg", extra_args: Iterable[str] | None = None) -> List[str]:
    """
    Build the "info pass" command: ffmpeg with an input and no output.
    ffmpeg exits non-zero ("At least one output file must be specified") but
    prints the container/stream banner to stderr first; that banner is what we parse.
    """
    cmd = [ffmpeg_bin, "-hide_banner", "-nostdin"]
    if extra_args:
        cmd += list(extra_args)
    cmd += ["-i", str(input_path)]
    return cmd


def find_duration_token(text: str) -> Optional[str]:
    m = _DURATION_RE.search(text or "")
    return m.group(1) if m else None


def parse_duration(token: str) -> float:
    """
    "HH:MM:SS(.fff)" -> seconds. Fractional seconds are kept exactly
    ("01:02:03.456" -> 3723.456). Raises ValueError on malformed input.
    """
    parts = (token or "").strip().split(":")
    if len(parts) != 3:
        raise ValueError(f"not a HH:MM:SS duration: {token!r}")
    try:
        h, m, s = (Decimal(p) for p in parts)
    except InvalidOperation as e:
        raise ValueError(f"not a HH:MM:SS duration: {token!r}") from e
    return float(h * 3600 + m * 60 + s)


def find_codec(text: str, kind: str) -> Optional[str]:
    """First codec token of a 'Video:' or 'Audio:' stream line, lower-cased."""
    m = _STREAM_RE[kind].search(text or "")
    return m.group(1).strip().lower() if m else None


def parse_ffmpeg_info(text: str) -> Dict[str, Any]:
    """
    Extract the fields we care about from ffmpeg's diagnostic banner.
    Safe to call in unit tests with captured stderr. Missing values are None;
    validation is the adapter's job.
    """
    token = find_duration_token(text)
    duration: Optional[float] = None
    if token is not None:
        try:
            duration = parse_duration(token)
        except ValueError:
            logger.debug("Unparseable duration token %r", token)

    container = None
    m = _INPUT_RE.search(text or "")
    if m:
        container = m.group(1).strip()

    return {
        "duration_token": token,
        "duration_sec": duration,
        "codec_video": find_codec(text, "video"),
        "codec_audio": find_codec(text, "audio"),
        "container": container,
    }
