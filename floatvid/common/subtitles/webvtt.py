# floatvid/common/subtitles/webvtt.py
from __future__ import annotations

import re
from typing import Iterable, List

from floatvid.common.logging import get_logger
from floatvid.domain.entities.subtitle import SubtitleCue

logger = get_logger(__name__)

WEBVTT_HEADER = "WEBVTT\n\n"

_SRT_TS_RE = re.compile(r"(\d{2}:\d{2}:\d{2}),(\d{3})")
_SYNC_SPLIT_RE = re.compile(r"<sync", re.IGNORECASE)
_SYNC_START_RE = re.compile(r"""start\s*=\s*["']?(\d+)""", re.IGNORECASE)
_SMI_TAIL_RE = re.compile(r"</body|</sami", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")

# &amp; last so "&amp;lt;" decodes to "&lt;", not "<"
_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&amp;", "&"),
)


def format_vtt_timestamp(ms: int) -> str:
    """Milliseconds -> HH:MM:SS.mmm"""
    ms = max(0, int(ms))
    hours, rem = divmod(ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    seconds, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def srt_to_vtt(content: str) -> str:
    """SRT differs from WebVTT (for our purposes) only in the header and the ms separator."""
    return WEBVTT_HEADER + _SRT_TS_RE.sub(r"\1.\2", content)


def _decode_entities(text: str) -> str:
    for entity, repl in _ENTITIES:
        text = re.sub(re.escape(entity), repl, text, flags=re.IGNORECASE)
    return text


def _clean_smi_text(raw: str) -> str:
    text = _TAG_RE.sub(" ", raw)
    text = _decode_entities(text)
    return _WS_RE.sub(" ", text).strip()


def parse_smi(content: str, *, last_cue_ms: int = 5000, min_cue_ms: int = 50) -> List[SubtitleCue]:
    """
    Extract cues from a SAMI document.

    Every <SYNC Start=ms> opens a cue that lasts until the next SYNC (blank
    "&nbsp;" syncs are how SAMI clears the screen, so they end the previous
    cue but are not emitted). The last cue gets `last_cue_ms`; no cue is
    shorter than `min_cue_ms`.
    """
    raw: List[tuple[int, str]] = []
    for fragment in _SYNC_SPLIT_RE.split(content)[1:]:
        m = _SYNC_START_RE.search(fragment.split(">", 1)[0])
        if not m:
            logger.warning("Skipping SMI sync without a numeric start: %r", fragment[:40])
            continue
        tag_end = fragment.find(">")
        if tag_end == -1:
            logger.warning("Skipping unterminated SMI sync tag at %sms", m.group(1))
            continue
        body = fragment[tag_end + 1:]
        tail = _SMI_TAIL_RE.search(body)
        if tail:
            body = body[:tail.start()]
        raw.append((int(m.group(1)), _clean_smi_text(body)))

    # stable: equal starts keep document order
    raw.sort(key=lambda c: c[0])

    cues: List[SubtitleCue] = []
    for i, (start, text) in enumerate(raw):
        if not text:
            continue
        next_start = raw[i + 1][0] if i + 1 < len(raw) else start + last_cue_ms
        end = max(start + min_cue_ms, next_start)
        cues.append(SubtitleCue(start_ms=start, end_ms=end, text=text))
    return cues


def render_vtt(cues: Iterable[SubtitleCue]) -> str:
    out = [WEBVTT_HEADER]
    for cue in cues:
        out.append(
            f"{format_vtt_timestamp(cue.start_ms)} --> {format_vtt_timestamp(cue.end_ms)}\n{cue.text}\n\n"
        )
    return "".join(out)


def smi_to_vtt(content: str, *, last_cue_ms: int = 5000, min_cue_ms: int = 50) -> str:
    return render_vtt(parse_smi(content, last_cue_ms=last_cue_ms, min_cue_ms=min_cue_ms))
