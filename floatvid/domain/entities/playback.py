# floatvid/domain/entities/playback.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from floatvid.domain.enums.playback_mode import PlaybackMode


@dataclass(frozen=True)
class PlaybackDescriptor:
    """
    What the UI layer hands to its embedded player for one playback request.
    Immutable; the next request produces a new descriptor.

    duration_sec is only carried for `stream` mode: a live fragmented stream
    does not report its own duration, so the player needs it for a seek bar.
    """
    mode: PlaybackMode
    video_source: str
    subtitle_source: Optional[str] = None
    duration_sec: Optional[float] = None

    def __post_init__(self):
        if not self.video_source:
            raise ValueError("video_source is required")
        if self.mode == PlaybackMode.native and self.duration_sec is not None:
            raise ValueError("duration_sec is only meaningful for stream mode")

    def to_payload(self) -> Dict[str, Any]:
        """camelCase payload in the shape the renderer's player expects."""
        out: Dict[str, Any] = {"type": str(self.mode), "videoSource": self.video_source}
        if self.subtitle_source:
            out["subtitleSource"] = self.subtitle_source
        if self.duration_sec is not None:
            out["duration"] = self.duration_sec
        return out


@dataclass(frozen=True)
class StreamSource:
    """Everything the streaming server needs to transcode one file."""
    path: Path
    video_codec_supported: bool
    audio_codec_supported: bool
    duration_sec: float
    subtitle_path: Optional[Path] = None


@dataclass(frozen=True)
class PlaybackFailure:
    """User-facing summary of a failed playback request."""
    message: str
    hint: str
    recoverable: bool
    error: Optional[BaseException] = None
