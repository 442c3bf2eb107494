# floatvid/domain/entities/probe.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MediaCapabilityReport:
    """
    Normalized, framework-free result of probing a local video file.
    Produced by a MediaProbePort adapter; consumed by the playback decision
    and by the streaming server (to pick copy vs. re-encode per stream).

    A report always carries a detected video codec and a positive duration.
    Adapters raise instead of returning a partial report.
    """
    duration_sec: float
    video_codec: Optional[str]
    audio_codec: Optional[str]
    video_codec_supported: bool
    audio_codec_supported: bool
    container: Optional[str] = None

    def __post_init__(self):
        if not self.video_codec:
            raise ValueError("video_codec is required")
        if self.duration_sec is None or self.duration_sec <= 0:
            raise ValueError("duration_sec must be > 0")

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_codec)
