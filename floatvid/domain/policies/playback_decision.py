# floatvid/domain/policies/playback_decision.py
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from floatvid.domain.entities.probe import MediaCapabilityReport
from floatvid.domain.enums.playback_mode import PlaybackMode

# Defaults mirror what an HTML5 <video> element decodes everywhere.
VIDEO_ALLOW = frozenset({"h264", "vp8", "theora"})
AUDIO_ALLOW = frozenset({"aac", "vorbis", "opus"})


def codec_support(
    video_codec: Optional[str],
    audio_codec: Optional[str],
    *,
    video_allow: Iterable[str] = VIDEO_ALLOW,
    audio_allow: Iterable[str] = AUDIO_ALLOW,
) -> Tuple[bool, bool]:
    """
    Return (video_supported, audio_supported) for the given codec names.
    A missing codec is never supported, on either side.
    """
    v_allow = {c.lower() for c in video_allow}
    a_allow = {c.lower() for c in audio_allow}
    video_ok = bool(video_codec) and video_codec.lower() in v_allow
    audio_ok = bool(audio_codec) and audio_codec.lower() in a_allow
    return video_ok, audio_ok


def decide(report: MediaCapabilityReport) -> PlaybackMode:
    """
    native iff both video and audio are directly playable; anything else is
    streamed through a single transcode pass (one container, one encoder run),
    even when only one of the two streams needs converting.
    """
    if report.video_codec_supported and report.audio_codec_supported:
        return PlaybackMode.native
    return PlaybackMode.stream
