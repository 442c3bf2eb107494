from floatvid.domain.enums.playback_mode import PlaybackMode
from floatvid.domain.enums.stream_container import StreamContainer
from floatvid.domain.enums.subtitle_format import SubtitleFormat
from floatvid.domain.enums.transcode_state import TranscodeState
__all__ = [
    "PlaybackMode",
    "StreamContainer",
    "SubtitleFormat",
    "TranscodeState",
]
