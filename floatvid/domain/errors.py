# floatvid/domain/errors.py
from __future__ import annotations

import errno
from pathlib import Path
from typing import Optional, Sequence


class PlaybackError(Exception):
    """
    Root of the playback error taxonomy. Adapters catch low-level errors
    (OSError, subprocess failures) where they happen and re-raise one of these,
    so callers never branch on raw errno values.
    """
    code: str = "PLAYBACK_ERROR"
    recoverable: bool = True

    def __init__(self, message: str, *, path: Path | str | None = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.detail = detail

    def __str__(self) -> str:
        return self.message


class FileNotFound(PlaybackError):
    code = "FILE_NOT_FOUND"
    recoverable = False

    def __init__(self, path: Path | str, detail: Optional[str] = None):
        super().__init__(f"File not found: {path}", path=path, detail=detail)


class FileAccessDenied(PlaybackError):
    code = "FILE_ACCESS_DENIED"

    def __init__(self, path: Path | str, detail: Optional[str] = None):
        super().__init__(f"Cannot access file: {path}", path=path, detail=detail)


class UnsupportedFormat(PlaybackError):
    code = "UNSUPPORTED_FORMAT"
    recoverable = False

    def __init__(
        self,
        path: Path | str,
        *,
        video_codec: Optional[str] = None,
        audio_codec: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        parts = []
        if video_codec:
            parts.append(f"video: {video_codec}")
        if audio_codec:
            parts.append(f"audio: {audio_codec}")
        suffix = f" ({', '.join(parts)})" if parts else ""
        super().__init__(f"Unsupported video format: {path}{suffix}", path=path, detail=detail)
        self.video_codec = video_codec
        self.audio_codec = audio_codec


class ProbeFailed(PlaybackError):
    code = "PROBE_FAILED"


class InvalidDuration(ProbeFailed):
    code = "INVALID_DURATION"

    def __init__(self, path: Path | str, duration_sec: float):
        super().__init__(f"Invalid duration {duration_sec!r}s for {path}", path=path)
        self.duration_sec = duration_sec


class SubtitleConversionFailed(PlaybackError):
    code = "SUBTITLE_CONVERSION_FAILED"


class UnsupportedSubtitleFormat(SubtitleConversionFailed):
    code = "UNSUPPORTED_SUBTITLE_FORMAT"

    def __init__(self, path: Path | str):
        super().__init__(f"Unsupported subtitle format: {Path(path).suffix or path}", path=path)


class EmptySubtitle(SubtitleConversionFailed):
    code = "EMPTY_SUBTITLE"

    def __init__(self, path: Path | str):
        super().__init__(f"Subtitle file is empty: {path}", path=path)


class ServerStartFailed(PlaybackError):
    code = "SERVER_START_FAILED"


class TranscodeProcessError(PlaybackError):
    code = "TRANSCODE_PROCESS_ERROR"


# ---- classification ---------------------------------------------------------
def classify_os_error(exc: OSError, path: Path | str) -> PlaybackError:
    """Map an OSError raised while touching `path` onto the taxonomy."""
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return FileNotFound(path, detail=str(exc))
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return FileAccessDenied(path, detail=str(exc))
    if isinstance(exc, IsADirectoryError):
        return UnsupportedFormat(path, detail="path is a directory")
    return PlaybackError(f"I/O error on {path}: {exc}", path=path, detail=str(exc))


# ---- user-facing text -------------------------------------------------------
SUPPORTED_VIDEO_LABELS: Sequence[str] = ("H.264", "VP8", "Theora")
SUPPORTED_AUDIO_LABELS: Sequence[str] = ("AAC", "Vorbis", "Opus")


def user_message(exc: BaseException) -> str:
    if isinstance(exc, FileNotFound):
        return "The video file could not be found. It may have been moved or deleted."
    if isinstance(exc, FileAccessDenied):
        return "Cannot access the video file. Please check file permissions."
    if isinstance(exc, UnsupportedFormat):
        if exc.video_codec:
            return (
                f"The video codec ({exc.video_codec}) is not supported. "
                f"Supported codecs: {', '.join(SUPPORTED_VIDEO_LABELS)}."
            )
        if exc.audio_codec:
            return (
                f"The audio codec ({exc.audio_codec}) is not supported. "
                f"Supported codecs: {', '.join(SUPPORTED_AUDIO_LABELS)}."
            )
        return "This video format is not supported."
    if isinstance(exc, ProbeFailed):
        return "Failed to read the video file. The file may be corrupted."
    if isinstance(exc, SubtitleConversionFailed):
        return "Failed to load subtitles. The subtitle file may be corrupted or in an unsupported format."
    if isinstance(exc, ServerStartFailed):
        return "Failed to start the video streaming server. Please try again."
    if isinstance(exc, TranscodeProcessError):
        return "Failed to process the video file."
    if isinstance(exc, PlaybackError):
        return exc.message
    if isinstance(exc, Exception):
        return f"An unexpected error occurred: {exc}"
    return "An unknown error occurred while trying to play the video."


def is_recoverable(exc: BaseException) -> bool:
    if isinstance(exc, PlaybackError):
        return exc.recoverable
    return True


def recovery_hint(exc: BaseException) -> str:
    if isinstance(exc, SubtitleConversionFailed):
        return "The video can still be played without subtitles."
    if is_recoverable(exc):
        return "Please try again."
    return "Please choose a different file."
