# floatvid/common/settings.py
from __future__ import annotations

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator, computed_field
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from floatvid.common.strings.splitters import csv_to_lower_list
from floatvid.domain.enums.stream_container import StreamContainer


CsvList = Annotated[List[str], NoDecode]


class FFmpegConfig(BaseModel):
    bin: str = "ffmpeg"
    probe_timeout_sec: float = 30.0
    stop_grace_sec: float = 5.0
    loglevel: str = "error"  # quiet|panic|fatal|error|warning|info|verbose|debug|trace

    # encoders
    hw_encoder: str = "h264_videotoolbox"
    sw_encoder: str = "libx264"
    audio_encoder: str = "aac"
    x264_preset: str = "veryfast"


class CodecPolicy(BaseModel):
    """Codecs the embedded HTML5 player decodes without help."""
    video_allow: CsvList = Field(default_factory=lambda: ["h264", "vp8", "theora"])
    audio_allow: CsvList = Field(default_factory=lambda: ["aac", "vorbis", "opus"])

    @field_validator("video_allow", "audio_allow", mode="before")
    @classmethod
    def _split_csv(cls, v):
        return csv_to_lower_list(v)


class StreamingConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(8888, ge=1, le=65535)
    container: StreamContainer = StreamContainer.FMP4

    # hls framing
    hls_segment_sec: int = 2
    hls_list_size: int = 6
    manifest_wait_sec: float = 30.0
    manifest_poll_sec: float = 0.25
    hls_idle_timeout_sec: float = 60.0

    start_timeout_sec: float = 10.0
    chunk_size: int = Field(256 * 1024, ge=4096)

    # Per-session HLS directories are created below this; empty means the system temp dir.
    work_dir: Optional[Path] = None

    @computed_field  # type: ignore[misc]
    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @computed_field  # type: ignore[misc]
    @property
    def effective_work_dir(self) -> Path:
        return Path(self.work_dir) if self.work_dir else Path(tempfile.gettempdir()) / "floatvid"


class SubtitleConfig(BaseModel):
    # lookup order for sidecar files next to a video
    extensions: CsvList = Field(default_factory=lambda: [".smi", ".srt", ".vtt"])
    legacy_encoding: str = "cp949"
    replacement_threshold: int = 5
    last_cue_ms: int = 5000
    min_cue_ms: int = 50

    @field_validator("extensions", mode="before")
    @classmethod
    def _split_csv(cls, v):
        return [e if e.startswith(".") else f".{e}" for e in csv_to_lower_list(v)]


class Settings(BaseSettings):
    # -------- App / Env --------
    app_name: str = "floatvid"
    app_env: str = "development"  # development|test|production
    log_level: str = "INFO"

    # Optional absolute override for the ffmpeg binary (takes precedence over ffmpeg.bin)
    ffmpeg_bin_override: Optional[str] = Field(default=None, alias="FFMPEG_BIN")

    # -------- Sub-configs --------
    ffmpeg: FFmpegConfig = FFmpegConfig()
    codecs: CodecPolicy = CodecPolicy()
    streaming: StreamingConfig = StreamingConfig()
    subtitles: SubtitleConfig = SubtitleConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @computed_field  # type: ignore[misc]
    @property
    def ffmpeg_bin(self) -> str:
        return self.ffmpeg_bin_override or self.ffmpeg.bin


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Global settings accessor (cached). Use this everywhere you need config:
        from floatvid.common.settings import get_settings
        cfg = get_settings()
    """
    return Settings()  # pydantic_settings will read from .env automatically
