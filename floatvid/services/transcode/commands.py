# floatvid/services/transcode/commands.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from floatvid.common.settings import FFmpegConfig, StreamingConfig
from floatvid.domain.enums.stream_container import StreamContainer

HLS_MANIFEST_NAME = "stream.m3u8"
HLS_SEGMENT_PATTERN = "segment%d.ts"


def pick_video_codec(supported: bool, hw_available: bool, ff: FFmpegConfig) -> str:
    if supported:
        return "copy"
    return ff.hw_encoder if hw_available else ff.sw_encoder


def pick_audio_codec(supported: bool, ff: FFmpegConfig) -> str:
    return "copy" if supported else ff.audio_encoder


def _format_seconds(value: float) -> str:
    return f"{max(0.0, float(value)):.3f}"


def build_transcode_cmd(
    *,
    source: Path | str,
    start_sec: float,
    video_codec: str,
    audio_codec: str,
    container: StreamContainer,
    ff: FFmpegConfig,
    streaming: StreamingConfig,
    output_dir: Optional[Path] = None,
) -> List[str]:
    """
    ffmpeg argv for one transcode session.

    fmp4: fragmented MP4 on stdout, consumed by a single HTTP response.
    hls:  rolling manifest (`hls_list_size` entries of `hls_segment_sec` each,
          old segments deleted) written into `output_dir`.
    """
    cmd = [
        ff.bin,
        "-hide_banner",
        "-nostdin",
        "-nostats",
        "-loglevel", ff.loglevel,
        # input seek: fast, keyframe-aligned
        "-ss", _format_seconds(start_sec),
        "-i", str(source),
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-sn",
        "-c:v", video_codec,
    ]
    if video_codec == ff.sw_encoder and video_codec == "libx264":
        cmd += ["-preset", ff.x264_preset, "-pix_fmt", "yuv420p"]
    cmd += ["-c:a", audio_codec]
    if audio_codec != "copy":
        cmd += ["-ac", "2"]

    if container is StreamContainer.HLS:
        if output_dir is None:
            raise ValueError("output_dir is required for HLS output")
        out = Path(output_dir)
        cmd += [
            "-f", "hls",
            "-hls_time", str(streaming.hls_segment_sec),
            "-hls_list_size", str(streaming.hls_list_size),
            "-hls_flags", "delete_segments",
            "-hls_segment_filename", str(out / HLS_SEGMENT_PATTERN),
            str(out / HLS_MANIFEST_NAME),
        ]
    else:
        cmd += [
            "-movflags", "frag_keyframe+empty_moov+default_base_moof",
            "-f", "mp4",
            "pipe:1",
        ]
    return cmd


def build_encoders_cmd(ff: FFmpegConfig) -> List[str]:
    return [ff.bin, "-hide_banner", "-nostdin", "-encoders"]
