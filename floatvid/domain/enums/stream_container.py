from __future__ import annotations
from enum import StrEnum


class StreamContainer(StrEnum):
    """How a live transcode is framed for the player."""
    FMP4 = "fmp4"   # progressive fragmented MP4 piped to one response
    HLS = "hls"     # rolling HLS manifest + .ts segments in a temp dir
