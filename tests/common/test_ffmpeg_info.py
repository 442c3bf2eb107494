from pathlib import Path

import pytest

from floatvid.common.probe.ffmpeg_info import (
    build_probe_cmd,
    find_codec,
    parse_duration,
    parse_ffmpeg_info,
)

BANNER = """\
Input #0, matroska,webm, from '/videos/show.mkv':
  Metadata:
    ENCODER         : Lavf58.76.100
  Duration: 01:02:03.456, start: 0.000000, bitrate: 2500 kb/s
  Stream #0:0(eng): Video: hevc (Main 10), yuv420p10le(tv), 1920x1080, 23.98 fps
  Stream #0:1(jpn): Audio: ac3, 48000 Hz, 5.1(side), fltp, 448 kb/s (default)
  Stream #0:2(kor): Subtitle: subrip
At least one output file must be specified
"""


def test_build_probe_cmd_is_an_info_pass(tmp_path):
    f = tmp_path / "a b.mkv"
    cmd = build_probe_cmd(f, ffmpeg_bin="/opt/ffmpeg")
    assert cmd[0] == "/opt/ffmpeg"
    assert cmd[-2:] == ["-i", str(f)]
    assert "-nostdin" in cmd


def test_parse_duration_keeps_fraction_exact():
    assert parse_duration("01:02:03.456") == 3723.456
    assert parse_duration("00:00:10") == 10.0


@pytest.mark.parametrize("bad", ["", "10", "aa:bb:cc", "1:2"])
def test_parse_duration_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_duration(bad)


def test_parse_banner():
    out = parse_ffmpeg_info(BANNER)
    assert out["duration_token"] == "01:02:03.456"
    assert out["duration_sec"] == 3723.456
    assert out["codec_video"] == "hevc"
    assert out["codec_audio"] == "ac3"
    assert out["container"] == "matroska,webm"


def test_codec_ignores_subtitle_streams_and_missing_audio():
    text = "  Stream #0:0: Video: h264 (High), yuv420p\n  Stream #0:1: Subtitle: ass\n"
    assert find_codec(text, "video") == "h264"
    assert find_codec(text, "audio") is None


def test_parse_banner_without_duration():
    out = parse_ffmpeg_info("/x.mkv: Invalid data found when processing input\n")
    assert out["duration_token"] is None
    assert out["duration_sec"] is None
    assert out["codec_video"] is None
