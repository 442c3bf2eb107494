import pytest

from floatvid.domain.entities.probe import MediaCapabilityReport
from floatvid.domain.enums.playback_mode import PlaybackMode
from floatvid.domain.policies.playback_decision import codec_support, decide


def _report(video_ok: bool, audio_ok: bool) -> MediaCapabilityReport:
    return MediaCapabilityReport(
        duration_sec=60.0,
        video_codec="h264" if video_ok else "hevc",
        audio_codec="aac" if audio_ok else "ac3",
        video_codec_supported=video_ok,
        audio_codec_supported=audio_ok,
    )


@pytest.mark.parametrize(
    "video_ok,audio_ok,expected",
    [
        (True, True, PlaybackMode.native),
        (True, False, PlaybackMode.stream),
        (False, True, PlaybackMode.stream),
        (False, False, PlaybackMode.stream),
    ],
)
def test_decision_truth_table(video_ok, audio_ok, expected):
    assert decide(_report(video_ok, audio_ok)) is expected


def test_codec_support_is_case_insensitive():
    assert codec_support("H264", "Opus") == (True, True)
    assert codec_support("hevc", "dts") == (False, False)


def test_missing_audio_is_unsupported_and_streams():
    assert codec_support("vp8", None) == (True, False)
    report = MediaCapabilityReport(
        duration_sec=30.0,
        video_codec="h264",
        audio_codec=None,
        video_codec_supported=True,
        audio_codec_supported=False,
    )
    assert decide(report) is PlaybackMode.stream


def test_custom_allow_lists():
    assert codec_support("hevc", "ac3", video_allow=["hevc"], audio_allow=["ac3"]) == (True, True)
