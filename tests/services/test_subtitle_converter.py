import asyncio

import pytest

from floatvid.domain.errors import EmptySubtitle, FileNotFound, UnsupportedSubtitleFormat
from floatvid.services.subtitles.converter import SubtitleConverter
from floatvid.services.subtitles.sidecar import find_sidecar_subtitle


def _convert(path):
    return asyncio.run(SubtitleConverter().convert(path))


def test_srt_is_rewritten(tmp_path):
    f = tmp_path / "a.srt"
    f.write_text("1\n00:00:01,000 --> 00:00:02,000\nHi\n", encoding="utf-8")
    assert _convert(f) == "WEBVTT\n\n1\n00:00:01.000 --> 00:00:02.000\nHi\n"


def test_vtt_passes_through(tmp_path):
    f = tmp_path / "a.vtt"
    body = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nHi\n"
    f.write_text(body, encoding="utf-8")
    assert _convert(f) == body


def test_cp949_smi(tmp_path):
    f = tmp_path / "a.smi"
    doc = "<SAMI><BODY><SYNC Start=1000><P>자막 테스트입니다<SYNC Start=3000><P>&nbsp;</BODY></SAMI>"
    f.write_bytes(doc.encode("cp949"))
    assert _convert(f) == "WEBVTT\n\n00:00:01.000 --> 00:00:03.000\n자막 테스트입니다\n\n"

    cues = asyncio.run(SubtitleConverter().cues(f))
    assert [(c.start_ms, c.end_ms) for c in cues] == [(1000, 3000)]


def test_errors(tmp_path):
    with pytest.raises(FileNotFound):
        _convert(tmp_path / "missing.srt")

    ass = tmp_path / "a.ass"
    ass.write_text("[Script Info]", encoding="utf-8")
    with pytest.raises(UnsupportedSubtitleFormat):
        _convert(ass)

    empty = tmp_path / "empty.srt"
    empty.write_text("  \n", encoding="utf-8")
    with pytest.raises(EmptySubtitle):
        _convert(empty)


def test_sidecar_lookup_order(tmp_path):
    video = tmp_path / "movie.mkv"
    video.write_bytes(b"")
    assert asyncio.run(find_sidecar_subtitle(video)) is None

    (tmp_path / "movie.srt").write_text("x", encoding="utf-8")
    (tmp_path / "movie.SMI").write_text("x", encoding="utf-8")
    assert asyncio.run(find_sidecar_subtitle(video)).name == "movie.SMI"
    assert asyncio.run(find_sidecar_subtitle(video, [".srt"])).name == "movie.srt"

    # a directory named like a subtitle is not one
    (tmp_path / "movie.vtt").mkdir()
    assert asyncio.run(find_sidecar_subtitle(video, [".vtt"])) is None
