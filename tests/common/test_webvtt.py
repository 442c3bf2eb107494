from floatvid.common.subtitles.webvtt import (
    WEBVTT_HEADER,
    format_vtt_timestamp,
    parse_smi,
    render_vtt,
    srt_to_vtt,
)
from floatvid.domain.entities.subtitle import SubtitleCue

SRT = """1
00:00:01,000 --> 00:00:02,500
Hello

2
01:02:03,004 --> 01:02:04,000
World
"""

SMI = """<SAMI>
<HEAD><TITLE>x</TITLE></HEAD>
<BODY>
<SYNC Start=1000><P Class=KRCC>A line
<SYNC Start=2000><P Class=KRCC>&nbsp;
<SYNC Start=500><P Class=KRCC>B<br>line
</BODY>
</SAMI>
"""


def test_format_vtt_timestamp():
    assert format_vtt_timestamp(0) == "00:00:00.000"
    assert format_vtt_timestamp(3723456) == "01:02:03.456"


def test_srt_to_vtt_rewrites_separator_only():
    out = srt_to_vtt(SRT)
    assert out.startswith(WEBVTT_HEADER)
    assert "00:00:01.000 --> 00:00:02.500\nHello" in out
    assert "01:02:03.004 --> 01:02:04.000" in out
    assert "," not in out.replace("\n", "")


def test_smi_cues_are_ordered_and_end_at_next_sync():
    cues = parse_smi(SMI)
    assert cues == [
        SubtitleCue(start_ms=500, end_ms=1000, text="B line"),
        SubtitleCue(start_ms=1000, end_ms=2000, text="A line"),
    ]


def test_smi_last_cue_and_min_duration():
    doc = "<SAMI><BODY><SYNC Start=100><P>x<SYNC Start=120><P>y</BODY></SAMI>"
    cues = parse_smi(doc, last_cue_ms=5000, min_cue_ms=50)
    assert cues[0] == SubtitleCue(100, 150, "x")
    assert cues[1] == SubtitleCue(120, 5120, "y")


def test_smi_entities_decoded_once():
    doc = "<SAMI><BODY><SYNC Start=0><P>Tom &AMP; Jerry &lt;3 &amp;lt;</BODY></SAMI>"
    assert parse_smi(doc)[0].text == "Tom & Jerry <3 &lt;"


def test_smi_sync_without_start_is_skipped():
    doc = "<SAMI><BODY><SYNC><P>lost<SYNC Start=10><P>kept</BODY></SAMI>"
    cues = parse_smi(doc)
    assert [c.text for c in cues] == ["kept"]


def test_render_vtt():
    out = render_vtt([SubtitleCue(500, 1000, "B")])
    assert out == "WEBVTT\n\n00:00:00.500 --> 00:00:01.000\nB\n\n"
