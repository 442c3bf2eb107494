# floatvid/common/subtitles/charset.py
from __future__ import annotations

import codecs

REPLACEMENT_CHAR = "\ufffd"
SAMI_MARKER = "<sami>"


def decode_subtitle_bytes(
    data: bytes,
    *,
    legacy_encoding: str = "cp949",
    replacement_threshold: int = 5,
) -> str:
    """
    Decode subtitle bytes without a declared charset.

    1. A BOM wins (UTF-16LE, UTF-16BE, UTF-8).
    2. SAMI files in the wild are mostly legacy Korean code pages, but some are
       UTF-8 with the same markup. When the legacy decoding shows a <sami>
       marker, it is preferred unless the UTF-8 decoding also shows the marker
       and has fewer than `replacement_threshold` replacement characters.
    3. Otherwise UTF-8, with undecodable bytes replaced.
    """
    if data.startswith(codecs.BOM_UTF16_LE):
        return data[len(codecs.BOM_UTF16_LE):].decode("utf-16-le", "replace")
    if data.startswith(codecs.BOM_UTF16_BE):
        return data[len(codecs.BOM_UTF16_BE):].decode("utf-16-be", "replace")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", "replace")

    utf8_text = data.decode("utf-8", "replace")
    legacy_text = data.decode(legacy_encoding, "replace")
    if SAMI_MARKER in legacy_text.lower():
        if SAMI_MARKER in utf8_text.lower() and utf8_text.count(REPLACEMENT_CHAR) < replacement_threshold:
            return utf8_text
        return legacy_text
    return utf8_text
