# floatvid/common/http/ranges.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional


_DIGITS_RE = re.compile(r"[0-9]+")


def _is_int(s: str) -> bool:
    return bool(_DIGITS_RE.fullmatch(s))


class RangeNotSatisfiable(ValueError):
    """The Range header cannot be served for a resource of `size` bytes."""

    def __init__(self, header: str, size: int):
        super().__init__(f"Range {header!r} not satisfiable for {size} bytes")
        self.header = header
        self.size = size


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int  # inclusive
    size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.size}"

    def headers(self) -> Dict[str, str]:
        return {
            "Accept-Ranges": "bytes",
            "Content-Length": str(self.length),
            "Content-Range": self.content_range,
        }


def parse_range(header: Optional[str], size: int) -> Optional[ByteRange]:
    """
    Parse a single `Range: bytes=...` header against a resource of `size` bytes.

    None            -> no (usable) Range header; serve the whole body.
    bytes=a-b       -> [a, b]
    bytes=a-        -> [a, size-1]
    bytes=-n        -> last n bytes
    Multi-range requests are answered with their first range.

    Raises RangeNotSatisfiable for non-numeric bounds, start > end,
    start >= size or end >= size.
    """
    if not header:
        return None
    header = header.strip()
    if not header.lower().startswith("bytes="):
        return None

    first = header.split("=", 1)[1].split(",", 1)[0].strip()
    if "-" not in first:
        raise RangeNotSatisfiable(header, size)
    start_s, end_s = (s.strip() for s in first.split("-", 1))

    if start_s == "":
        if not _is_int(end_s) or int(end_s) == 0 or size == 0:
            raise RangeNotSatisfiable(header, size)
        length = min(int(end_s), size)
        return ByteRange(start=size - length, end=size - 1, size=size)

    if not _is_int(start_s) or (end_s and not _is_int(end_s)):
        raise RangeNotSatisfiable(header, size)
    start = int(start_s)
    end = int(end_s) if end_s else size - 1
    if start > end or start >= size or end >= size:
        raise RangeNotSatisfiable(header, size)
    return ByteRange(start=start, end=end, size=size)
