import pytest

from floatvid.common.http.ranges import RangeNotSatisfiable, parse_range

SIZE = 1000


def test_no_header_serves_whole_body():
    assert parse_range(None, SIZE) is None
    assert parse_range("", SIZE) is None
    assert parse_range("items=0-1", SIZE) is None


def test_closed_range():
    r = parse_range("bytes=100-199", SIZE)
    assert (r.start, r.end, r.length) == (100, 199, 100)
    assert r.headers() == {
        "Accept-Ranges": "bytes",
        "Content-Length": "100",
        "Content-Range": "bytes 100-199/1000",
    }


def test_open_ended_range_runs_to_last_byte():
    r = parse_range("bytes=990-", SIZE)
    assert (r.start, r.end, r.length) == (990, 999, 10)


def test_suffix_range():
    r = parse_range("bytes=-100", SIZE)
    assert (r.start, r.end) == (900, 999)
    # longer than the file: whole file
    r = parse_range("bytes=-5000", SIZE)
    assert (r.start, r.end) == (0, 999)


def test_multi_range_uses_first():
    r = parse_range("bytes=0-9, 20-29", SIZE)
    assert (r.start, r.end) == (0, 9)


@pytest.mark.parametrize(
    "header",
    [
        "bytes=1000-",      # start == size
        "bytes=0-1000",     # end == size
        "bytes=500-100",    # start > end
        "bytes=abc-def",
        "bytes=1e2-",
        "bytes=-0",
        "bytes=12",
    ],
)
def test_unsatisfiable(header):
    with pytest.raises(RangeNotSatisfiable) as ei:
        parse_range(header, SIZE)
    assert ei.value.size == SIZE
