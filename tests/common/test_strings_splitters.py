from floatvid.common.strings.splitters import csv_to_list, csv_to_lower_list


def test_csv_to_list_variants():
    assert csv_to_list(None) == []
    assert csv_to_list("a, b , ,c") == ["a", "b", "c"]
    assert csv_to_list(["x", " y ", ""]) == ["x", "y"]


def test_csv_to_lower_list():
    assert csv_to_lower_list("H264, VP8") == ["h264", "vp8"]
