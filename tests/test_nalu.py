from hlscaptionfinder.video import NALU_TYPE_SEI, iter_nalu_ranges, iter_sei_nalus, unescape_rbsp

from ts_builders import build_access_unit, caption_sei_nalu, text_pairs


def test_nalu_types_and_ranges():
    stream = b"\x00\x00\x00\x01\x09\xf0\x00\x00\x01\x06\x04\x00\x80\x00\x00\x01\x65\x88"
    ranges = list(iter_nalu_ranges(stream))
    assert [nal_type for _, _, nal_type in ranges] == [9, NALU_TYPE_SEI, 5]
    assert [stream[start:end] for start, end, _ in ranges] == [
        b"\x09\xf0",
        b"\x06\x04\x00\x80",
        b"\x65\x88",
    ]


def test_four_byte_start_code_zero_is_trimmed():
    stream = b"\x00\x00\x01\x06\xaa\x00\x00\x00\x01\x09\xf0"
    ranges = list(iter_nalu_ranges(stream))
    assert ranges[0] == (3, 5, NALU_TYPE_SEI)


def test_forbidden_zero_bit_units_are_skipped():
    stream = b"\x00\x00\x01\x86\x01\x02\x00\x00\x01\x06\x80"
    assert [nal_type for _, _, nal_type in iter_nalu_ranges(stream)] == [NALU_TYPE_SEI]


def test_no_start_code_yields_nothing():
    assert list(iter_nalu_ranges(b"\x06\x04\x00\x80")) == []
    assert list(iter_nalu_ranges(b"\x00\x00\x01")) == []


def test_only_sei_units_are_yielded_as_views():
    sei = caption_sei_nalu(text_pairs("HI"))
    access_unit = build_access_unit([sei])
    nalus = list(iter_sei_nalus(access_unit))
    assert len(nalus) == 1
    assert isinstance(nalus[0], memoryview)
    assert bytes(nalus[0]) == sei


def test_unescape_removes_emulation_prevention():
    assert unescape_rbsp(b"\x00\x00\x03\x00\x00\x03\x01") == b"\x00\x00\x00\x00\x01"
    assert unescape_rbsp(memoryview(b"\x01\x00\x00\x03\x03")) == b"\x01\x00\x00\x03"
    assert unescape_rbsp(b"\x12\x34") == b"\x12\x34"
