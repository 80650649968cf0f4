from hlscaptionfinder.bitstream import BitstreamReader
from hlscaptionfinder.video import (
    extract_caption_payloads,
    iter_sei_messages,
    parse_atsc_user_data,
    read_sei_value,
)

from ts_builders import (
    build_cc_data,
    build_sei_nalu,
    ga94_payload,
    sei_message,
    text_pairs,
)


def test_sei_value_accumulates_ff_bytes():
    assert read_sei_value(BitstreamReader(b"\x05")) == 5
    assert read_sei_value(BitstreamReader(b"\xff\x00")) == 255
    assert read_sei_value(BitstreamReader(b"\xff\xff\x05")) == 515


def test_iter_sei_messages_stops_at_trailing_bits():
    rbsp = sei_message(5, b"ab") + sei_message(4, b"xyz") + b"\x80"
    messages = list(iter_sei_messages(rbsp))
    assert [(m.payload_type, bytes(m.payload)) for m in messages] == [(5, b"ab"), (4, b"xyz")]


def test_large_payload_size():
    payload = bytes(range(256)) * 2
    messages = list(iter_sei_messages(sei_message(5, payload) + b"\x80"))
    assert len(messages) == 1
    assert bytes(messages[0].payload) == payload


def test_truncated_message_keeps_earlier_ones():
    rbsp = sei_message(5, b"ok") + b"\x04\x0a\x01\x02\x03"
    messages = list(iter_sei_messages(rbsp))
    assert [bytes(m.payload) for m in messages] == [b"ok"]


def test_parse_atsc_user_data():
    cc_data = build_cc_data(text_pairs("HI"))
    assert parse_atsc_user_data(ga94_payload(cc_data)) == cc_data


def test_parse_atsc_user_data_rejects_other_registrants():
    assert parse_atsc_user_data(ga94_payload(b"\x03\x41", identifier=b"DTG1")) is None
    assert parse_atsc_user_data(b"\x26\x00\x31GA94\x03") is None
    assert parse_atsc_user_data(b"\xb5\x00") is None


def test_extract_caption_payloads_from_mixed_nalu():
    cc_data = build_cc_data(text_pairs("HI"))
    nalu = build_sei_nalu(
        sei_message(1, b"\x10\x20"),  # pic timing
        sei_message(4, ga94_payload(cc_data)),
        sei_message(4, ga94_payload(b"\x06\x01", identifier=b"DTG1")),
        sei_message(4, ga94_payload(cc_data)),
    )
    assert extract_caption_payloads(nalu) == [cc_data, cc_data]


def test_extract_caption_payloads_unescapes():
    user_data = b"\x03\x00\x00\x02"
    nalu = build_sei_nalu(sei_message(4, ga94_payload(user_data)))
    # The builder had to escape the payload
    assert b"\x00\x00\x03\x02" in nalu
    assert extract_caption_payloads(nalu) == [user_data]


def test_extract_caption_payloads_truncated_nalu():
    cc_data = build_cc_data(text_pairs("HI"))
    nalu = build_sei_nalu(sei_message(4, ga94_payload(cc_data)), sei_message(4, ga94_payload(cc_data)))
    assert extract_caption_payloads(nalu[:-6]) == [cc_data]
