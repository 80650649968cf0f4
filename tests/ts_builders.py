"""
Builders for synthetic MPEG-TS segments carrying ATSC captions.

Everything is assembled from first principles (PAT, PMT, PES, H.264 SEI with
GA94 cc_data) so the tests need no media files or network access.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

PACKET_SIZE = 188
PAYLOAD_SIZE = 184

PMT_PID = 0x1000
VIDEO_PID = 0x100
AUDIO_PID = 0x101

Pair = Tuple[int, int]


def odd_parity(byte: int) -> int:
    """Set the parity bit so the byte has an odd number of ones."""
    byte &= 0x7F
    return byte | 0x80 if bin(byte).count("1") % 2 == 0 else byte


def pair(byte1: int, byte2: int) -> Pair:
    return odd_parity(byte1), odd_parity(byte2)


def text_pairs(text: str) -> List[Pair]:
    """Encode ASCII text as CEA-608 character pairs, padding odd lengths with a null."""
    codes = [ord(c) for c in text]
    if len(codes) % 2:
        codes.append(0x00)
    return [pair(codes[i], codes[i + 1]) for i in range(0, len(codes), 2)]


# CC1 control pairs (field 1, data channel 1)
RCL = pair(0x14, 0x20)
BS = pair(0x14, 0x21)
TR = pair(0x14, 0x2A)
EDM = pair(0x14, 0x2C)
CR = pair(0x14, 0x2D)
ENM = pair(0x14, 0x2E)
EOC = pair(0x14, 0x2F)
NULL_PAIR = pair(0x00, 0x00)


def caption_pairs(text: str) -> List[Pair]:
    """A complete pop-on caption with doubled control codes."""
    return [RCL, RCL] + text_pairs(text) + [EOC, EOC]


def build_cc_data(pairs: Sequence[Pair], cc_type: int = 0, process_cc: bool = True) -> bytes:
    """ATSC user data (starting at user_data_type_code) for a list of byte pairs."""
    flags = (0x40 if process_cc else 0x00) | len(pairs)
    out = bytearray([0x03, flags, 0xFF])
    for data1, data2 in pairs:
        out += bytes([0xF8 | 0x04 | cc_type, data1, data2])
    out.append(0xFF)  # marker_bits
    return bytes(out)


def escape_rbsp(data: bytes) -> bytes:
    """Insert emulation prevention bytes."""
    out = bytearray()
    zeros = 0
    for byte in data:
        if zeros >= 2 and byte <= 0x03:
            out.append(0x03)
            zeros = 0
        out.append(byte)
        zeros = zeros + 1 if byte == 0 else 0
    return bytes(out)


def encode_sei_value(value: int) -> bytes:
    return b"\xff" * (value // 255) + bytes([value % 255])


def sei_message(payload_type: int, payload: bytes) -> bytes:
    return encode_sei_value(payload_type) + encode_sei_value(len(payload)) + payload


def ga94_payload(user_data: bytes, identifier: bytes = b"GA94") -> bytes:
    """ITU-T T.35 payload: US country code, ATSC provider code, identifier."""
    return b"\xb5\x00\x31" + identifier + user_data


def build_sei_nalu(*messages: bytes) -> bytes:
    """SEI NAL unit (header included) holding the given raw SEI messages."""
    return b"\x06" + escape_rbsp(b"".join(messages) + b"\x80")


def caption_sei_nalu(pairs: Sequence[Pair], cc_type: int = 0) -> bytes:
    return build_sei_nalu(sei_message(4, ga94_payload(build_cc_data(pairs, cc_type))))


def build_access_unit(sei_nalus: Iterable[bytes] = (), slice_size: int = 16) -> bytes:
    """AUD, optional SEI units and an IDR slice, with Annex B start codes."""
    out = bytearray(b"\x00\x00\x00\x01\x09\xf0")
    for nalu in sei_nalus:
        out += b"\x00\x00\x01" + nalu
    out += b"\x00\x00\x01\x65" + bytes([0x88] * slice_size)
    return bytes(out)


def caption_access_unit(pairs: Sequence[Pair], cc_type: int = 0, slice_size: int = 16) -> bytes:
    return build_access_unit([caption_sei_nalu(pairs, cc_type)], slice_size=slice_size)


def encode_timestamp(value: int, prefix: int = 0x2) -> bytes:
    return bytes([
        (prefix << 4) | (((value >> 30) & 0x07) << 1) | 0x01,
        (value >> 22) & 0xFF,
        (((value >> 15) & 0x7F) << 1) | 0x01,
        (value >> 7) & 0xFF,
        ((value & 0x7F) << 1) | 0x01,
    ])


def build_pes(es_data: bytes, pts: Optional[int] = None, dts: Optional[int] = None) -> bytes:
    """Video PES packet with unbounded length."""
    if pts is None:
        return b"\x00\x00\x01\xe0\x00\x00\x80\x00\x00" + es_data
    if dts is None:
        header = encode_timestamp(pts, 0x2)
        flags = 0x80
    else:
        header = encode_timestamp(pts, 0x3) + encode_timestamp(dts, 0x1)
        flags = 0xC0
    return b"\x00\x00\x01\xe0\x00\x00\x80" + bytes([flags, len(header)]) + header + es_data


def ts_packet(pid: int, payload: bytes, cc: int, pusi: bool = False) -> bytes:
    """One transport packet; short payloads are padded with adaptation field stuffing."""
    assert len(payload) <= PAYLOAD_SIZE
    header = bytes([
        0x47,
        (0x40 if pusi else 0x00) | ((pid >> 8) & 0x1F),
        pid & 0xFF,
    ])
    if len(payload) == PAYLOAD_SIZE:
        return header + bytes([0x10 | cc]) + payload
    stuffing = PAYLOAD_SIZE - 1 - len(payload)
    adaptation = bytes([stuffing])
    if stuffing:
        adaptation += b"\x00" + b"\xff" * (stuffing - 1)
    return header + bytes([0x30 | cc]) + adaptation + payload


def section_packet(pid: int, section: bytes, cc: int) -> bytes:
    payload = b"\x00" + section
    return ts_packet(pid, payload + b"\xff" * (PAYLOAD_SIZE - len(payload)), cc, pusi=True)


def build_pat(pmt_pid: int = PMT_PID) -> bytes:
    section_length = 5 + 4 + 4
    return bytes([
        0x00, 0xB0, section_length,
        0x00, 0x01, 0xC1, 0x00, 0x00,
        0x00, 0x01, 0xE0 | (pmt_pid >> 8), pmt_pid & 0xFF,
    ]) + b"\x00\x00\x00\x00"


def build_pmt(streams: Sequence[Tuple[int, int]] = ((0x1B, VIDEO_PID), (0x0F, AUDIO_PID)),
              current: bool = True) -> bytes:
    loop = bytearray()
    for stream_type, pid in streams:
        loop += bytes([stream_type, 0xE0 | (pid >> 8), pid & 0xFF, 0xF0, 0x00])
    section_length = 9 + len(loop) + 4
    pcr_pid = streams[0][1] if streams else 0x1FFF
    return bytes([
        0x02, 0xB0, section_length,
        0x00, 0x01, 0xC0 | (0x01 if current else 0x00), 0x00, 0x00,
        0xE0 | (pcr_pid >> 8), pcr_pid & 0xFF, 0xF0, 0x00,
    ]) + bytes(loop) + b"\x00\x00\x00\x00"


class SegmentBuilder:
    """Accumulates packets while tracking per-PID continuity counters."""

    def __init__(self):
        self.packets: List[bytes] = []
        self._cc: Dict[int, int] = {}

    def _next_cc(self, pid: int) -> int:
        cc = self._cc.get(pid, -1)
        cc = (cc + 1) % 16
        self._cc[pid] = cc
        return cc

    def add_psi(self, video_pid: int = VIDEO_PID) -> "SegmentBuilder":
        self.packets.append(section_packet(0x0000, build_pat(), self._next_cc(0x0000)))
        self.packets.append(section_packet(PMT_PID, build_pmt(((0x1B, video_pid), (0x0F, AUDIO_PID))),
                                           self._next_cc(PMT_PID)))
        return self

    def add_pes(self, pes: bytes, pid: int = VIDEO_PID) -> "SegmentBuilder":
        for offset in range(0, len(pes), PAYLOAD_SIZE):
            chunk = pes[offset:offset + PAYLOAD_SIZE]
            self.packets.append(ts_packet(pid, chunk, self._next_cc(pid), pusi=offset == 0))
        return self

    def add_access_unit(self, access_unit: bytes, pts: Optional[int] = None,
                        pid: int = VIDEO_PID) -> "SegmentBuilder":
        return self.add_pes(build_pes(access_unit, pts), pid)

    def build(self) -> bytes:
        return b"".join(self.packets)


def build_segment(access_units: Sequence[bytes], pts_start: int = 90000,
                  frame_ticks: int = 3003, with_psi: bool = True) -> bytes:
    """A complete segment: PAT, PMT, then one PES per access unit."""
    builder = SegmentBuilder()
    if with_psi:
        builder.add_psi()
    for index, access_unit in enumerate(access_units):
        builder.add_access_unit(access_unit, pts=pts_start + index * frame_ticks)
    return builder.build()


def caption_segment(text: str, pts_start: int = 90000) -> bytes:
    """A segment whose single caption reads ``text``."""
    return build_segment([build_access_unit(), caption_access_unit(caption_pairs(text))],
                         pts_start=pts_start)


def empty_segment() -> bytes:
    """A segment with video but no caption data."""
    return build_segment([build_access_unit(), build_access_unit()])
