"""
H.264 Annex B NAL unit scanning.

NAL units are located by their start codes and described as offset ranges into
the elementary stream unit. Only SEI units are handed out, as memoryview
slices, so the rest of the video data is never copied.
"""

import logging
from typing import Iterator, Tuple, Union

logger = logging.getLogger(__name__)

NALU_TYPE_SEI = 6

START_CODE = b"\x00\x00\x01"
EMULATION_PREVENTION = b"\x00\x00\x03"


def iter_nalu_ranges(data: Union[bytes, bytearray]) -> Iterator[Tuple[int, int, int]]:
    """
    Yield the byte range and type of every NAL unit in an Annex B stream.

    Both 3- and 4-byte start codes are accepted: the extra leading zero of a
    4-byte start code is trimmed from the end of the preceding unit together
    with any trailing_zero_8bits.

    Args:
        data: Elementary stream bytes

    Yields:
        Tuples of (start, end, nal_unit_type); ``data[start:end]`` begins with
        the NAL header byte
    """
    size = len(data)
    pos = data.find(START_CODE)
    while pos != -1:
        start = pos + len(START_CODE)
        if start >= size:
            return
        next_pos = data.find(START_CODE, start)
        end = next_pos if next_pos != -1 else size
        while end > start and data[end - 1] == 0:
            end -= 1
        if end > start:
            header = data[start]
            if header & 0x80:
                logger.debug(f"NAL unit at offset {start} has forbidden_zero_bit set, skipping")
            else:
                yield start, end, header & 0x1F
        pos = next_pos


def iter_sei_nalus(data: Union[bytes, bytearray]) -> Iterator[memoryview]:
    """
    Yield SEI NAL units (header byte included) as zero-copy views.

    Example:
        >>> stream = b"\\x00\\x00\\x00\\x01\\x09\\xf0\\x00\\x00\\x01\\x06\\x04\\x00\\x80"
        >>> [bytes(n) for n in iter_sei_nalus(stream)]
        [b'\\x06\\x04\\x00\\x80']
    """
    view = memoryview(data)
    for start, end, nal_type in iter_nalu_ranges(data):
        if nal_type == NALU_TYPE_SEI:
            yield view[start:end]


def unescape_rbsp(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """
    Remove emulation prevention bytes (the 0x03 in 0x00 0x00 0x03).

    Example:
        >>> unescape_rbsp(b"\\x00\\x00\\x03\\x01")
        b'\\x00\\x00\\x01'
    """
    if isinstance(data, memoryview):
        data = data.tobytes()
    pos = data.find(EMULATION_PREVENTION)
    if pos == -1:
        return bytes(data)

    out = bytearray()
    last = 0
    while pos != -1:
        out += data[last:pos + 2]
        last = pos + 3
        pos = data.find(EMULATION_PREVENTION, last)
    out += data[last:]
    return bytes(out)
