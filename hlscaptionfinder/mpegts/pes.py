"""
PES packet header parsing.
"""

import logging
from typing import Optional, Tuple

from ..bitstream import BitstreamReader, BytesLike
from ..exceptions import OutOfBounds

logger = logging.getLogger(__name__)

PES_START_CODE = 0x000001

# Stream ids without the optional PES header (ISO/IEC 13818-1 table 2-22)
_NO_OPTIONAL_HEADER = {0xBC, 0xBE, 0xBF, 0xF0, 0xF1, 0xF2, 0xF8, 0xFF}


def decode_timestamp(data: BytesLike) -> int:
    """
    Decode a 33-bit PTS/DTS field spread over five bytes with marker bits.

    Example:
        >>> decode_timestamp(bytes([0x21, 0x00, 0x01, 0x00, 0x01]))
        0
    """
    return (
        ((data[0] >> 1) & 0x07) << 30
        | data[1] << 22
        | (data[2] >> 1) << 15
        | data[3] << 7
        | data[4] >> 1
    )


def parse_pes_header(payload: BytesLike) -> Optional[Tuple[int, Optional[int], Optional[int]]]:
    """
    Parse the PES header at the start of a payload-unit-start packet.

    Args:
        payload: Packet payload beginning with the PES start code

    Returns:
        Tuple of (header_length, pts, dts), where header_length is the offset
        of the elementary stream data within the payload; None if the payload
        does not start a valid PES packet
    """
    try:
        reader = BitstreamReader(payload)
        if reader.read_u24() != PES_START_CODE:
            return None
        stream_id = reader.read_u8()
        reader.skip(2)  # PES_packet_length, zero for unbounded video
        if stream_id in _NO_OPTIONAL_HEADER:
            return reader.position, None, None

        reader.skip(1)  # scrambling, priority, alignment, copyright, original
        pts_dts_flags = reader.read_bits(2)
        reader.read_bits(6)
        header_data_length = reader.read_u8()
        header = reader.read_bytes(header_data_length)

        pts = dts = None
        if pts_dts_flags & 0x2 and len(header) >= 5:
            pts = decode_timestamp(header[0:5])
            dts = pts
            if pts_dts_flags == 0x3 and len(header) >= 10:
                dts = decode_timestamp(header[5:10])
        return reader.position, pts, dts
    except OutOfBounds as e:
        logger.debug(f"Truncated PES header: {e}")
        return None
