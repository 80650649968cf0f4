"""
ATSC A/53 cc_data parsing.

The GA94 user data of an SEI message wraps a cc_data structure: a header with
the process flags and a count of three-byte cc_data constructs. Constructs with
cc_type 0 or 1 carry CEA-608 byte pairs for field 1 and field 2; cc_type 2 and
3 carry DTVCC (CEA-708) packet data.
"""

import logging
from typing import Optional, Union

from ..bitstream import BitstreamReader
from ..exceptions import OutOfBounds
from ..models import CaptionPacket, CcData

logger = logging.getLogger(__name__)

USER_DATA_TYPE_CC_DATA = 0x03
CC_MARKER_BITS = 0x1F

CC_TYPE_NTSC_FIELD_1 = 0
CC_TYPE_NTSC_FIELD_2 = 1
CC_TYPE_DTVCC_DATA = 2
CC_TYPE_DTVCC_START = 3


def parse_cc_data(
    user_data: Union[bytes, memoryview],
    sequence: int = 0,
    pts: Optional[int] = None,
) -> Optional[CaptionPacket]:
    """
    Parse the cc_data structure that follows a GA94 identifier.

    Args:
        user_data: Bytes starting at user_data_type_code
        sequence: Position of this packet within its segment
        pts: Presentation timestamp of the carrying access unit, if known

    Returns:
        CaptionPacket, or None if the user data is not cc_data (e.g. bar data).
        A truncated construct list keeps the constructs read so far.
    """
    reader = BitstreamReader(user_data)
    try:
        user_data_type_code = reader.read_u8()
        if user_data_type_code != USER_DATA_TYPE_CC_DATA:
            logger.debug(f"Ignoring ATSC user data type 0x{user_data_type_code:02x}")
            return None
        process_em_data = bool(reader.read_bits(1))
        process_cc_data = bool(reader.read_bits(1))
        additional_data = bool(reader.read_bits(1))
        cc_count = reader.read_bits(5)
        em_data = reader.read_u8()
    except OutOfBounds as e:
        logger.debug(f"Truncated cc_data header: {e}")
        return None

    packet = CaptionPacket(
        sequence=sequence,
        process_em_data=process_em_data,
        process_cc_data=process_cc_data,
        additional_data=additional_data,
        em_data=em_data,
        pts=pts,
    )

    for index in range(cc_count):
        try:
            marker_bits = reader.read_bits(5)
            cc_valid = bool(reader.read_bits(1))
            cc_type = reader.read_bits(2)
            data1 = reader.read_u8()
            data2 = reader.read_u8()
        except OutOfBounds:
            logger.debug(f"cc_data truncated after {index} of {cc_count} constructs")
            break
        if marker_bits != CC_MARKER_BITS:
            logger.debug(f"Unexpected cc_data marker bits 0x{marker_bits:02x}")
        packet.blocks.append(CcData(cc_valid=cc_valid, cc_type=cc_type, data1=data1, data2=data2))

    return packet
