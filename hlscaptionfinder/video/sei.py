"""
SEI message parsing and ATSC A/53 caption payload extraction.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from ..bitstream import BitstreamReader
from ..exceptions import OutOfBounds
from .nalu import unescape_rbsp

logger = logging.getLogger(__name__)

SEI_USER_DATA_REGISTERED_ITU_T_T35 = 4

T35_COUNTRY_CODE_US = 0xB5
T35_COUNTRY_CODE_EXTENSION = 0xFF
ATSC_PROVIDER_CODE = 0x0031
ATSC_IDENTIFIER = b"GA94"

RBSP_TRAILING_BITS = 0x80


@dataclass
class SeiMessage:
    payload_type: int
    payload: memoryview


def read_sei_value(reader: BitstreamReader) -> int:
    """
    Read an SEI payload type or size.

    Each 0xFF byte adds 255; the first byte below 0xFF ends the value and is
    added as well.
    """
    value = 0
    byte = reader.read_u8()
    while byte == 0xFF:
        value += 255
        byte = reader.read_u8()
    return value + byte


def iter_sei_messages(rbsp: Union[bytes, bytearray]) -> Iterator[SeiMessage]:
    """
    Yield the SEI messages of an unescaped SEI payload (NAL header removed).

    Parsing stops at the rbsp trailing bits. A type or size that runs past the
    end of the data ends iteration; messages already yielded stay valid.
    """
    reader = BitstreamReader(rbsp)
    while reader.remaining() > 0:
        if reader.remaining() == 1 and reader.peek(1)[0] == RBSP_TRAILING_BITS:
            return
        try:
            payload_type = read_sei_value(reader)
            payload_size = read_sei_value(reader)
            payload = reader.read_bytes(payload_size)
        except OutOfBounds as e:
            logger.debug(f"Malformed SEI message at offset {reader.position}: {e}")
            return
        yield SeiMessage(payload_type=payload_type, payload=payload)


def parse_atsc_user_data(payload: Union[bytes, memoryview]) -> Optional[bytes]:
    """
    Return the ATSC user data of an ITU-T T.35 payload tagged "GA94".

    The returned bytes start at user_data_type_code; None means the payload
    belongs to another registrant.
    """
    reader = BitstreamReader(payload)
    try:
        country_code = reader.read_u8()
        if country_code == T35_COUNTRY_CODE_EXTENSION:
            reader.skip(1)
        elif country_code != T35_COUNTRY_CODE_US:
            logger.debug(f"Ignoring T.35 payload with country code 0x{country_code:02x}")
            return None
        provider_code = reader.read_u16()
        identifier = bytes(reader.read_bytes(4))
    except OutOfBounds:
        return None

    if identifier != ATSC_IDENTIFIER:
        logger.debug(f"Ignoring T.35 payload with identifier {identifier!r}")
        return None
    if provider_code != ATSC_PROVIDER_CODE:
        logger.debug(f"GA94 payload with unexpected provider code 0x{provider_code:04x}")
    return bytes(reader.rest())


def extract_caption_payloads(nalu: Union[bytes, memoryview]) -> List[bytes]:
    """
    Extract every GA94 caption payload carried by one SEI NAL unit.

    Args:
        nalu: SEI NAL unit including its one-byte header, still escaped

    Returns:
        Caption payloads in message order (possibly empty)
    """
    rbsp = unescape_rbsp(nalu[1:])
    payloads: List[bytes] = []
    for message in iter_sei_messages(rbsp):
        if message.payload_type != SEI_USER_DATA_REGISTERED_ITU_T_T35:
            logger.debug(f"Skipping SEI payload type {message.payload_type} ({len(message.payload)} bytes)")
            continue
        user_data = parse_atsc_user_data(message.payload)
        if user_data is not None:
            payloads.append(user_data)
    return payloads
