"""
Program-specific information tables (PAT and PMT).

Only what is needed to find the video elementary stream is decoded: the PMT PID
from the Program Association Table and the elementary PIDs with their stream
types from the Program Map Table.
"""

import logging
from typing import List, Optional, Tuple

from ..bitstream import BitstreamReader, BytesLike
from ..exceptions import OutOfBounds

logger = logging.getLogger(__name__)

PAT_TABLE_ID = 0x00
PMT_TABLE_ID = 0x02
CRC_SIZE = 4

STREAM_TYPE_H264 = 0x1B


def _section_reader(payload: BytesLike) -> BitstreamReader:
    """Skip the pointer field that precedes a section starting in this payload."""
    reader = BitstreamReader(payload)
    pointer = reader.read_u8()
    reader.skip(pointer)
    return reader


def parse_pat(payload: BytesLike) -> Optional[int]:
    """
    Return the PMT PID of the first program listed in a PAT section.

    Program number 0 points at the network information table and is skipped.

    Args:
        payload: Transport packet payload that starts a PAT section

    Returns:
        PMT PID, or None if the section is truncated or lists no program
    """
    try:
        reader = _section_reader(payload)
        if reader.read_u8() != PAT_TABLE_ID:
            return None
        reader.read_bits(4)  # syntax indicator, zero bit, reserved
        section_length = reader.read_bits(12)
        reader.skip(5)  # transport_stream_id, version, section numbers
        entries_length = section_length - 5 - CRC_SIZE
        while entries_length >= 4:
            program_number = reader.read_u16()
            reader.read_bits(3)
            pid = reader.read_bits(13)
            entries_length -= 4
            if program_number != 0:
                return pid
    except OutOfBounds as e:
        logger.debug(f"Truncated PAT section: {e}")
    return None


def parse_pmt(payload: BytesLike) -> List[Tuple[int, int]]:
    """
    List the (stream_type, elementary_pid) pairs declared by a PMT section.

    A section whose current_next_indicator is 0 describes a future mapping and
    yields nothing.
    """
    streams: List[Tuple[int, int]] = []
    try:
        reader = _section_reader(payload)
        if reader.read_u8() != PMT_TABLE_ID:
            return streams
        reader.read_bits(4)
        section_length = reader.read_bits(12)
        reader.skip(2)  # program_number
        reader.read_bits(7)  # reserved, version_number
        current = reader.read_bits(1)
        reader.skip(2)  # section_number, last_section_number
        reader.read_bits(3)
        reader.read_bits(13)  # PCR_PID
        reader.read_bits(4)
        program_info_length = reader.read_bits(12)
        reader.skip(program_info_length)

        if not current:
            return streams

        loop_length = section_length - 9 - program_info_length - CRC_SIZE
        while loop_length >= 5:
            stream_type = reader.read_u8()
            reader.read_bits(3)
            elementary_pid = reader.read_bits(13)
            reader.read_bits(4)
            es_info_length = reader.read_bits(12)
            reader.skip(es_info_length)
            streams.append((stream_type, elementary_pid))
            loop_length -= 5 + es_info_length
    except OutOfBounds as e:
        logger.debug(f"Truncated PMT section after {len(streams)} streams: {e}")
    return streams


def find_video_pid(payload: BytesLike) -> Optional[int]:
    """Return the PID of the first H.264 stream declared in a PMT section."""
    for stream_type, pid in parse_pmt(payload):
        if stream_type == STREAM_TYPE_H264:
            return pid
    return None
