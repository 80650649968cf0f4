"""
MPEG transport stream package.

Provides the demultiplexer that turns raw segment bytes into video elementary
stream units, plus the PSI and PES helpers it relies on.
"""

from .demuxer import (
    TS_PACKET_SIZE,
    TransportStreamDemuxer,
    parse_packet,
)
from .pes import decode_timestamp, parse_pes_header
from .psi import find_video_pid, parse_pat, parse_pmt

__all__ = [
    "TS_PACKET_SIZE",
    "TransportStreamDemuxer",
    "parse_packet",
    "decode_timestamp",
    "parse_pes_header",
    "find_video_pid",
    "parse_pat",
    "parse_pmt",
]
