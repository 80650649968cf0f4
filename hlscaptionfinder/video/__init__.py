"""
Video elementary stream package.

NAL unit scanning and SEI parsing for H.264 streams carrying ATSC captions.
"""

from .nalu import (
    NALU_TYPE_SEI,
    iter_nalu_ranges,
    iter_sei_nalus,
    unescape_rbsp,
)
from .sei import (
    SeiMessage,
    extract_caption_payloads,
    iter_sei_messages,
    parse_atsc_user_data,
    read_sei_value,
)

__all__ = [
    "NALU_TYPE_SEI",
    "iter_nalu_ranges",
    "iter_sei_nalus",
    "unescape_rbsp",
    "SeiMessage",
    "extract_caption_payloads",
    "iter_sei_messages",
    "parse_atsc_user_data",
    "read_sei_value",
]
