"""
Caption decoding package.

Parses the ATSC cc_data container and decodes its CEA-608 byte pairs into
caption text.
"""

from .cea608 import Cea608Decoder, has_odd_parity, normalize_caption_text
from .cea708 import parse_cc_data
from .charsets import (
    BASIC_CHARS,
    EXTENDED_PORTUGUESE_GERMAN,
    EXTENDED_SPANISH_FRENCH,
    SPECIAL_CHARS,
    basic_char,
)

__all__ = [
    "Cea608Decoder",
    "has_odd_parity",
    "normalize_caption_text",
    "parse_cc_data",
    "BASIC_CHARS",
    "EXTENDED_PORTUGUESE_GERMAN",
    "EXTENDED_SPANISH_FRENCH",
    "SPECIAL_CHARS",
    "basic_char",
]
