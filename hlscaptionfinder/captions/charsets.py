"""
CEA-608 character sets.

The basic set is ASCII except for a handful of code points that carry accented
letters and symbols. Special characters are sent as a two-byte code with
0x11/0x19 as the first byte; the extended Western European characters use
0x12/0x1A (Spanish/French) and 0x13/0x1B (Portuguese/German/Danish).
"""

from typing import Dict

# Basic characters which differ from standard ASCII
BASIC_OVERRIDES: Dict[int, str] = {
    0x2A: "á",
    0x5C: "é",
    0x5E: "í",
    0x5F: "ó",
    0x60: "ú",
    0x7B: "ç",
    0x7C: "÷",
    0x7D: "Ñ",
    0x7E: "ñ",
    0x7F: "■",
}

BASIC_CHARS: Dict[int, str] = {code: chr(code) for code in range(0x20, 0x80)}
BASIC_CHARS.update(BASIC_OVERRIDES)

SPECIAL_CHARS: Dict[int, str] = {
    0x30: "®",
    0x31: "°",
    0x32: "½",
    0x33: "¿",
    0x34: "™",
    0x35: "¢",
    0x36: "£",
    0x37: "♪",
    0x38: "à",
    0x39: " ",  # transparent space
    0x3A: "è",
    0x3B: "â",
    0x3C: "ê",
    0x3D: "î",
    0x3E: "ô",
    0x3F: "û",
}

EXTENDED_SPANISH_FRENCH: Dict[int, str] = {
    0x20: "Á",
    0x21: "É",
    0x22: "Ó",
    0x23: "Ú",
    0x24: "Ü",
    0x25: "ü",
    0x26: "‘",
    0x27: "¡",
    0x28: "*",
    0x29: "'",
    0x2A: "—",
    0x2B: "©",
    0x2C: "℠",
    0x2D: "•",
    0x2E: "“",
    0x2F: "”",
    0x30: "À",
    0x31: "Â",
    0x32: "Ç",
    0x33: "È",
    0x34: "Ê",
    0x35: "Ë",
    0x36: "ë",
    0x37: "Î",
    0x38: "Ï",
    0x39: "ï",
    0x3A: "Ô",
    0x3B: "Ù",
    0x3C: "ù",
    0x3D: "Û",
    0x3E: "«",
    0x3F: "»",
}

EXTENDED_PORTUGUESE_GERMAN: Dict[int, str] = {
    0x20: "Ã",
    0x21: "ã",
    0x22: "Í",
    0x23: "Ì",
    0x24: "ì",
    0x25: "Ò",
    0x26: "ò",
    0x27: "Õ",
    0x28: "õ",
    0x29: "{",
    0x2A: "}",
    0x2B: "\\",
    0x2C: "^",
    0x2D: "_",
    0x2E: "|",
    0x2F: "~",
    0x30: "Ä",
    0x31: "ä",
    0x32: "Ö",
    0x33: "ö",
    0x34: "ß",
    0x35: "¥",
    0x36: "¤",
    0x37: "¦",
    0x38: "Å",
    0x39: "å",
    0x3A: "Ø",
    0x3B: "ø",
    0x3C: "┌",
    0x3D: "┐",
    0x3E: "└",
    0x3F: "┘",
}

EXTENDED_CHARS: Dict[int, Dict[int, str]] = {
    0x12: EXTENDED_SPANISH_FRENCH,
    0x13: EXTENDED_PORTUGUESE_GERMAN,
}


def basic_char(code: int) -> str:
    """Map a parity-stripped byte in 0x20-0x7F to its display character."""
    return BASIC_CHARS.get(code, "")
