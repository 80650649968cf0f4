"""
Stateful CEA-608 (line 21) caption decoder.

Byte pairs arrive per field. Control codes select one of the two data channels
of their field (CC1/CC2 on field 1, CC3/CC4 on field 2) and characters are
written to the channel selected last. Each channel accumulates text until an
End Of Caption or an erase command closes it. XDS packets sharing field 2 are
skipped.

A decoder instance is meant to live for exactly one segment: create one, feed
it every caption packet of the segment, then call ``flush`` to collect the
captions that never closed.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..models import CaptionPacket, DecodedCaption
from .charsets import EXTENDED_CHARS, SPECIAL_CHARS, basic_char

logger = logging.getLogger(__name__)

# Miscellaneous control codes (second byte, first byte 0x14/0x1C or 0x15/0x1D)
RCL = 0x20  # Resume Caption Loading
BS = 0x21  # Backspace
AOF = 0x22  # Alarm Off
AON = 0x23  # Alarm On
DER = 0x24  # Delete to End of Row
RU2 = 0x25  # Roll Up Captions Two Rows
RU3 = 0x26  # Roll Up Captions Three Rows
RU4 = 0x27  # Roll Up Captions Four Rows
FON = 0x28  # Flash On
RDC = 0x29  # Resume Direct Captioning
TR = 0x2A  # Text Restart
RTD = 0x2B  # Resume Text Display
EDM = 0x2C  # Erase Displayed Memory
CR = 0x2D  # Carriage Return
ENM = 0x2E  # Erase Non-Displayed Memory
EOC = 0x2F  # End Of Caption

CONTROL_CODE_NAMES = {
    RCL: "RCL",
    BS: "BS",
    AOF: "AOF",
    AON: "AON",
    DER: "DER",
    RU2: "RU2",
    RU3: "RU3",
    RU4: "RU4",
    FON: "FON",
    RDC: "RDC",
    TR: "TR",
    RTD: "RTD",
    EDM: "EDM",
    CR: "CR",
    ENM: "ENM",
    EOC: "EOC",
}

MODE_POP_ON = "pop-on"
MODE_ROLL_UP = "roll-up"
MODE_PAINT_ON = "paint-on"
MODE_TEXT = "text"

_MODE_FOR_CODE = {
    RCL: MODE_POP_ON,
    RU2: MODE_ROLL_UP,
    RU3: MODE_ROLL_UP,
    RU4: MODE_ROLL_UP,
    RDC: MODE_PAINT_ON,
    TR: MODE_TEXT,
    RTD: MODE_TEXT,
}

CHANNEL_NAMES = {
    (0, 0): "CC1",
    (0, 1): "CC2",
    (1, 0): "CC3",
    (1, 1): "CC4",
}


def has_odd_parity(byte: int) -> bool:
    """Return True if the byte has an odd number of set bits."""
    return bin(byte & 0xFF).count("1") % 2 == 1


def normalize_caption_text(text: str) -> str:
    """Strip every line and drop the empty ones."""
    lines = (line.strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


class _ChannelState:
    __slots__ = ("name", "chars", "mode", "erased_text")

    def __init__(self, name: str):
        self.name = name
        self.chars: List[str] = []
        self.mode = MODE_POP_ON
        # Set when an erase command closed text since the last EOC
        self.erased_text = False

    def append(self, text: str) -> None:
        self.chars.append(text)

    def backspace(self) -> None:
        if self.chars and self.chars[-1] != "\n":
            self.chars.pop()

    def line_break(self) -> None:
        if self.chars and self.chars[-1] != "\n":
            self.chars.append("\n")

    def take_text(self) -> str:
        text = normalize_caption_text("".join(self.chars))
        self.chars = []
        return text


class Cea608Decoder:
    """
    Decode CEA-608 byte pairs into caption strings.

    Example:
        >>> decoder = Cea608Decoder()
        >>> decoder.decode_pair(0, 0x94, 0x20)  # RCL on CC1
        []
        >>> decoder.decode_pair(0, 0xC8, 0x49)  # "HI"
        []
        >>> [c.text for c in decoder.decode_pair(0, 0x94, 0x2F)]  # EOC
        ['HI']
    """

    def __init__(self):
        self._channels: Dict[Tuple[int, int], _ChannelState] = {}
        self._active_channel = {0: 0, 1: 0}
        self._last_control: Dict[int, Optional[Tuple[int, int]]] = {0: None, 1: None}
        self._in_xds = {0: False, 1: False}
        self.parity_errors = 0
        self.skipped_blocks = 0

    def _channel(self, field: int, channel: int) -> _ChannelState:
        key = (field, channel)
        state = self._channels.get(key)
        if state is None:
            state = _ChannelState(CHANNEL_NAMES[key])
            self._channels[key] = state
        return state

    def decode_packet(self, packet: CaptionPacket) -> List[DecodedCaption]:
        """
        Feed every legacy byte pair of a caption packet through the decoder.

        DTVCC constructs and invalid constructs are skipped.

        Returns:
            Captions completed by this packet, in completion order
        """
        completed: List[DecodedCaption] = []
        if not packet.process_cc_data:
            return completed
        for block in packet.blocks:
            if not block.cc_valid:
                continue
            if not block.is_compatibility:
                self.skipped_blocks += 1
                continue
            completed.extend(self.decode_pair(block.cc_type, block.data1, block.data2))
        return completed

    def decode_pair(self, field: int, data1: int, data2: int) -> List[DecodedCaption]:
        """
        Decode one byte pair received on ``field`` (0 or 1).

        Returns:
            The caption completed by this pair, if any
        """
        if not (has_odd_parity(data1) and has_odd_parity(data2)):
            self.parity_errors += 1
            logger.debug(f"Parity error in pair 0x{data1:02x} 0x{data2:02x} on field {field + 1}")

        byte1 = data1 & 0x7F
        byte2 = data2 & 0x7F

        if byte1 == 0 and byte2 == 0:
            return []

        if 0x10 <= byte1 <= 0x1F:
            # A caption control code interrupts an XDS packet
            self._in_xds[field] = False
            return self._decode_control(field, byte1, byte2)

        self._last_control[field] = None
        if byte1 < 0x20:
            # XDS start/continue (0x01-0x0E) runs until the 0x0F end + checksum pair
            self._in_xds[field] = byte1 != 0x0F
            return []
        if self._in_xds[field]:
            return []

        state = self._channel(field, self._active_channel[field])
        if state.mode == MODE_TEXT:
            return []
        state.append(basic_char(byte1))
        if byte2 >= 0x20:
            state.append(basic_char(byte2))
        return []

    def _decode_control(self, field: int, byte1: int, byte2: int) -> List[DecodedCaption]:
        pair = (byte1, byte2)
        if self._last_control[field] == pair:
            # Control codes are transmitted twice; only the first one counts
            return []
        self._last_control[field] = pair

        channel = 1 if byte1 & 0x08 else 0
        code = byte1 & 0xF7
        self._active_channel[field] = channel
        state = self._channel(field, channel)

        if code in (0x14, 0x15) and 0x20 <= byte2 <= 0x2F:
            return self._decode_misc(state, byte2)

        if code == 0x11 and 0x30 <= byte2 <= 0x3F:
            state.append(SPECIAL_CHARS[byte2])
        elif code == 0x11 and 0x20 <= byte2 <= 0x2F:
            # Mid-row style change, displayed as a space
            state.append(" ")
        elif code in EXTENDED_CHARS and 0x20 <= byte2 <= 0x3F:
            # Extended characters replace the basic fallback sent before them
            state.backspace()
            state.append(EXTENDED_CHARS[code][byte2])
        elif code == 0x17 and 0x21 <= byte2 <= 0x23:
            state.append(" " * (byte2 - 0x20))
        elif 0x40 <= byte2 <= 0x7F:
            # Preamble address code: cursor moves to a new row
            state.line_break()
        else:
            logger.debug(f"Unhandled control code 0x{byte1:02x} 0x{byte2:02x}")
        return []

    def _decode_misc(self, state: _ChannelState, command: int) -> List[DecodedCaption]:
        logger.debug(f"{state.name}: {CONTROL_CODE_NAMES[command]}")

        if command in _MODE_FOR_CODE:
            state.mode = _MODE_FOR_CODE[command]
        elif command == BS:
            state.backspace()
        elif command == CR:
            state.line_break()
        elif command == EOC:
            text = state.take_text()
            erased_text, state.erased_text = state.erased_text, False
            # The usual EDM, EOC flip already closed this caption
            if text or not erased_text:
                return [DecodedCaption(channel=state.name, text=text)]
        elif command in (EDM, ENM):
            text = state.take_text()
            if text:
                state.erased_text = True
                return [DecodedCaption(channel=state.name, text=text)]
        return []

    def flush(self) -> List[DecodedCaption]:
        """
        Return the text still open on every channel and reset it.

        Channels are reported in CC1..CC4 order; captions produced here are
        marked incomplete.
        """
        partial: List[DecodedCaption] = []
        for key in sorted(self._channels):
            text = self._channels[key].take_text()
            if text:
                partial.append(DecodedCaption(channel=self._channels[key].name, text=text, complete=False))
        return partial
