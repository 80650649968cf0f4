"""
MPEG transport stream demultiplexer.

Splits a segment into 188-byte packets, locates the H.264 video PID through
the PAT/PMT, and reassembles that PID's PES packets into elementary stream
units. Packets of every other PID are discarded.
"""

import logging
from typing import Dict, Iterator, Optional, Union

from ..bitstream import BitstreamReader, BytesLike
from ..exceptions import OutOfBounds
from ..models import ElementaryStreamUnit, TransportPacket
from .pes import parse_pes_header
from .psi import find_video_pid, parse_pat

logger = logging.getLogger(__name__)

TS_PACKET_SIZE = 188
TS_SYNC_BYTE = 0x47
PAT_PID = 0x0000
NULL_PID = 0x1FFF

_SYNC = bytes([TS_SYNC_BYTE])
_EMPTY = memoryview(b"")


def parse_packet(packet: BytesLike) -> Optional[TransportPacket]:
    """
    Decode the header and adaptation field of one transport packet.

    Args:
        packet: Exactly one 188-byte packet

    Returns:
        TransportPacket, or None when the packet is malformed (bad sync byte,
        transport error indicator set, adaptation field overrunning the packet)
    """
    reader = BitstreamReader(packet)
    try:
        if reader.read_u8() != TS_SYNC_BYTE:
            return None
        transport_error = reader.read_bits(1)
        payload_unit_start = reader.read_bits(1)
        reader.read_bits(1)  # transport_priority
        pid = reader.read_bits(13)
        reader.read_bits(2)  # transport_scrambling_control
        adaptation_control = reader.read_bits(2)
        continuity_counter = reader.read_bits(4)

        if transport_error:
            return None

        has_adaptation = bool(adaptation_control & 0x2)
        has_payload = bool(adaptation_control & 0x1)
        discontinuity = False
        if has_adaptation:
            length = reader.read_u8()
            if length:
                discontinuity = bool(reader.peek(1)[0] & 0x80)
            reader.skip(length)

        payload = reader.rest() if has_payload else _EMPTY
    except OutOfBounds:
        return None

    return TransportPacket(
        pid=pid,
        payload_unit_start=bool(payload_unit_start),
        continuity_counter=continuity_counter,
        has_adaptation=has_adaptation,
        has_payload=has_payload,
        payload=payload,
        discontinuity=discontinuity,
    )


class _PendingUnit:
    __slots__ = ("data", "pts", "dts", "packet_count")

    def __init__(self, pts: Optional[int], dts: Optional[int]):
        self.data = bytearray()
        self.pts = pts
        self.dts = dts
        self.packet_count = 0


class TransportStreamDemuxer:
    """
    Reassemble the video elementary stream of a transport stream segment.

    The PMT and video PIDs found in one segment are remembered and reused for
    the next ``demux`` call, so a segment that does not repeat its PSI tables
    can still be decoded. Continuity tracking starts fresh for every call.

    Example:
        >>> demuxer = TransportStreamDemuxer()
        >>> units = list(demuxer.demux(segment_bytes))
        >>> demuxer.video_pid
        256
    """

    def __init__(self, video_pid: Optional[int] = None):
        """
        Initialize demuxer.

        Args:
            video_pid: Optional PID hint, used until a PMT says otherwise
        """
        self.pmt_pid: Optional[int] = None
        self.video_pid: Optional[int] = video_pid
        self._continuity: Dict[int, int] = {}
        self._pending: Optional[_PendingUnit] = None
        self.packets_read = 0
        self.packets_skipped = 0
        self.continuity_errors = 0

    def iter_packets(self, data: Union[bytes, bytearray]) -> Iterator[TransportPacket]:
        """
        Yield well-formed packets, resynchronizing after corrupt ones.

        A trailing fragment shorter than a packet is dropped with a warning.
        """
        size = len(data)
        view = memoryview(data)
        offset = 0
        while offset + TS_PACKET_SIZE <= size:
            if data[offset] != TS_SYNC_BYTE:
                next_offset = self._resync(data, offset + 1)
                logger.debug(f"Lost sync at offset {offset}, resuming at {next_offset}")
                self.packets_skipped += 1
                if next_offset < 0:
                    return
                offset = next_offset
                continue

            packet = parse_packet(view[offset:offset + TS_PACKET_SIZE])
            offset += TS_PACKET_SIZE
            if packet is None:
                self.packets_skipped += 1
                continue
            self.packets_read += 1
            yield packet

        if offset < size:
            logger.warning(f"Dropping trailing partial packet of {size - offset} bytes")

    @staticmethod
    def _resync(data: Union[bytes, bytearray], start: int) -> int:
        """Find the next sync byte that is followed by another one a packet later."""
        size = len(data)
        pos = data.find(_SYNC, start)
        while pos != -1:
            following = pos + TS_PACKET_SIZE
            if following >= size or data[following] == TS_SYNC_BYTE:
                return pos
            pos = data.find(_SYNC, pos + 1)
        return -1

    def _check_continuity(self, packet: TransportPacket) -> bool:
        """
        Track the continuity counter of a PID.

        Returns:
            False if the packet is a duplicate that must be ignored
        """
        if not packet.has_payload:
            return True
        pid = packet.pid
        last = self._continuity.get(pid)
        self._continuity[pid] = packet.continuity_counter
        if last is None or packet.discontinuity:
            return True
        if packet.continuity_counter == last:
            logger.debug(f"Duplicate packet on PID {pid} (cc={last})")
            return False
        expected = (last + 1) % 16
        if packet.continuity_counter != expected:
            self.continuity_errors += 1
            logger.debug(
                f"Continuity gap on PID {pid}: expected {expected}, got {packet.continuity_counter}"
            )
            if pid == self.video_pid and self._pending is not None:
                logger.debug("Discarding partially reassembled video unit")
                self._pending = None
        return True

    def _flush(self) -> Optional[ElementaryStreamUnit]:
        pending, self._pending = self._pending, None
        if pending is None or not pending.data:
            return None
        return ElementaryStreamUnit(
            pid=self.video_pid,
            data=bytes(pending.data),
            pts=pending.pts,
            dts=pending.dts,
            packet_count=pending.packet_count,
        )

    def demux(self, data: Union[bytes, bytearray, memoryview]) -> Iterator[ElementaryStreamUnit]:
        """
        Yield the video elementary stream units of a segment in arrival order.

        Args:
            data: Raw segment bytes, ideally a multiple of 188 bytes

        Yields:
            ElementaryStreamUnit for each complete PES packet of the video PID
        """
        if isinstance(data, memoryview):
            data = data.tobytes()
        self._continuity = {}
        self._pending = None

        for packet in self.iter_packets(data):
            if packet.pid == NULL_PID:
                continue
            if not self._check_continuity(packet):
                continue

            if packet.pid == PAT_PID:
                if packet.payload_unit_start:
                    pmt_pid = parse_pat(packet.payload)
                    if pmt_pid is not None and pmt_pid != self.pmt_pid:
                        logger.debug(f"Found PMT PID: {pmt_pid}")
                        self.pmt_pid = pmt_pid
                continue

            if packet.pid == self.pmt_pid:
                if packet.payload_unit_start:
                    video_pid = find_video_pid(packet.payload)
                    if video_pid is not None and video_pid != self.video_pid:
                        logger.debug(f"Found video stream PID: {video_pid}")
                        unit = self._flush()
                        if unit is not None:
                            yield unit
                        self.video_pid = video_pid
                continue

            if packet.pid != self.video_pid or not packet.has_payload:
                continue

            if packet.payload_unit_start:
                unit = self._flush()
                if unit is not None:
                    yield unit
                header = parse_pes_header(packet.payload)
                if header is None:
                    logger.debug(f"Invalid PES header on PID {packet.pid}, skipping unit")
                    continue
                header_length, pts, dts = header
                self._pending = _PendingUnit(pts, dts)
                self._pending.data += packet.payload[header_length:]
                self._pending.packet_count = 1
            elif self._pending is not None:
                self._pending.data += packet.payload
                self._pending.packet_count += 1

        unit = self._flush()
        if unit is not None:
            yield unit
