"""
Per-segment caption extraction pipeline.

Runs the raw bytes of one segment through the transport stream demultiplexer,
the NAL unit scanner, the SEI parser and the CEA-608 decoder, and collects the
result into a CaptionResult.
"""

import logging
from typing import List, Optional, Union

from .captions import Cea608Decoder, parse_cc_data
from .models import CaptionResult, DecodedCaption
from .mpegts import TransportStreamDemuxer
from .video import extract_caption_payloads, iter_sei_nalus

logger = logging.getLogger(__name__)


class SegmentPipeline:
    """
    Extract captions from transport stream segments.

    Decoder state never outlives a single ``process`` call. The only thing
    carried from one segment to the next is the video PID, used as a hint when
    a segment does not repeat its PAT/PMT.

    Example:
        >>> pipeline = SegmentPipeline()
        >>> result = pipeline.process(segment_bytes, "https://example.com/seg1.ts")
        >>> result.captions
        ('HELLO',)
    """

    def __init__(self, video_pid: Optional[int] = None):
        self.video_pid = video_pid

    def process(self, data: Union[bytes, bytearray], segment_id: str) -> CaptionResult:
        """
        Decode every caption carried by one segment.

        Captions closed by an End Of Caption or erase command are listed in the
        order they closed, followed by any text still open when the segment
        ended.

        Args:
            data: Raw segment bytes (possibly truncated)
            segment_id: Segment URL or index, used to label the result

        Returns:
            CaptionResult with zero or more captions
        """
        demuxer = TransportStreamDemuxer(video_pid=self.video_pid)
        decoder = Cea608Decoder()
        decoded: List[DecodedCaption] = []
        first_pts: Optional[float] = None
        sequence = 0
        unit_count = 0

        for unit in demuxer.demux(data):
            unit_count += 1
            for nalu in iter_sei_nalus(unit.data):
                for user_data in extract_caption_payloads(nalu):
                    packet = parse_cc_data(user_data, sequence=sequence, pts=unit.pts)
                    sequence += 1
                    if packet is None:
                        continue
                    if first_pts is None:
                        first_pts = unit.pts_seconds
                    decoded.extend(decoder.decode_packet(packet))

        decoded.extend(decoder.flush())

        if demuxer.video_pid is not None:
            self.video_pid = demuxer.video_pid

        logger.debug(
            f"{segment_id}: {demuxer.packets_read} packets, {unit_count} video units, "
            f"{sequence} caption packets, {len(decoded)} captions "
            f"({demuxer.continuity_errors} continuity errors, {decoder.parity_errors} parity errors)"
        )

        return CaptionResult(
            segment_id=segment_id,
            captions=tuple(caption.text for caption in decoded),
            channels=tuple(caption.channel for caption in decoded),
            first_pts=first_pts,
        )


def extract_captions(data: Union[bytes, bytearray], segment_id: str = "segment") -> CaptionResult:
    """Decode the captions of a single segment with a fresh pipeline."""
    return SegmentPipeline().process(data, segment_id)


def failed_result(segment_id: str, error: Union[str, Exception]) -> CaptionResult:
    """Build the result reported for a segment that could not be processed."""
    return CaptionResult(segment_id=segment_id, error=str(error))
