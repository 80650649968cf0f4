"""
hlscaptionfinder - Closed-caption extraction from HLS streams

Walks the segments of an HLS playlist, demultiplexes each MPEG transport stream
segment, finds the ATSC (GA94) caption data carried in H.264 SEI messages and
decodes the CEA-608 byte pairs into caption text.

Features:
- VOD playlists scanned once, live playlists polled at their target duration
- Lowest-bitrate rendition selected automatically from master playlists
- CC1-CC4 caption channels with special and extended characters
- Tolerant of truncated segments, continuity gaps and parity errors

Example usage:
    >>> from hlscaptionfinder import extract_captions
    >>>
    >>> with open("segment.ts", "rb") as f:
    ...     result = extract_captions(f.read(), "segment.ts")
    >>> result.captions
    ('HELLO',)
    >>>
    >>> from hlscaptionfinder import HLSClient, StreamController, ConsoleReporter
    >>>
    >>> with HLSClient() as client:
    ...     stats = StreamController(client, ConsoleReporter()).run(
    ...         "https://example.com/master.m3u8"
    ...     )
"""

import logging

__version__ = "0.1.0"
__author__ = "hlscaptionfinder Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Errors
from .exceptions import (
    HLSCaptionError,
    OutOfBounds,
    PlaylistError,
    SegmentFetchError,
)

# Data models
from .models import (
    CaptionPacket,
    CaptionResult,
    CcData,
    DecodedCaption,
    ElementaryStreamUnit,
    ExtractorConfig,
    MasterPlaylist,
    MediaPlaylist,
    Rendition,
    RenditionDescriptor,
    Segment,
    TransportPacket,
)

# Parsers and decoders
from .bitstream import BitstreamReader
from .captions import Cea608Decoder, parse_cc_data
from .mpegts import TransportStreamDemuxer
from .video import extract_caption_payloads, iter_sei_nalus

# Per-segment pipeline
from .pipeline import SegmentPipeline, extract_captions, failed_result

# HLS access and run control
from .hls import HLSClient, is_m3u8_url, parse_playlist, select_lowest_bitrate
from .controller import MODE_LIVE, MODE_VOD, StreamController, classify_playlist
from .reporting import ConsoleReporter, JsonLinesReporter, Reporter, RunStats

__all__ = [
    # Version
    "__version__",
    # Errors
    "HLSCaptionError",
    "OutOfBounds",
    "PlaylistError",
    "SegmentFetchError",
    # Models
    "CaptionPacket",
    "CaptionResult",
    "CcData",
    "DecodedCaption",
    "ElementaryStreamUnit",
    "ExtractorConfig",
    "MasterPlaylist",
    "MediaPlaylist",
    "Rendition",
    "RenditionDescriptor",
    "Segment",
    "TransportPacket",
    # Parsers and decoders
    "BitstreamReader",
    "Cea608Decoder",
    "parse_cc_data",
    "TransportStreamDemuxer",
    "extract_caption_payloads",
    "iter_sei_nalus",
    # Pipeline
    "SegmentPipeline",
    "extract_captions",
    "failed_result",
    # HLS and run control
    "HLSClient",
    "is_m3u8_url",
    "parse_playlist",
    "select_lowest_bitrate",
    "MODE_LIVE",
    "MODE_VOD",
    "StreamController",
    "classify_playlist",
    "ConsoleReporter",
    "JsonLinesReporter",
    "Reporter",
    "RunStats",
]
