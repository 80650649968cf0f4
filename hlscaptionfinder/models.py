"""
Data models for hlscaptionfinder.

Defines the core data structures passed between the demultiplexer, the caption
decoders, the stream controller and the reporters.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TransportPacket:
    """Header fields of one 188-byte transport packet plus its payload view."""
    pid: int
    payload_unit_start: bool
    continuity_counter: int
    has_adaptation: bool
    has_payload: bool
    payload: memoryview
    discontinuity: bool = False


@dataclass
class ElementaryStreamUnit:
    """One PES payload reassembled from consecutive packets of a single PID."""
    pid: int
    data: bytes
    pts: Optional[int] = None  # 90 kHz ticks
    dts: Optional[int] = None
    packet_count: int = 0

    @property
    def pts_seconds(self) -> Optional[float]:
        return self.pts / 90000.0 if self.pts is not None else None


@dataclass
class CcData:
    """A single cc_data construct: validity, type and a pair of caption bytes."""
    cc_valid: bool
    cc_type: int  # 0/1: legacy field 1/2, 2/3: DTVCC packet data/start
    data1: int
    data2: int

    @property
    def is_compatibility(self) -> bool:
        return self.cc_type in (0, 1)


@dataclass
class CaptionPacket:
    """Caption payload found inside one GA94 user-data SEI message."""
    sequence: int
    process_em_data: bool
    process_cc_data: bool
    additional_data: bool
    em_data: int = 0
    blocks: List[CcData] = field(default_factory=list)
    pts: Optional[int] = None


@dataclass
class DecodedCaption:
    """Text assembled for one caption channel."""
    channel: str  # CC1..CC4
    text: str
    complete: bool = True


@dataclass(frozen=True)
class CaptionResult:
    """Outcome of processing one segment. Immutable once produced."""
    segment_id: str
    captions: Tuple[str, ...] = ()
    channels: Tuple[str, ...] = ()
    error: Optional[str] = None
    first_pts: Optional[float] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def has_captions(self) -> bool:
        return bool(self.captions)


@dataclass
class Rendition:
    """A variant stream listed in a master playlist."""
    uri: str
    bandwidth: int
    resolution: Optional[str] = None
    codecs: Optional[str] = None


@dataclass
class Segment:
    """A media segment listed in a media playlist."""
    uri: str
    duration: float = 0.0
    sequence: Optional[int] = None


@dataclass
class MasterPlaylist:
    url: str
    renditions: List[Rendition] = field(default_factory=list)

    is_master = True


@dataclass
class MediaPlaylist:
    url: str
    segments: List[Segment] = field(default_factory=list)
    target_duration: Optional[float] = None
    media_sequence: int = 0
    playlist_type: Optional[str] = None  # VOD, EVENT or None
    end_of_stream: bool = False

    is_master = False


@dataclass
class RenditionDescriptor:
    """The media playlist chosen for a run."""
    url: str
    bandwidth: Optional[int] = None
    target_duration: Optional[float] = None


def _env_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def _env_number(name: str, convert, default):
    """Read a numeric environment variable, keeping the default when it is malformed."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return convert(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={value!r}, using {default!r}")
        return default


@dataclass
class ExtractorConfig:
    """Configuration for caption extraction runs."""
    timeout: float = 30.0
    verify_ssl: bool = True
    user_agent: str = "hlscaptionfinder"
    max_polls: Optional[int] = None  # None polls a live stream until stopped
    max_segments: Optional[int] = None  # None walks the whole VOD playlist
    progress_interval: int = 10

    @classmethod
    def from_env(cls) -> "ExtractorConfig":
        """
        Build a config from HLSCAPTIONFINDER_* environment variables.

        Unset or malformed variables keep their defaults.
        """
        config = cls()
        config.timeout = _env_number("HLSCAPTIONFINDER_TIMEOUT", float, config.timeout)
        verify_ssl = os.getenv("HLSCAPTIONFINDER_VERIFY_SSL")
        if verify_ssl is not None:
            config.verify_ssl = _env_bool(verify_ssl)
        config.max_polls = _env_number("HLSCAPTIONFINDER_MAX_POLLS", int, config.max_polls)
        return config
