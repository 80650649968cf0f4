"""
Exception types for hlscaptionfinder.
"""


class HLSCaptionError(Exception):
    """Base error for hlscaptionfinder."""


class OutOfBounds(HLSCaptionError):
    """Raised when a read asks for more bytes or bits than remain in the buffer."""

    def __init__(self, requested: int, remaining: int, unit: str = "bytes"):
        self.requested = requested
        self.remaining = remaining
        super().__init__(f"Requested {requested} {unit}, only {remaining} remaining")


class PlaylistError(HLSCaptionError):
    """Raised when a playlist cannot be fetched, parsed or classified."""


class SegmentFetchError(HLSCaptionError):
    """Raised when a media segment cannot be downloaded."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch segment {url}: {reason}")
