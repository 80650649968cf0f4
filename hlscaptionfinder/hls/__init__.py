"""
HLS playlist parsing and HTTP access.
"""

from .client import HLSClient
from .playlist import (
    Playlist,
    is_hls_playlist,
    is_m3u8_url,
    parse_attributes,
    parse_media_playlist,
    parse_master_playlist,
    parse_playlist,
    select_lowest_bitrate,
)

__all__ = [
    "HLSClient",
    "Playlist",
    "is_hls_playlist",
    "is_m3u8_url",
    "parse_attributes",
    "parse_media_playlist",
    "parse_master_playlist",
    "parse_playlist",
    "select_lowest_bitrate",
]
