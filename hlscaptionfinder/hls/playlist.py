"""
M3U8 playlist parsing utilities for hlscaptionfinder.

Turns master and media playlist text into MasterPlaylist / MediaPlaylist models
and selects the rendition a run should follow.
"""

import logging
import re
from typing import Dict, Optional, Union
from urllib.parse import urljoin

from ..exceptions import PlaylistError
from ..models import MasterPlaylist, MediaPlaylist, Rendition, Segment

logger = logging.getLogger(__name__)

Playlist = Union[MasterPlaylist, MediaPlaylist]

_ATTRIBUTE_RE = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


def is_hls_playlist(content: str) -> bool:
    """
    Check if content is an HLS playlist (M3U8 format).

    Args:
        content: Content to check

    Returns:
        True if content is HLS playlist, False otherwise
    """
    return content.lstrip("\ufeff").strip().startswith("#EXTM3U")


def is_m3u8_url(url: str) -> bool:
    """
    Check if a URL points to an M3U8 playlist.

    Args:
        url: URL to check

    Returns:
        True if URL appears to be an M3U8 playlist, False otherwise
    """
    return url.lower().endswith('.m3u8') or '.m3u8?' in url.lower()


def parse_attributes(attribute_list: str) -> Dict[str, str]:
    """
    Parse an attribute list such as ``BANDWIDTH=1280000,CODECS="avc1.4d401f"``.

    Quoted values keep their commas and lose their quotes.
    """
    attributes = {}
    for match in _ATTRIBUTE_RE.finditer(attribute_list):
        value = match.group(2)
        if value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        attributes[match.group(1)] = value
    return attributes


def _tag_value(line: str) -> str:
    return line.split(':', 1)[1].strip() if ':' in line else ''


def parse_master_playlist(content: str, base_url: str) -> MasterPlaylist:
    """Parse the renditions listed by ``#EXT-X-STREAM-INF`` tags."""
    playlist = MasterPlaylist(url=base_url)
    pending: Optional[Dict[str, str]] = None

    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith('#EXT-X-STREAM-INF:'):
            pending = parse_attributes(_tag_value(line))
        elif not line.startswith('#') and pending is not None:
            try:
                bandwidth = int(pending.get('BANDWIDTH', ''))
            except ValueError:
                logger.warning(f"Skipping rendition without a valid BANDWIDTH: {line}")
                pending = None
                continue
            playlist.renditions.append(Rendition(
                uri=urljoin(base_url, line),
                bandwidth=bandwidth,
                resolution=pending.get('RESOLUTION'),
                codecs=pending.get('CODECS'),
            ))
            pending = None

    logger.debug(f"Found {len(playlist.renditions)} renditions in master playlist")
    return playlist


def parse_media_playlist(content: str, base_url: str) -> MediaPlaylist:
    """Parse segments, target duration and end-of-stream markers."""
    playlist = MediaPlaylist(url=base_url)
    duration = 0.0
    sequence = None

    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.startswith('#EXT-X-TARGETDURATION:'):
            try:
                playlist.target_duration = float(_tag_value(line))
            except ValueError:
                logger.warning(f"Invalid target duration: {line}")

        elif line.startswith('#EXT-X-MEDIA-SEQUENCE:'):
            try:
                playlist.media_sequence = int(_tag_value(line))
            except ValueError:
                logger.warning(f"Invalid media sequence: {line}")

        elif line.startswith('#EXT-X-PLAYLIST-TYPE:'):
            playlist.playlist_type = _tag_value(line).upper()
            if playlist.playlist_type == 'VOD':
                playlist.end_of_stream = True

        elif line.startswith('#EXT-X-ENDLIST'):
            playlist.end_of_stream = True

        elif line.startswith('#EXTINF:'):
            # Extract duration from #EXTINF:5.005, format
            duration_str = _tag_value(line).split(',')[0].strip()
            try:
                duration = float(duration_str)
            except ValueError:
                duration = 0.0

        elif not line.startswith('#'):
            if sequence is None:
                sequence = playlist.media_sequence
            playlist.segments.append(Segment(
                uri=urljoin(base_url, line),
                duration=duration,
                sequence=sequence,
            ))
            sequence += 1
            duration = 0.0

    logger.debug(
        f"Media playlist: {len(playlist.segments)} segments, "
        f"target_duration={playlist.target_duration}, ended={playlist.end_of_stream}"
    )
    return playlist


def parse_playlist(content: str, base_url: str) -> Playlist:
    """
    Parse playlist text into a master or media playlist.

    Args:
        content: Playlist document
        base_url: URL the playlist was fetched from, used to resolve relative URIs

    Returns:
        MasterPlaylist if the document lists variant streams, else MediaPlaylist

    Raises:
        PlaylistError: If the content is not an M3U8 playlist
    """
    if not is_hls_playlist(content):
        raise PlaylistError(f"Not an HLS playlist: {base_url}")
    if '#EXT-X-STREAM-INF:' in content:
        return parse_master_playlist(content, base_url)
    return parse_media_playlist(content, base_url)


def select_lowest_bitrate(playlist: MasterPlaylist) -> Rendition:
    """
    Pick the rendition with the lowest declared bandwidth.

    Ties go to the rendition listed first.

    Raises:
        PlaylistError: If the master playlist lists no rendition
    """
    if not playlist.renditions:
        raise PlaylistError(f"No media playlists found in master playlist: {playlist.url}")
    return min(playlist.renditions, key=lambda rendition: rendition.bandwidth)
