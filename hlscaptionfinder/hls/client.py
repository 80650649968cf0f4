"""
HTTP client for HLS playlists and media segments.

Wraps a single requests.Session so connections are reused across the playlist
polls and segment downloads of a run.
"""

import logging
from typing import Optional

import requests

from ..exceptions import PlaylistError, SegmentFetchError
from ..models import ExtractorConfig
from .playlist import Playlist, parse_playlist

logger = logging.getLogger(__name__)


class HLSClient:
    """
    Fetch playlists and segments over HTTP.

    Example:
        >>> client = HLSClient(ExtractorConfig(timeout=10))
        >>> playlist = client.fetch_playlist("https://example.com/master.m3u8")
        >>> playlist.is_master
        True
    """

    def __init__(self, config: Optional[ExtractorConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Timeout, TLS verification and User-Agent settings
            session: Optional pre-built session (useful for adapters and tests)
        """
        self.config = config or ExtractorConfig()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", self.config.user_agent)

    def _get(self, url: str) -> requests.Response:
        response = self.session.get(url, timeout=self.config.timeout, verify=self.config.verify_ssl)
        response.raise_for_status()
        return response

    def fetch_playlist(self, url: str) -> Playlist:
        """
        Download and parse a playlist.

        Raises:
            PlaylistError: If the request fails or the body is not a playlist
        """
        try:
            response = self._get(url)
        except requests.RequestException as e:
            raise PlaylistError(f"Failed to fetch playlist {url}: {e}") from e
        # Relative URIs resolve against the final URL after redirects
        return parse_playlist(response.text, response.url or url)

    def fetch_segment(self, url: str) -> bytes:
        """
        Download one media segment.

        Raises:
            SegmentFetchError: If the request fails
        """
        try:
            response = self._get(url)
        except requests.RequestException as e:
            raise SegmentFetchError(url, str(e)) from e
        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HLSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
