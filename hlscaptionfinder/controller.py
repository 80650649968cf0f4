"""
Stream controller for hlscaptionfinder.

Classifies a playlist as VOD or live, follows the lowest-bitrate rendition and
feeds its segments through the SegmentPipeline:

- VOD: every listed segment is processed once, in playlist order.
- Live: the media playlist is polled every target duration and only segments
  not seen on an earlier poll are processed, until the controller is stopped.
"""

import logging
import threading
import time
from typing import List, Optional, Set, Tuple

from .exceptions import HLSCaptionError, PlaylistError
from .hls.playlist import select_lowest_bitrate
from .models import CaptionResult, ExtractorConfig, MediaPlaylist, RenditionDescriptor, Segment
from .pipeline import SegmentPipeline, failed_result
from .reporting import Reporter, RunStats

logger = logging.getLogger(__name__)

MODE_VOD = "vod"
MODE_LIVE = "live"


def classify_playlist(playlist: MediaPlaylist) -> str:
    """
    Return MODE_VOD for a playlist with an end-of-stream marker, else MODE_LIVE.

    Raises:
        PlaylistError: If a live playlist does not advertise a target duration
    """
    if playlist.end_of_stream:
        return MODE_VOD
    if not playlist.target_duration:
        raise PlaylistError(f"Unable to determine playlist type: {playlist.url}")
    return MODE_LIVE


class StreamController:
    """
    Drive caption extraction for one playlist URL.

    The client only needs ``fetch_playlist(url)`` and ``fetch_segment(url)``,
    so anything with those two methods can stand in for HLSClient.

    Example:
        >>> with HLSClient(config) as client:
        ...     controller = StreamController(client, ConsoleReporter(), config)
        ...     stats = controller.run("https://example.com/master.m3u8")
        >>> stats.summary_line()
        '1/3 segments contained captions (1 total captions found)'
    """

    def __init__(
        self,
        client,
        reporter: Optional[Reporter] = None,
        config: Optional[ExtractorConfig] = None,
        pipeline: Optional[SegmentPipeline] = None,
    ):
        self.client = client
        self.reporter = reporter or Reporter()
        self.config = config or ExtractorConfig()
        self.pipeline = pipeline or SegmentPipeline()
        self.stats = RunStats()
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Ask the run to end once the in-flight segment has finished."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True if a stop was requested meanwhile."""
        return self._stop_event.wait(seconds)

    def resolve_rendition(self, url: str) -> Tuple[RenditionDescriptor, MediaPlaylist]:
        """
        Fetch ``url`` and follow a master playlist to its lowest-bitrate rendition.

        Raises:
            PlaylistError: If no media playlist can be reached
        """
        playlist = self.client.fetch_playlist(url)
        bandwidth = None
        if playlist.is_master:
            rendition = select_lowest_bitrate(playlist)
            logger.info(
                f"Found {len(playlist.renditions)} media playlists, "
                f"lowest bitrate: {rendition.bandwidth} ({rendition.uri})"
            )
            bandwidth = rendition.bandwidth
            playlist = self.client.fetch_playlist(rendition.uri)
            if playlist.is_master:
                raise PlaylistError(f"Rendition is a master playlist, not a media playlist: {rendition.uri}")

        descriptor = RenditionDescriptor(
            url=playlist.url,
            bandwidth=bandwidth,
            target_duration=playlist.target_duration,
        )
        return descriptor, playlist

    def run(self, url: str) -> RunStats:
        """
        Process the stream behind ``url`` and return the run totals.

        Raises:
            PlaylistError: If the playlist cannot be fetched, parsed or classified
        """
        logger.info(f"Starting HLS caption scan for: {url}")
        rendition, playlist = self.resolve_rendition(url)
        mode = classify_playlist(playlist)

        if mode == MODE_VOD:
            logger.info("Detected VOD playlist")
        else:
            logger.info(f"Detected live playlist with target duration: {rendition.target_duration}s")
        self.reporter.playlist_detected(mode, rendition.url)

        if mode == MODE_VOD:
            self._run_vod(playlist)
        else:
            self._run_live(rendition, playlist)

        logger.info(f"Summary: {self.stats.summary_line()}")
        self.reporter.finished(self.stats)
        return self.stats

    def process_segment(self, segment: Segment) -> CaptionResult:
        """Fetch and decode one segment. Fetch failures become failed results."""
        logger.info(f"Processing segment: {segment.uri}")
        try:
            data = self.client.fetch_segment(segment.uri)
        except HLSCaptionError as e:
            logger.warning(f"Failed to process segment {segment.uri}: {e}")
            result = failed_result(segment.uri, e)
        else:
            result = self.pipeline.process(data, segment.uri)

        self.stats.record(result)
        self.reporter.segment_finished(result)
        return result

    def _run_vod(self, playlist: MediaPlaylist) -> None:
        segments = playlist.segments
        if self.config.max_segments is not None:
            segments = segments[:self.config.max_segments]
        total = len(segments)
        logger.info(f"Found {total} segments to process")

        for index, segment in enumerate(segments, start=1):
            if self.stopped:
                logger.info(f"Stopped after {index - 1}/{total} segments")
                break
            self.reporter.segment_started(index, total, segment.uri)
            self.process_segment(segment)
            interval = self.config.progress_interval
            if interval and index % interval == 0:
                logger.info(f"Progress: {index}/{total} segments processed")
                self.reporter.progress(index, total)

        logger.info("Completed processing all segments")

    def _new_segments(self, playlist: MediaPlaylist, seen: Set[str]) -> List[Segment]:
        return [segment for segment in playlist.segments if segment.uri not in seen]

    def _run_live(self, rendition: RenditionDescriptor, playlist: Optional[MediaPlaylist]) -> None:
        target_duration = rendition.target_duration
        seen: Set[str] = set()
        polls = 0
        processed = 0
        logger.info(f"Starting live playlist polling every {target_duration}s")

        while not self.stopped:
            poll_started = time.monotonic()

            if playlist is None:
                try:
                    playlist = self.client.fetch_playlist(rendition.url)
                    if playlist.is_master:
                        raise PlaylistError(f"Live rendition turned into a master playlist: {rendition.url}")
                except PlaylistError as e:
                    logger.warning(f"Error refreshing live playlist: {e}")
                    playlist = None

            if playlist is not None:
                for segment in self._new_segments(playlist, seen):
                    if self.stopped:
                        break
                    seen.add(segment.uri)
                    processed += 1
                    self.reporter.segment_started(processed, None, segment.uri)
                    self.process_segment(segment)

                # Segments that slid out of the window never come back
                current = {segment.uri for segment in playlist.segments}
                seen &= current

                if playlist.target_duration:
                    target_duration = playlist.target_duration
                if playlist.end_of_stream:
                    logger.info("Live playlist ended")
                    break
                logger.info("Completed live playlist poll cycle")

            polls += 1
            if self.config.max_polls is not None and polls >= self.config.max_polls:
                logger.info(f"Reached max polls ({self.config.max_polls})")
                break

            playlist = None
            remaining = target_duration - (time.monotonic() - poll_started)
            if remaining > 0 and self._wait(remaining):
                break

        if self.stopped:
            logger.info("Live polling stopped")
