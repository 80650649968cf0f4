"""
Run statistics and result reporting for hlscaptionfinder.

Reporters receive every CaptionResult as soon as its segment is processed and
print it for the operator. RunStats keeps the running totals for the final
summary.
"""

import json
import logging
import sys
from dataclasses import dataclass
from typing import IO, Optional

from .models import CaptionResult

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    """Running totals for one run."""
    segments_scanned: int = 0
    segments_with_captions: int = 0
    segments_failed: int = 0
    total_captions: int = 0

    def record(self, result: CaptionResult) -> None:
        self.segments_scanned += 1
        if result.failed:
            self.segments_failed += 1
        elif result.has_captions:
            self.segments_with_captions += 1
            self.total_captions += len(result.captions)

    def summary_line(self) -> str:
        return (
            f"{self.segments_with_captions}/{self.segments_scanned} segments contained captions "
            f"({self.total_captions} total captions found)"
        )

    def to_dict(self) -> dict:
        return {
            "segments_scanned": self.segments_scanned,
            "segments_with_captions": self.segments_with_captions,
            "segments_failed": self.segments_failed,
            "total_captions": self.total_captions,
        }


class Reporter:
    """
    Base reporter. Every hook is a no-op so subclasses override what they need.
    """

    def playlist_detected(self, mode: str, url: str) -> None:
        pass

    def segment_started(self, index: int, total: Optional[int], url: str) -> None:
        pass

    def segment_finished(self, result: CaptionResult) -> None:
        pass

    def progress(self, processed: int, total: int) -> None:
        pass

    def finished(self, stats: RunStats) -> None:
        pass


class ConsoleReporter(Reporter):
    """
    Human-readable output.

    Segments that produced captions are printed with one indented line per
    caption; failed segments are printed as failures so they are never
    mistaken for segments without captions.
    """

    def __init__(self, stream: Optional[IO[str]] = None, show_channels: bool = False):
        self.stream = stream or sys.stdout
        self.show_channels = show_channels

    def _print(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def playlist_detected(self, mode: str, url: str) -> None:
        self._print(f"Detected {mode.upper()} playlist: {url}")

    def segment_started(self, index: int, total: Optional[int], url: str) -> None:
        if total is None:
            self._print(f"Processing segment {index}: {url}")
        else:
            self._print(f"Processing segment {index}/{total}: {url}")

    def segment_finished(self, result: CaptionResult) -> None:
        if result.failed:
            self._print(f"Failed segment: {result.segment_id} ({result.error})")
            return
        if not result.has_captions:
            return
        self._print(f"Segment: {result.segment_id}")
        for channel, caption in zip(result.channels, result.captions):
            # Multi-line captions are printed on one line
            text = caption.replace("\n", " | ")
            if self.show_channels:
                self._print(f"  Caption [{channel}]: {text}")
            else:
                self._print(f"  Caption: {text}")

    def progress(self, processed: int, total: int) -> None:
        percent = processed / total * 100 if total else 100.0
        self._print(f"Progress: {processed}/{total} segments processed ({percent:.1f}%)")

    def finished(self, stats: RunStats) -> None:
        self._print("Completed processing all segments")
        self._print(f"Summary: {stats.summary_line()}")
        if stats.segments_failed:
            self._print(f"Failed segments: {stats.segments_failed}")


class JsonLinesReporter(Reporter):
    """Emit one JSON object per processed segment and one for the summary."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout

    def _emit(self, payload: dict) -> None:
        self.stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
        self.stream.flush()

    def segment_finished(self, result: CaptionResult) -> None:
        self._emit({
            "type": "segment",
            "segment": result.segment_id,
            "captions": [
                {"channel": channel, "text": text}
                for channel, text in zip(result.channels, result.captions)
            ],
            "first_pts": result.first_pts,
            "error": result.error,
        })

    def finished(self, stats: RunStats) -> None:
        summary = stats.to_dict()
        summary["type"] = "summary"
        summary["summary"] = stats.summary_line()
        self._emit(summary)
