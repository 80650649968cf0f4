"""
Command-line entry point for hlscaptionfinder.

Usage:
    hlscaptionfinder https://example.com/master.m3u8
    hlscaptionfinder https://example.com/live.m3u8 --max-polls 10 --json
"""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from . import __version__
from .controller import StreamController
from .exceptions import PlaylistError
from .hls import HLSClient, is_m3u8_url
from .models import ExtractorConfig
from .reporting import ConsoleReporter, JsonLinesReporter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

EXIT_OK = 0
EXIT_PLAYLIST_ERROR = 1
EXIT_ABORTED = 130


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the command-line tool.

    Args:
        level: Log level name. Falls back to the LOG_LEVEL environment variable,
               then WARNING.
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.WARNING), format=LOG_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hlscaptionfinder",
        description="Find CEA-608 closed captions embedded in an HLS stream.",
    )
    parser.add_argument("playlist_url", help="Master or media playlist URL (.m3u8)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: LOG_LEVEL env or WARNING)",
    )
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds (default: 30)")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("--max-polls", type=int, help="Stop a live run after N playlist polls")
    parser.add_argument("--max-segments", type=int, help="Only scan the first N segments of a VOD playlist")
    parser.add_argument("--channels", action="store_true", help="Show the caption channel (CC1-CC4) of each caption")
    parser.add_argument("--json", action="store_true", help="Emit JSON lines instead of text")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> ExtractorConfig:
    """Environment defaults overridden by command-line options."""
    config = ExtractorConfig.from_env()
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.insecure:
        config.verify_ssl = False
    if args.max_polls is not None:
        config.max_polls = args.max_polls
    if args.max_segments is not None:
        config.max_segments = args.max_segments
    return config


def install_interrupt_handler(controller: StreamController) -> None:
    """
    First Ctrl+C stops the run after the in-flight segment; a second one aborts.
    """

    def handle_interrupt(signum, frame):
        if controller.stopped:
            raise KeyboardInterrupt
        logger.warning("Interrupt received, finishing current segment (press Ctrl+C again to abort)")
        controller.stop()

    signal.signal(signal.SIGINT, handle_interrupt)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    config = build_config(args)

    if not is_m3u8_url(args.playlist_url):
        logger.warning(f"URL does not look like an M3U8 playlist: {args.playlist_url}")

    if args.json:
        reporter = JsonLinesReporter()
    else:
        reporter = ConsoleReporter(show_channels=args.channels)

    with HLSClient(config) as client:
        controller = StreamController(client, reporter, config)
        install_interrupt_handler(controller)
        try:
            controller.run(args.playlist_url)
        except PlaylistError as e:
            logger.error(str(e))
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_PLAYLIST_ERROR
        except KeyboardInterrupt:
            print("Aborted", file=sys.stderr)
            return EXIT_ABORTED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
