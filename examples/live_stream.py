"""
Live stream monitoring example.

Polls a live HLS playlist for a few cycles and prints every caption as its
segment is processed.

Pipeline per new segment:
1. Download the segment from the lowest-bitrate rendition
2. Demultiplex the video PID and find SEI NAL units
3. Extract GA94 cc_data and decode CEA-608 captions
"""

import logging
import sys

from hlscaptionfinder import (
    ConsoleReporter,
    ExtractorConfig,
    HLSClient,
    PlaylistError,
    StreamController,
)

# Configure logging to see hlscaptionfinder internal logs
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

def main():
    # Live HLS master or media playlist
    live_url = "https://example.com/live/master.m3u8"

    # Stop after five playlist polls instead of running until Ctrl+C
    config = ExtractorConfig(max_polls=5, timeout=10)

    with HLSClient(config) as client:
        controller = StreamController(client, ConsoleReporter(show_channels=True), config)
        try:
            stats = controller.run(live_url)
        except PlaylistError as e:
            print(f"Could not read playlist: {e}")
            sys.exit(1)

    print(f"\nScanned {stats.segments_scanned} segments, {stats.segments_failed} failed")

if __name__ == "__main__":
    main()
