"""
Basic hlscaptionfinder usage example.

Decodes the captions of a transport stream segment saved on disk.
"""

import sys

from hlscaptionfinder import extract_captions

def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "segment.ts"

    with open(path, "rb") as f:
        data = f.read()

    print(f"Decoding captions from {path} ({len(data)} bytes)...")
    result = extract_captions(data, segment_id=path)

    if not result.has_captions:
        print("No captions found")
        return

    for channel, text in zip(result.channels, result.captions):
        print(f"[{channel}] {text}")
    if result.first_pts is not None:
        print(f"\nFirst caption data at PTS {result.first_pts:.3f}s")

if __name__ == "__main__":
    main()
