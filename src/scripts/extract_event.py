#!/usr/bin/env python3
"""
Run the heuristic event extractor on a piece of text and print the draft.

Usage:
    uv run python src/scripts/extract_event.py "Meeting on 3/10/2025 14:30 at Office"
    echo "Flight reminder 2025-06-01 7:15 pm" | uv run python src/scripts/extract_event.py
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_TIME_ZONE
from services.extraction import extract


def main():
    parser = argparse.ArgumentParser(description="Extract an event draft from free text")
    parser.add_argument("text", nargs="?", help="Text to parse (reads stdin if omitted)")
    parser.add_argument(
        "--time-zone",
        default=DEFAULT_TIME_ZONE,
        help=f"IANA zone for dates in the text (default: {DEFAULT_TIME_ZONE})",
    )
    args = parser.parse_args()

    text = args.text if args.text is not None else sys.stdin.read()
    draft = extract(text, time_zone=args.time_zone)
    if draft is None:
        print("No event found")
        sys.exit(1)

    print(json.dumps(draft.to_payload(), indent=2))


if __name__ == "__main__":
    main()
