"""Serve worker requests over stdin/stdout.

Reads one JSON request per line and writes one JSON response per line.
Logs go to stderr.

Usage:
    python -m worker
    python -m worker --verbose < requests.jsonl > responses.jsonl
"""

import argparse
import logging
import sys

from worker.handler import RequestHandler

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analytics worker over newline-delimited JSON on stdin/stdout",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def serve(stdin, stdout, handler: RequestHandler | None = None) -> int:
    """Answer every non-empty line of *stdin*; returns the request count."""
    handler = handler or RequestHandler()
    count = 0
    for line in stdin:
        line = line.strip()
        if not line:
            continue
        stdout.write(handler.handle_bytes(line) + b"\n")
        stdout.flush()
        count += 1
    return count


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        count = serve(sys.stdin.buffer, sys.stdout.buffer)
    except KeyboardInterrupt:
        return 130
    logger.info(f"Served {count} requests")
    return 0


if __name__ == "__main__":
    sys.exit(main())
