# scripts/analyze_poll.py
"""Analyze a poll message from the command line and print the result as JSON."""

from __future__ import annotations

import argparse
import asyncio
import sys

from pollwise.analysis import GatewayError, InvalidInputError, analyze_poll_text
from pollwise.core.logging import init_logging
from pollwise.core.logs import get_logger

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "text",
        nargs="?",
        help="Poll text to analyze. Read from stdin when omitted.",
    )
    parser.add_argument("--user-id", default=None, help="Caller id forwarded to the provider")
    return parser.parse_args(argv)


async def run(text: str, user_id: str | None) -> int:
    """Analyze ``text`` and return a process exit code."""
    try:
        result = await analyze_poll_text(text, user_id)
    except InvalidInputError as e:
        logger.error("Invalid input: %s", e.message)
        return 2
    except GatewayError as e:
        logger.error("Analysis failed: %s", e.message)
        return 1
    print(result.model_dump_json(indent=2, exclude_none=True))
    return 0


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - script entry
    args = parse_args(argv)
    text = args.text if args.text is not None else sys.stdin.read()
    return asyncio.run(run(text, args.user_id))


if __name__ == "__main__":  # pragma: no cover - CLI execution
    init_logging()
    sys.exit(main())
