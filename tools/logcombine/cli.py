#!/usr/bin/env python3
"""
logcombine - Merge log files into one time-ordered stream.

This module implements the command-line interface. It takes a single
locator, a local directory or a bucket URL, discovers every log file under
it, merges their lines by extracted timestamp and writes the result to
stdout.

Responsibilities:
    - Load .env and environment configuration
    - Discover sources (local tree walk or bucket listing)
    - Run the concurrent merge
    - Write merged lines to stdout only after the full sort
    - Report the first fatal error on stderr and exit non-zero

Output Format:
    HH:MM:SS.nnnnnnnnn [<source>                       ] <original line>

Usage:
    python -m logcombine <path-or-url>

Examples:
    python -m logcombine ./_artifacts
    python -m logcombine https://gcsweb.k8s.io/gcs/kubernetes-jenkins/logs/ci-e2e/1234/
"""

import argparse
import sys
from typing import List, Optional, TextIO

from .core.merger import merge_sources, write_lines
from .errors import LogCombineError
from .utils.runlog import RunLogger
from .utils.settings import Settings, load_dotenv
from .utils.sources import open_source_set


def combine(locator: str, settings: Settings, out: TextIO, logger: Optional[RunLogger] = None, session=None) -> int:
    """
    Merge every log under locator and write the result to out.

    Nothing is written to out unless every source was read successfully.

    Args:
        locator: Local path or bucket URL.
        settings: Resolved configuration.
        out: Text stream for the merged lines.
        logger: Optional run logger.
        session: Optional requests session for bucket URLs.

    Returns:
        int: Number of lines written.

    Raises:
        LogCombineError: Enumeration, open or scan failure.
    """
    logger = logger or RunLogger(None)

    source_set = open_source_set(locator, settings, session=session)
    try:
        logger.info("enumerate", f"Found {len(source_set.sources)} sources under {source_set.prefix}")
        lines: List[str] = merge_sources(
            source_set,
            max_line_bytes=settings.max_line_bytes,
            logger=logger,
        )
    finally:
        source_set.close()

    write_lines(lines, out)
    logger.info("logcombine", f"Wrote {len(lines)} lines")
    return len(lines)


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    There is exactly one positional argument and no options; tuning is
    done through LOGCOMBINE_* environment variables.
    """
    parser = argparse.ArgumentParser(
        prog="logcombine",
        description="Merge log files into one time-ordered stream",
    )
    parser.add_argument(
        "path",
        help="Local directory (or file) to walk, or an http(s) URL into the log bucket",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the logcombine CLI.

    Exit Codes:
        0: All sources merged and written
        1: Configuration, enumeration, open or scan failure
        2: Invalid arguments (argparse)
    """
    # Load any .env configuration before reading settings
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        logger = RunLogger(settings.log_file)
        combine(args.path, settings, sys.stdout, logger=logger)
    except LogCombineError as exc:
        print(f"[logcombine] error: {exc}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
