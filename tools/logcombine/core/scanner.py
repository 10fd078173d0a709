"""
Per-source processing: read one source and tag every line.

This module drives a single source end to end. It opens the source's
stream, reads it strictly in file order, carries the rolling timestamp
state from line to line and returns the source's ordered batch of
TaggedLine records.

Design Decisions:
    - Lines are read one at a time with a hard length ceiling, so a
      binary blob without newlines cannot exhaust memory.
    - Bytes are decoded as UTF-8 with replacement characters; log files
      are not always clean.
    - The stop event is checked between lines so a failing sibling can
      abort this worker promptly.
    - The day rollover rule is a coarse heuristic kept as-is: a line whose
      hour is more than one hour before the first timestamp's hour is on the
      next day, and stays that way for the rest of the source.
"""

import threading
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

from ..errors import OpenError, ScanCancelled, ScanError
from .model import RollingTimeState, Source, TaggedLine, Timestamp
from .tagger import provenance_tag, tag_line
from .timeparse import match_line_time

# Longest single line accepted, in bytes
MAX_LINE_BYTES = 32 * 1024 * 1024

# Returns an open binary stream that is also a context manager.
# Implementations raise OpenError (or OSError) when the source cannot be opened.
Opener = Callable[[str], BinaryIO]


def advance(state: RollingTimeState, line: str) -> Tuple[int, Timestamp]:
    """
    Apply one line to the rolling state.

    Args:
        state: The source's state; updated in place.
        line: Current line text.

    Returns:
        (day_number, timestamp) to tag the line with.
    """
    found = match_line_time(line)
    ts = state.current_time if found is None else found
    state.current_time = ts

    # Lines before the first real timestamp do not fix first_time
    if state.first_time is None and found is not None:
        state.first_time = found

    # Sticky: never goes back to 0 within a source
    if state.first_time is not None and ts.hour < state.first_time.hour - 1:
        state.day_number = 1

    return state.day_number, ts


def iter_lines(stream: BinaryIO, source_name: str, max_line_bytes: int = MAX_LINE_BYTES) -> Iterator[str]:
    """
    Yield decoded lines from a binary stream.

    Lines end at "\\n"; a trailing "\\r" is dropped and a final line without
    a terminator is still yielded.

    Raises:
        ScanError: A line is longer than max_line_bytes, or the stream
                   failed mid-read.
    """
    while True:
        try:
            # +2 leaves room for "\r\n" on a line of exactly max_line_bytes
            chunk = stream.readline(max_line_bytes + 2)
        except OSError as exc:
            raise ScanError(f"failed to read {source_name}: {exc}", source_name) from exc

        if not chunk:
            return

        if chunk.endswith(b"\n"):
            chunk = chunk[:-1]
        if chunk.endswith(b"\r"):
            chunk = chunk[:-1]

        if len(chunk) > max_line_bytes:
            raise ScanError(
                f"line too long in {source_name}: exceeds {max_line_bytes} bytes",
                source_name,
            )

        yield chunk.decode("utf-8", errors="replace")


def scan_source(
    source: Source,
    opener: Opener,
    stop: Optional[threading.Event] = None,
    max_line_bytes: int = MAX_LINE_BYTES,
) -> List[TaggedLine]:
    """
    Read one source and return its lines, tagged, in file order.

    Args:
        source: The source to read.
        opener: Callable returning a context-managed binary stream for a
                source name.
        stop: Optional event; when set, scanning stops between lines.
        max_line_bytes: Longest accepted line.

    Returns:
        List[TaggedLine]: One entry per line, row numbers starting at 1.

    Raises:
        OpenError: The stream could not be opened.
        ScanError: Reading failed or a line was too long.
        ScanCancelled: stop was set before the source was finished.
    """
    tag = provenance_tag(source.display_name)
    state = RollingTimeState()
    lines: List[TaggedLine] = []

    try:
        stream = opener(source.name)
    except OSError as exc:
        raise OpenError(f"failed to create new reader for {source.name}: {exc}", source.name) from exc

    # The stream is released on every exit path, including cancellation
    with stream:
        for row_number, line in enumerate(iter_lines(stream, source.name, max_line_bytes), start=1):
            if stop is not None and stop.is_set():
                raise ScanCancelled(source.name)
            day_number, ts = advance(state, line)
            lines.append(tag_line(day_number, ts, source.index, row_number, tag, line))

    return lines
