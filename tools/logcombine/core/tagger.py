"""
Line tagging: sort keys, display times and provenance tags.

Each input line becomes a TaggedLine carrying everything the merger needs:
a total ordering key and the text that will be printed.

Output line format:
    HH:MM:SS.nnnnnnnnn [<source tag, padded to 62 columns>] <original line>
"""

from .model import SortKey, TaggedLine, Timestamp

# Names longer than this are shortened to head + "..." + tail
SHORT_NAME_LIMIT = 60
SHORT_NAME_HEAD = 17
SHORT_NAME_TAIL = 40
ELLIPSIS = "..."

# Width of the bracketed tag column, brackets included
TAG_COLUMN_WIDTH = SHORT_NAME_LIMIT + 2


def short_name(name: str) -> str:
    """
    Shorten a source name for display.

    Deeply nested object paths would otherwise push the log text far to
    the right. The head keeps the top-level directory, the tail keeps the
    file name and its closest parents.

    Example:
        >>> len(short_name("a" * 80))
        60
    """
    if len(name) > SHORT_NAME_LIMIT:
        return name[:SHORT_NAME_HEAD] + ELLIPSIS + name[-SHORT_NAME_TAIL:]
    return name


def provenance_tag(display_name: str) -> str:
    """Return the bracketed, left-justified tag for a source."""
    return f"{'[' + short_name(display_name) + ']':<{TAG_COLUMN_WIDTH}}"


def format_display_time(ts: Timestamp) -> str:
    return ts.display()


def tag_line(
    day_number: int,
    ts: Timestamp,
    source_index: int,
    row_number: int,
    tag: str,
    raw_line: str,
) -> TaggedLine:
    """
    Build the TaggedLine for one input line.

    Args:
        day_number: 0 or 1, from the scanner's rollover detection.
        ts: Extracted (or fallback) timestamp of the line.
        source_index: Discovery index of the source.
        row_number: 1-based row within the source.
        tag: Pre-rendered provenance tag (see provenance_tag()).
        raw_line: Original line text.

    Returns:
        TaggedLine: Immutable record ready for merging.
    """
    return TaggedLine(
        sort_key=SortKey.build(day_number, ts, source_index, row_number),
        display_time=format_display_time(ts),
        provenance_tag=tag,
        raw_line=raw_line,
    )
