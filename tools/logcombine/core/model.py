"""
Data models for the log merge engine.

This module defines the value types that flow between the time parser,
the line tagger, the per-source scanner and the merger.

Purpose:
    Lines from different sources need a common, comparable representation
    so they can be concatenated and sorted once. Keeping these types small
    and immutable means workers can build them in parallel without any
    locking.

Design Decisions:
    - Timestamp and SortKey are frozen, ordered dataclasses. Their field
      order is their sort order, so Python's tuple comparison gives the
      merge order directly.
    - SortKey still renders to the fixed-width text form used by the
      classic combiner, which keeps the output comparable with it.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

# "D:HH:MM:SS.NNNNNNNNN:IIII:RRRRRRRR" plus the separating space
SORT_KEY_WIDTH = 34
SORT_PREFIX_WIDTH = SORT_KEY_WIDTH + 1


@dataclass(frozen=True, order=True)
class Timestamp:
    """
    Wall-clock time of a log line at nanosecond resolution.

    Only the time of day is kept. Log lines rarely carry a full date, and
    day changes are tracked separately by the scanner's rollover flag.

    Attributes:
        hour: 0-23
        minute: 0-59
        second: 0-59
        nanosecond: 0-999999999
    """
    hour: int = 0
    minute: int = 0
    second: int = 0
    nanosecond: int = 0

    ZERO: ClassVar["Timestamp"]

    def display(self) -> str:
        """Return the timestamp as HH:MM:SS.nnnnnnnnn."""
        return (
            f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
            f".{self.nanosecond:09d}"
        )


Timestamp.ZERO = Timestamp()


@dataclass(frozen=True, order=True)
class SortKey:
    """
    Total ordering key for one tagged line.

    Comparison is field by field: day, then time of day, then the source's
    discovery index, then the row within the source. (source_index,
    row_number) is unique across a run, so two different lines never
    compare equal.
    """
    day: int
    hour: int
    minute: int
    second: int
    nanosecond: int
    source_index: int
    row_number: int

    @classmethod
    def build(cls, day: int, ts: Timestamp, source_index: int, row_number: int) -> "SortKey":
        return cls(day, ts.hour, ts.minute, ts.second, ts.nanosecond,
                   source_index, row_number)

    def __str__(self) -> str:
        return (
            f"{self.day:d}:{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
            f".{self.nanosecond:09d}:{self.source_index:04d}:{self.row_number:08d}"
        )


@dataclass(frozen=True)
class TaggedLine:
    """
    One input line annotated for merging.

    Attributes:
        sort_key: Ordering key, stripped before output.
        display_time: HH:MM:SS.nnnnnnnnn of the extracted timestamp.
        provenance_tag: Bracketed source tag, already padded to its column.
        raw_line: The original text of the line, unmodified.
    """
    sort_key: SortKey
    display_time: str
    provenance_tag: str
    raw_line: str

    @property
    def display_line(self) -> str:
        """The output form of the line, without the sort key."""
        return f"{self.display_time} {self.provenance_tag} {self.raw_line}"

    @property
    def composed(self) -> str:
        """The sort key followed by the display line."""
        return f"{self.sort_key} {self.display_line}"


@dataclass(frozen=True)
class Source:
    """
    One discovered log file or object.

    Attributes:
        index: Position in the discovery order; used as a tie-breaker.
        name: Fully-qualified path or object name.
        display_name: Name with the common prefix removed.
    """
    index: int
    name: str
    display_name: str


@dataclass
class RollingTimeState:
    """
    Per-source timestamp state carried from one line to the next.

    Attributes:
        current_time: Timestamp of the latest line; fallback for the next.
        first_time: First timestamp actually found in the source, set once.
                    Lines before it only inherit the fallback and do not count.
        day_number: 0 until a rollover past midnight is detected, then 1
                    for the rest of the source.
    """
    current_time: Timestamp = Timestamp.ZERO
    first_time: Optional[Timestamp] = None
    day_number: int = 0
