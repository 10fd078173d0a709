"""
Heuristic timestamp extraction for free-text log lines.

Log producers never agree on a timestamp format, and most log lines do not
declare one. This module turns any line into a comparable Timestamp by
trying an ordered list of patterns and taking the first that matches.

Design Decisions:
    - Patterns anchored at the start of the line (klog, syslog) are tried
      before unanchored ones, so a real line prefix wins over a
      time-shaped number somewhere in the message.
    - Unanchored patterns go from most to least precise; a 9-digit
      fraction must not be read as its 6- or 3-digit prefix.
    - Every precision is normalized to nanoseconds.
    - A line with no match returns the caller's fallback unchanged.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .model import Timestamp

_CLOCK = r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"


@dataclass(frozen=True)
class TimeMatcher:
    """
    One precompiled timestamp pattern.

    Attributes:
        name: Short label, handy when debugging which pattern fired.
        pattern: Compiled regex with hour/minute/second groups and an
                 optional fraction group.
        anchored: Match only at the start of the line.
    """
    name: str
    pattern: "re.Pattern[str]"
    anchored: bool = False

    def match(self, line: str) -> Optional[Timestamp]:
        """
        Return the Timestamp this pattern finds in line, or None.

        A match whose fields are outside clock range (e.g. 25:61:00) is
        not a time of day; unanchored patterns keep looking from the next
        character, so "99:12:30:45" still yields 12:30:45.
        """
        if self.anchored:
            m = self.pattern.match(line)
            return _to_timestamp(m) if m is not None else None

        pos = 0
        while True:
            m = self.pattern.search(line, pos)
            if m is None:
                return None
            ts = _to_timestamp(m)
            if ts is not None:
                return ts
            pos = m.start() + 1


def _to_timestamp(m: "re.Match[str]") -> Optional[Timestamp]:
    hour = int(m.group("hour"))
    minute = int(m.group("minute"))
    second = int(m.group("second"))
    if hour > 23 or minute > 59 or second > 59:
        return None

    fraction = m.groupdict().get("fraction") or ""
    # Right-pad: ".002031" is 2031000 ns, not 2031 ns
    nanosecond = int(fraction.ljust(9, "0")) if fraction else 0
    return Timestamp(hour, minute, second, nanosecond)


def _matcher(name: str, regex: str, anchored: bool = False) -> TimeMatcher:
    return TimeMatcher(name=name, pattern=re.compile(regex), anchored=anchored)


# Ordered most specific first. Examples:
#   klog_micro    I0101 22:10:34.002031 ...
#   syslog_micro  Jan  2 22:10:34.002031 ...
#   logfmt_nano   time="2020-01-02T22:10:34.002031939Z" ...
#   nano          ... 22:10:34.002031939 ...
TIME_MATCHERS: Sequence[TimeMatcher] = (
    _matcher("klog_micro", r"[A-Za-z]\d{4}\s+" + _CLOCK + r"\.(?P<fraction>\d{6})", anchored=True),
    _matcher("klog_milli", r"[A-Za-z]\d{4}\s+" + _CLOCK + r"\.(?P<fraction>\d{3})", anchored=True),
    _matcher("syslog_micro", r"[A-Z][a-z]{2}\s+\d{1,2}\s+" + _CLOCK + r"\.(?P<fraction>\d{6})", anchored=True),
    _matcher("syslog_milli", r"[A-Z][a-z]{2}\s+\d{1,2}\s+" + _CLOCK + r"\.(?P<fraction>\d{3})", anchored=True),
    _matcher("logfmt_nano", r'time="\d{4}-\d{2}-\d{2}T' + _CLOCK + r"\.(?P<fraction>\d{9})Z"),
    _matcher("nano", _CLOCK + r"\.(?P<fraction>\d{9})"),
    _matcher("micro", _CLOCK + r"\.(?P<fraction>\d{6})"),
    _matcher("milli", _CLOCK + r"\.(?P<fraction>\d{3})"),
    _matcher("seconds", _CLOCK),
)


def match_line_time(line: str, matchers: Sequence[TimeMatcher] = TIME_MATCHERS) -> Optional[Timestamp]:
    """Return the first matcher's timestamp for line, or None if none fires."""
    for matcher in matchers:
        ts = matcher.match(line)
        if ts is not None:
            return ts
    return None


def parse_line_time(
    line: str,
    fallback: Timestamp,
    matchers: Sequence[TimeMatcher] = TIME_MATCHERS,
) -> Timestamp:
    """
    Extract the timestamp of a log line.

    Args:
        line: One line of log text, without its line terminator.
        fallback: Returned as-is when no matcher recognizes the line;
                  normally the timestamp of the previous line.
        matchers: Ordered matchers to try. Defaults to TIME_MATCHERS.

    Returns:
        Timestamp: The first match, or fallback.

    Example:
        >>> parse_line_time("W0102 22:10:34.002031 x", Timestamp.ZERO)
        Timestamp(hour=22, minute=10, second=34, nanosecond=2031000)
    """
    ts = match_line_time(line, matchers)
    return fallback if ts is None else ts
