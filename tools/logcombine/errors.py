"""
Error types raised by logcombine.

Every failure that should stop a run derives from LogCombineError so the
CLI can report it with a single message and a non-zero exit code.

Hierarchy:
    LogCombineError
        ConfigError        - bad environment / .env value
        EnumerationError   - the source list could not be built
        ReadError          - a single source could not be read
            OpenError      - the stream for a source could not be opened
            ScanError      - the stream failed or a line was too long
    ScanCancelled          - internal; a worker stopped because a sibling failed

Note:
    A line without a recognizable timestamp is not an error. The time
    parser always falls back to the previous timestamp of the source.
"""

from typing import Optional


class LogCombineError(Exception):
    """Base class for all fatal logcombine errors."""


class ConfigError(LogCombineError):
    """A configuration value could not be interpreted."""


class EnumerationError(LogCombineError):
    """The list of candidate sources could not be produced."""


class ReadError(LogCombineError):
    """
    A source could not be read to completion.

    Attributes:
        source_name: Fully-qualified name of the failing source, if known.
    """

    def __init__(self, message: str, source_name: Optional[str] = None):
        super().__init__(message)
        self.source_name = source_name


class OpenError(ReadError):
    """The stream for a source could not be opened."""


class ScanError(ReadError):
    """Reading a source failed part way through."""


class ScanCancelled(Exception):
    """Raised inside a worker when the run was aborted by another source."""
