"""
Concurrent aggregation of many sources into one time-ordered stream.

This module runs one scanner per source, collects every source's batch of
tagged lines and sorts the combined collection once.

Architecture:
    - One worker thread per source, all started at once
    - Workers report through a single queue carrying two message kinds:
      a finished batch, or an error
    - The first error sets a shared stop event, so the other workers quit
      between line reads, and is raised to the caller
    - The global sort is the only ordering authority; which source
      finishes first does not matter

Design Decisions:
    - No partial results. A run either merges every source or fails.
    - Output is produced only after the full sort, in one sequential
      write, so the output path needs no locking.
"""

import threading
from queue import Queue
from typing import Iterable, List, TextIO

from ..errors import ScanCancelled
from .model import TaggedLine
from .scanner import MAX_LINE_BYTES, scan_source

# Message kinds on the worker queue
BATCH = "batch"
ERROR = "error"


def merge_batches(batches: Iterable[List[TaggedLine]]) -> List[str]:
    """
    Concatenate batches, sort them globally and strip the sort keys.

    Args:
        batches: One list of TaggedLine per source, in any order.

    Returns:
        List[str]: Display lines in merged order.
    """
    combined: List[TaggedLine] = []
    for batch in batches:
        combined.extend(batch)

    # sort() is stable, and SortKey is unique per line anyway
    combined.sort(key=lambda tagged: tagged.sort_key)

    return [tagged.display_line for tagged in combined]


class LogMerger:
    """
    Fan out one scanner per source and merge the results.

    Attributes:
        source_set: Enumerated sources plus the opener for their streams.
        max_line_bytes: Longest accepted line, passed to each scanner.
        logger: Optional RunLogger for progress and failures.
        stop: Set once any worker fails.

    Example:
        >>> merger = LogMerger(LocalSourceSet.discover("./artifacts"))
        >>> for line in merger.run():
        ...     print(line)
    """

    def __init__(self, source_set, max_line_bytes: int = MAX_LINE_BYTES, logger=None):
        self.source_set = source_set
        self.max_line_bytes = max_line_bytes
        self.logger = logger
        self.stop = threading.Event()
        self._queue: Queue = Queue()

    def _log(self, stage: str, level: str, message: str) -> None:
        if self.logger is not None:
            self.logger.log(stage, level, message)

    def _worker(self, source) -> None:
        """Scan one source and post its batch, or its error, to the queue."""
        try:
            lines = scan_source(source, self.source_set.open, self.stop, self.max_line_bytes)
        except ScanCancelled:
            # Another worker already failed; nobody is waiting for us
            self._log("scan", "WARN", f"Cancelled {source.name}")
            return
        except Exception as exc:
            self._queue.put((ERROR, exc))
            return
        self._log("scan", "INFO", f"Read {len(lines)} lines from {source.name}")
        self._queue.put((BATCH, lines))

    def run(self) -> List[str]:
        """
        Scan every source concurrently and return the merged lines.

        Returns:
            List[str]: Display lines, sort keys stripped, in merged order.

        Raises:
            ReadError: The first OpenError or ScanError any worker hit.
        """
        sources = list(self.source_set.sources)
        self._log("merge", "INFO", f"Merging {len(sources)} sources")

        for source in sources:
            thread = threading.Thread(
                target=self._worker,
                args=(source,),
                name=f"logcombine-scan-{source.index}",
                daemon=True,
            )
            thread.start()

        batches: List[List[TaggedLine]] = []
        for _ in range(len(sources)):
            kind, payload = self._queue.get()
            if kind == ERROR:
                # Fail fast: siblings stop at their next line read
                self.stop.set()
                self._log("merge", "ERROR", str(payload))
                raise payload
            batches.append(payload)

        merged = merge_batches(batches)
        self._log("merge", "INFO", f"Merged {len(merged)} lines")
        return merged


def merge_sources(source_set, max_line_bytes: int = MAX_LINE_BYTES, logger=None) -> List[str]:
    """Convenience wrapper: build a LogMerger and run it."""
    return LogMerger(source_set, max_line_bytes=max_line_bytes, logger=logger).run()


def write_lines(lines: Iterable[str], stream: TextIO) -> None:
    """Write merged lines to stream, one per line, in order."""
    for line in lines:
        stream.write(line + "\n")
    stream.flush()
