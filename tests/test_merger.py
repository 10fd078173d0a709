"""Tests for the concurrent merge and global sort."""

import io
import threading

import pytest

from logcombine.core.merger import LogMerger, merge_batches, merge_sources, write_lines
from logcombine.core.scanner import scan_source
from logcombine.core.tagger import TAG_COLUMN_WIDTH
from logcombine.errors import OpenError, ScanError

from conftest import ClosingBytesIO, lines_bytes


def tag(name):
    return ("[" + name + "]").ljust(TAG_COLUMN_WIDTH)


def test_two_sources_merge_chronologically(memory_sources):
    sources = memory_sources({
        "a.log": lines_bytes("I0101 10:00:00.000001 start", "I0101 10:00:00.000002 end"),
        "b.log": lines_bytes("I0101 09:59:59.999999 boot"),
    })

    assert merge_sources(sources) == [
        "09:59:59.999999000 " + tag("b.log") + " I0101 09:59:59.999999 boot",
        "10:00:00.000001000 " + tag("a.log") + " I0101 10:00:00.000001 start",
        "10:00:00.000002000 " + tag("a.log") + " I0101 10:00:00.000002 end",
    ]


def test_source_index_breaks_ties(memory_sources):
    sources = memory_sources({
        "x.log": lines_bytes("no timestamp here"),
        "y.log": lines_bytes("none here either"),
    })

    merged = merge_sources(sources)

    assert merged == [
        "00:00:00.000000000 " + tag("x.log") + " no timestamp here",
        "00:00:00.000000000 " + tag("y.log") + " none here either",
    ]


def test_row_number_breaks_ties_within_a_source(memory_sources):
    sources = memory_sources({
        "a.log": lines_bytes("12:00:00 first", "second", "12:00:00 third"),
    })

    assert [line.split()[-1] for line in merge_sources(sources)] == ["first", "second", "third"]


def test_merge_is_idempotent(memory_sources):
    files = {
        "api.log": lines_bytes("I0101 10:00:01.000000 a", "x", "I0101 10:00:03.000000 b"),
        "etcd.log": lines_bytes('time="2021-01-01T10:00:02.000000000Z" c', "10:00:01 d"),
        "build-log.txt": lines_bytes("+ make", "10:00:00 e"),
    }

    first = merge_sources(memory_sources(files))
    second = merge_sources(memory_sources(files))

    assert first == second
    assert len(first) == 7


def test_merge_batches_ignores_batch_order(memory_sources):
    sources = memory_sources({
        "a.log": lines_bytes("10:00:02 a2", "10:00:04 a4"),
        "b.log": lines_bytes("10:00:01 b1", "10:00:03 b3"),
    })

    batches = [scan_source(src, sources.open) for src in sources.sources]

    assert merge_batches(batches) == merge_batches(list(reversed(batches)))
    assert [line.split()[-1] for line in merge_batches(batches)] == ["b1", "a2", "b3", "a4"]


def test_open_failure_fails_the_run(memory_sources):
    sources = memory_sources(
        {"good.log": lines_bytes("10:00:00 ok"), "bad.log": b""},
        failures={"bad.log": OpenError("failed to create new reader for mem/bad.log: denied", "mem/bad.log")},
    )
    merger = LogMerger(sources)

    with pytest.raises(OpenError, match="bad.log"):
        merger.run()

    assert merger.stop.is_set()


def test_long_line_fails_the_run(memory_sources):
    sources = memory_sources({
        "a.log": lines_bytes("10:00:00 fine"),
        "b.log": b"y" * 100 + b"\n",
    })

    with pytest.raises(ScanError):
        merge_sources(sources, max_line_bytes=50)


def test_no_sources_merge_to_nothing(memory_sources):
    assert merge_sources(memory_sources({})) == []


class RecordingLogger:
    def __init__(self):
        self.records = []

    def log(self, stage, level, message):
        self.records.append((stage, level, message))


def test_merger_reports_progress(memory_sources):
    logger = RecordingLogger()
    merge_sources(memory_sources({"a.log": lines_bytes("1", "2")}), logger=logger)

    stages = {(stage, level) for stage, level, _ in logger.records}
    assert ("scan", "INFO") in stages
    assert ("merge", "INFO") in stages
    assert any("Merged 2 lines" in message for _, _, message in logger.records)


def test_write_lines_terminates_each_line():
    out = io.StringIO()
    write_lines(["a", "b"], out)
    assert out.getvalue() == "a\nb\n"


class GatedStream(ClosingBytesIO):
    """Hands out its first line at once; later reads wait for gate."""

    def __init__(self, data, gate):
        super().__init__(data)
        self.gate = gate
        self.reads = 0

    def readline(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            self.gate.wait(5)
        return super().readline(size)


class CancelWatchingLogger(RecordingLogger):
    def __init__(self):
        super().__init__()
        self.cancelled = threading.Event()

    def log(self, stage, level, message):
        super().log(stage, level, message)
        if (stage, level) == ("scan", "WARN"):
            self.cancelled.set()


def test_failure_cancels_slow_sibling(memory_sources):
    sources = memory_sources(
        {"slow.log": b"", "bad.log": b""},
        failures={"bad.log": OpenError("failed to create new reader for mem/bad.log: denied", "mem/bad.log")},
    )
    logger = CancelWatchingLogger()
    merger = LogMerger(sources, logger=logger)

    # The slow source stays mid-read until the run has failed
    slow = GatedStream(lines_bytes("10:00:00 one", "10:00:01 two", "10:00:02 three"), merger.stop)
    open_memory = sources.open
    sources.open = lambda name: slow if name.endswith("slow.log") else open_memory(name)

    with pytest.raises(OpenError, match="bad.log"):
        merger.run()

    assert logger.cancelled.wait(5)
    assert ("scan", "WARN", "Cancelled mem/slow.log") in logger.records
    assert not any(level == "INFO" and "slow.log" in message for _, level, message in logger.records)
    assert slow.was_closed
    assert merger._queue.empty()
