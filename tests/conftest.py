"""
Shared pytest fixtures for the logcombine test suite.
"""

import io
import os

import pytest

from logcombine.core.model import Source
from logcombine.utils.sources import build_sources


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Make sure no LOGCOMBINE_* variable from the shell leaks into a test."""
    for key in list(os.environ):
        if key.startswith("LOGCOMBINE_"):
            monkeypatch.delenv(key, raising=False)
    yield


class ClosingBytesIO(io.BytesIO):
    """BytesIO that remembers it was closed, for release assertions."""

    was_closed = False

    def close(self):
        self.was_closed = True
        super().close()


class MemorySourceSet:
    """
    In-memory source set: name -> bytes, opened as BytesIO.

    Names listed in failures raise the mapped exception from open().
    """

    def __init__(self, files, failures=None, prefix="mem/"):
        self.prefix = prefix
        self.files = dict(files)
        self.failures = failures or {}
        names = [prefix + name for name in self.files]
        self.sources = build_sources(names, prefix)
        self.opened = []

    def open(self, name):
        key = name[len(self.prefix):]
        if key in self.failures:
            raise self.failures[key]
        stream = ClosingBytesIO(self.files[key])
        self.opened.append(stream)
        return stream

    def close(self):
        pass


def lines_bytes(*lines):
    return "".join(line + "\n" for line in lines).encode("utf-8")


@pytest.fixture
def memory_sources():
    """Factory for MemorySourceSet instances."""
    return MemorySourceSet


@pytest.fixture
def source():
    """A single Source with a short display name."""
    return Source(index=0, name="/logs/app.log", display_name="app.log")
