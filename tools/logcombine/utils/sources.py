"""
Source discovery for logcombine.

This module turns the command-line locator into an ordered list of Source
records plus a way to open each one. Two kinds of locator are supported:

    - A local path: the directory tree is walked.
    - An http(s) URL into an object-store bucket: see bucket.py.

The discovery order fixes each source's index, which breaks ties between
lines that carry the same timestamp, so it must be deterministic. Local
trees are therefore walked in lexical order.
"""

import os
import re
from typing import BinaryIO, Iterator, List, Sequence

from ..core.model import Source
from ..errors import EnumerationError

# Files that qualify as log inputs
LOG_SUFFIXES = (".log", "build-log.txt")

URL_PATTERN = re.compile(r"^https?://")


def is_log_name(name: str) -> bool:
    """Return True if name ends in .log or build-log.txt."""
    return name.endswith(LOG_SUFFIXES)


def is_url(locator: str) -> bool:
    return URL_PATTERN.match(locator) is not None


def display_name(name: str, prefix: str) -> str:
    """
    Strip the common prefix from a source name for display.

    Args:
        name: Full path or object name.
        prefix: Root that every source of the run shares.

    Returns:
        str: The name relative to prefix, without a leading "/". When the
             name is the prefix itself (a single-file root), its base name.

    Example:
        >>> display_name("/data/run/node-1/kubelet.log", "/data/run")
        'node-1/kubelet.log'
    """
    relative = name[len(prefix):] if prefix and name.startswith(prefix) else name
    relative = relative.lstrip("/" + os.sep)
    return relative or os.path.basename(name)


def build_sources(names: Sequence[str], prefix: str) -> List[Source]:
    """Assign discovery indexes and display names to an ordered name list."""
    return [
        Source(index=i, name=name, display_name=display_name(name, prefix))
        for i, name in enumerate(names)
    ]


def walk_log_files(root: str) -> Iterator[str]:
    """
    Yield log file paths under root, depth first, in lexical order.

    Directory symlinks are not followed. A root that is itself a file is
    yielded when it qualifies.

    Raises:
        OSError: root is missing or a directory cannot be listed.
    """
    if not os.path.isdir(root) or os.path.islink(root):
        # Raises for a missing root
        os.lstat(root)
        if is_log_name(root):
            yield root
        return

    with os.scandir(root) as it:
        entries = sorted(it, key=lambda entry: entry.name)

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from walk_log_files(entry.path)
        elif is_log_name(entry.path):
            yield entry.path


class LocalSourceSet:
    """
    Log files found under a local directory.

    Attributes:
        prefix: Absolute root path, stripped from display names.
        sources: Discovered sources in walk order.
    """

    def __init__(self, prefix: str, sources: List[Source]):
        self.prefix = prefix
        self.sources = sources

    @classmethod
    def discover(cls, path: str) -> "LocalSourceSet":
        """
        Walk path and collect every qualifying log file.

        Raises:
            EnumerationError: path does not exist or cannot be walked.
        """
        prefix = os.path.abspath(path)
        try:
            names = list(walk_log_files(prefix))
        except OSError as exc:
            raise EnumerationError(f"failed to get object names from path {path} : {exc}") from exc
        return cls(prefix, build_sources(names, prefix))

    def open(self, name: str) -> BinaryIO:
        return open(name, "rb")

    def close(self) -> None:
        # Local files are opened and closed per source
        pass


def open_source_set(locator: str, settings, session=None):
    """
    Build the source set for a command-line locator.

    Args:
        locator: Local path or http(s) bucket URL.
        settings: Resolved Settings (bucket name, API endpoint).
        session: Optional requests.Session for URL locators.

    Raises:
        EnumerationError: The sources could not be listed.
    """
    if is_url(locator):
        # Imported lazily so local runs never touch the HTTP stack
        from .bucket import BucketSourceSet
        return BucketSourceSet.discover(locator, settings, session=session)
    return LocalSourceSet.discover(locator)
