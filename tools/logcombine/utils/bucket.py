"""
Object-store sources: log objects listed from a public bucket.

A URL locator such as

    https://gcsweb.k8s.io/gcs/kubernetes-jenkins/logs/ci-e2e/1234/

names a bucket (LOGCOMBINE_BUCKET) and a listing prefix (everything after
"/<bucket>/"). Objects are listed and downloaded anonymously through the
Cloud Storage JSON API with requests; only object names are requested
while listing.

Design Decisions:
    - Anonymous access only: CI artifact buckets are public.
    - Objects are streamed, never downloaded whole, so the scanner's
      line ceiling bounds memory.
    - Transport errors surface as requests exceptions, which are OSError
      subclasses, so the scanner reports them as ScanError mid-read.
"""

from typing import Iterator, List, Optional
from urllib.parse import quote

import requests

from ..errors import EnumerationError, OpenError
from .sources import build_sources, is_log_name

# Objects are read in chunks of this size
STREAM_CHUNK_BYTES = 64 * 1024

# Seconds to wait for the storage API to respond or send more data
REQUEST_TIMEOUT = 60


def bucket_prefix(url: str, bucket: str) -> str:
    """
    Extract the object prefix from a bucket URL.

    Raises:
        EnumerationError: The URL does not point into the bucket.

    Example:
        >>> bucket_prefix("https://host/gcs/kubernetes-jenkins/logs/job/7/", "kubernetes-jenkins")
        'logs/job/7/'
    """
    marker = f"/{bucket}/"
    if marker not in url:
        raise EnumerationError(f"unable to determine prefix from the specified path: {url}")
    return url.split(marker, 1)[1]


class ObjectStream:
    """
    Line-readable binary stream over a streamed HTTP response.

    Supports the small part of the file API the scanner needs:
    readline(size) and use as a context manager.
    """

    def __init__(self, response: requests.Response, chunk_size: int = STREAM_CHUNK_BYTES):
        self._response = response
        self._chunks = response.iter_content(chunk_size=chunk_size)
        self._buffer = bytearray()
        self._eof = False

    def readline(self, size: int = -1) -> bytes:
        while True:
            limit = len(self._buffer) if size < 0 else min(size, len(self._buffer))
            newline = self._buffer.find(b"\n", 0, limit)
            if newline >= 0:
                count = newline + 1
                break
            if 0 <= size <= len(self._buffer):
                count = size
                break
            if self._eof:
                count = limit
                break
            try:
                self._buffer.extend(next(self._chunks))
            except StopIteration:
                self._eof = True

        line = bytes(self._buffer[:count])
        del self._buffer[:count]
        return line

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> "ObjectStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BucketSourceSet:
    """
    Log objects found under a bucket prefix.

    Attributes:
        bucket: Bucket name.
        prefix: Listing prefix, stripped from display names.
        sources: Discovered sources in listing (lexical) order.
        api: Storage JSON API base URL.
        session: requests session used for listing and downloads.
    """

    def __init__(self, bucket: str, prefix: str, sources: List, api: str, session: requests.Session):
        self.bucket = bucket
        self.prefix = prefix
        self.sources = sources
        self.api = api
        self.session = session

    @classmethod
    def discover(cls, url: str, settings, session: Optional[requests.Session] = None) -> "BucketSourceSet":
        """
        List the qualifying objects under the URL's prefix.

        Raises:
            EnumerationError: The prefix cannot be derived or listing failed.
        """
        bucket = settings.bucket
        prefix = bucket_prefix(url, bucket)
        session = session or requests.Session()

        names = [
            name
            for name in list_object_names(session, settings.storage_api, bucket, prefix)
            if is_log_name(name)
        ]
        return cls(bucket, prefix, build_sources(names, prefix), settings.storage_api, session)

    def object_url(self, name: str) -> str:
        return f"{self.api}/storage/v1/b/{self.bucket}/o/{quote(name, safe='')}"

    def open(self, name: str) -> ObjectStream:
        """
        Start streaming one object.

        Raises:
            OpenError: The request failed or returned an error status.
        """
        try:
            response = self.session.get(
                self.object_url(name),
                params={"alt": "media"},
                stream=True,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise OpenError(f"failed to create new reader for {name}: {exc}", name) from exc

        if not response.ok:
            response.close()
            raise OpenError(
                f"failed to create new reader for {name}: HTTP {response.status_code}",
                name,
            )
        return ObjectStream(response)

    def close(self) -> None:
        self.session.close()


def list_object_names(session: requests.Session, api: str, bucket: str, prefix: str) -> Iterator[str]:
    """
    Yield every object name under prefix, following pagination.

    Raises:
        EnumerationError: A listing request failed or returned bad JSON.
    """
    url = f"{api}/storage/v1/b/{bucket}/o"
    params = {"prefix": prefix, "fields": "items(name),nextPageToken"}

    while True:
        try:
            response = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            page = response.json()
        except requests.RequestException as exc:
            raise EnumerationError(f"iterator error: {exc}") from exc
        except ValueError as exc:
            raise EnumerationError(f"iterator error: invalid listing response: {exc}") from exc

        for item in page.get("items", []):
            yield item["name"]

        token = page.get("nextPageToken")
        if not token:
            return
        params = dict(params, pageToken=token)
