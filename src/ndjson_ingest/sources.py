from __future__ import annotations

import io
import weakref
from pathlib import Path
from typing import Protocol

from .errors import SourceUnavailable

UNKNOWN_SOURCE = "(unknown)"


def is_blank(line: str) -> bool:
    return not line.strip()


class LineSource(Protocol):
    """Forward-only producer of raw text lines."""

    source_identifier: str

    def next_line(self) -> str | None: ...

    def is_exhausted(self) -> bool: ...

    def close(self) -> None: ...


class BufferedLineSource:
    """Lines of a payload that is already fully in memory.

    Splits on ``\\n`` up front and keeps empty strings for blank lines. Line
    numbering matches StreamingLineSource over the same bytes.
    """

    def __init__(self, text: str, *, source_identifier: str = UNKNOWN_SOURCE):
        self.source_identifier = source_identifier
        self._lines = text.split("\n") if text else []
        if text.endswith("\n"):
            # A final newline ends the last line; it does not start an empty one.
            self._lines.pop()
        self._pos = 0

    def next_line(self) -> str | None:
        if self._pos >= len(self._lines):
            return None
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def is_exhausted(self) -> bool:
        return self._pos >= len(self._lines)

    def close(self) -> None:
        self._pos = len(self._lines)
        self._lines = []


def _close_handle(fh: io.BufferedReader) -> None:
    fh.close()


class StreamingLineSource:
    """Reads a local file one line at a time.

    Only the current line is held in memory. Bytes that are not valid UTF-8
    are kept as surrogate escapes so the decoder can report the line as
    malformed instead of the read failing.
    """

    def __init__(self, path: Path, *, source_identifier: str | None = None):
        self.path = path
        self.source_identifier = source_identifier or str(path)

        if not path.exists():
            raise SourceUnavailable(self.source_identifier, "file does not exist")
        if not path.is_file():
            raise SourceUnavailable(self.source_identifier, "not a regular file")
        try:
            fh = path.open("rb")
        except OSError as e:
            raise SourceUnavailable(self.source_identifier, e.strerror or str(e)) from e

        self._fh: io.BufferedReader | None = fh
        self._eof = False
        # Releases the handle if the source is dropped without close().
        self._finalizer = weakref.finalize(self, _close_handle, fh)

    @classmethod
    def from_url(cls, url: str) -> StreamingLineSource:
        return cls(resolve_local_path(url), source_identifier=url)

    def next_line(self) -> str | None:
        if self._eof or self._fh is None:
            return None
        raw = self._fh.readline()
        if not raw:
            self._eof = True
            return None
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        return raw.decode("utf-8", errors="surrogateescape")

    def is_exhausted(self) -> bool:
        if self._eof or self._fh is None:
            return True
        if not self._fh.peek(1):
            self._eof = True
        return self._eof

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        self._fh = None
        self._eof = True
        self._finalizer()

    def __enter__(self) -> StreamingLineSource:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def resolve_local_path(url: str) -> Path:
    """Map a ``file://`` URL, absolute path, or relative path to a local Path.

    Any other ``scheme://`` is rejected; fetching remote payloads is the
    caller's job.
    """

    if url.startswith("file://"):
        return Path(url[len("file://"):])

    if url.startswith("/"):
        return Path(url)

    if "://" in url:
        scheme = url.split("://", 1)[0]
        raise SourceUnavailable(
            url, f"unsupported scheme {scheme!r}; only file:// URLs and local paths can be read"
        )

    return (Path.cwd() / url).resolve()


def read_local_text(url: str) -> str:
    """Read a whole local payload for the buffered strategy."""

    path = resolve_local_path(url)
    if not path.is_file():
        raise SourceUnavailable(url, "file does not exist")
    try:
        return path.read_bytes().decode("utf-8", errors="surrogateescape")
    except OSError as e:
        raise SourceUnavailable(url, e.strerror or str(e)) from e
