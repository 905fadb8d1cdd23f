from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from enum import Enum
from typing import Any

from .config import ParserConfig
from .decoder import Emit, Fail, decode_line
from .diagnostics import Diagnostic, DiagnosticsSink, LoggingSink
from .errors import MalformedLine
from .sources import UNKNOWN_SOURCE, BufferedLineSource, LineSource, StreamingLineSource

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    READING = "reading"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


def _close_source(source: LineSource) -> None:
    source.close()


class NdjsonStream:
    """Pulls lines from a LineSource and yields decoded records on demand.

    One instance reads one source once. In strict mode the first malformed
    line raises MalformedLine and the stream stays failed; otherwise the line
    is reported to the diagnostics sink and skipped. The source is closed on
    exhaustion, on failure, on close(), or when the stream is collected.
    """

    def __init__(self, config: ParserConfig | None = None, *, sink: DiagnosticsSink | None = None):
        self.config = config or ParserConfig()
        self.sink = sink or LoggingSink()

        self.state = StreamState.IDLE
        self.line_number = 0
        self.source_identifier = UNKNOWN_SOURCE

        self.records_emitted = 0
        self.lines_skipped = 0
        self.malformed_lines = 0

        self._source: LineSource | None = None
        self._release: weakref.finalize | None = None

    def open(self, source: LineSource) -> NdjsonStream:
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"NdjsonStream already used (state={self.state.value})")

        self._source = source
        self._release = weakref.finalize(self, _close_source, source)
        self.source_identifier = source.source_identifier
        self.line_number = 0
        self.state = StreamState.OPEN
        return self

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        if self.state is StreamState.EXHAUSTED:
            raise StopIteration
        if self.state is StreamState.FAILED:
            raise RuntimeError(f"NdjsonStream over {self.source_identifier} failed; open a new stream to re-read")
        if self.state is StreamState.IDLE or self._source is None:
            raise RuntimeError("NdjsonStream has no source; call open() first")

        self.state = StreamState.READING
        while True:
            raw = self._source.next_line()
            if raw is None:
                self.state = StreamState.EXHAUSTED
                self._close_source()
                logger.debug(
                    "Finished %s: %d records from %d lines",
                    self.source_identifier,
                    self.records_emitted,
                    self.line_number,
                )
                raise StopIteration

            self.line_number += 1
            outcome = decode_line(
                raw,
                self.config.item_selector,
                line_number=self.line_number,
                source_identifier=self.source_identifier,
                emit_empty=self.config.emit_empty,
            )

            if isinstance(outcome, Emit):
                self.records_emitted += 1
                return outcome.value

            if isinstance(outcome, Fail):
                self.malformed_lines += 1
                if self.config.strict_mode:
                    self.state = StreamState.FAILED
                    self._close_source()
                    raise MalformedLine(outcome.error)
                self.sink.emit(Diagnostic.skipped_line(outcome.error))
                continue

            self.lines_skipped += 1

    def _close_source(self) -> None:
        if self._release is not None:
            self._release()
        self._source = None

    def close(self) -> None:
        """Release the source early; pending lines are never read."""

        if self.state in (StreamState.OPEN, StreamState.READING):
            self.state = StreamState.EXHAUSTED
        self._close_source()

    def __enter__(self) -> NdjsonStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def parse_ndjson(
    text: str,
    config: ParserConfig | None = None,
    *,
    source_identifier: str = UNKNOWN_SOURCE,
    sink: DiagnosticsSink | None = None,
) -> list[Any]:
    """Decode an in-memory NDJSON payload into a list of records.

    In strict mode a malformed line raises before anything is returned.
    """

    stream = NdjsonStream(config, sink=sink).open(BufferedLineSource(text, source_identifier=source_identifier))
    with stream:
        return list(stream)


def stream_ndjson(
    url: str,
    config: ParserConfig | None = None,
    *,
    sink: DiagnosticsSink | None = None,
) -> NdjsonStream:
    """Open a local NDJSON file for line-by-line decoding.

    Raises SourceUnavailable immediately if the file cannot be opened.
    """

    return NdjsonStream(config, sink=sink).open(StreamingLineSource.from_url(url))
