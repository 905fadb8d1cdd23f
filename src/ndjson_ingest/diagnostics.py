from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Protocol

from .decoder import DecodeError

logger = logging.getLogger("ndjson_ingest")


@dataclass(frozen=True)
class Diagnostic:
    level: str
    line_number: int
    source_identifier: str
    message: str

    @classmethod
    def skipped_line(cls, error: DecodeError) -> Diagnostic:
        return cls(
            level="warning",
            line_number=error.line_number,
            source_identifier=error.source_identifier,
            message=error.message,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DiagnosticsSink(Protocol):
    def emit(self, diagnostic: Diagnostic) -> None: ...


class LoggingSink:
    """Default sink: hands diagnostics to the stdlib logging tree."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def emit(self, diagnostic: Diagnostic) -> None:
        self._log.warning(
            "Skipped malformed NDJSON at line %d in %s: %s",
            diagnostic.line_number,
            diagnostic.source_identifier,
            diagnostic.message,
            extra={"ndjson": diagnostic.to_dict()},
        )


class CollectingSink:
    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def line_numbers(self) -> list[int]:
        return [d.line_number for d in self.diagnostics]


class JsonlSink:
    """Appends one JSON object per diagnostic to `path`."""

    def __init__(self, path: Path):
        self.path = path

    def emit(self, diagnostic: Diagnostic) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(diagnostic.to_dict(), ensure_ascii=True))
            f.write("\n")


class TeeSink:
    def __init__(self, *sinks: DiagnosticsSink):
        self._sinks = sinks

    def emit(self, diagnostic: Diagnostic) -> None:
        for s in self._sinks:
            s.emit(diagnostic)
