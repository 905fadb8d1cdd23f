from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .decoder import DecodeError


class NdjsonError(Exception):
    """Base class for everything this package raises on purpose."""


class SourceUnavailable(NdjsonError):
    """The origin could not be opened at all (missing, unreadable, unsupported scheme)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Cannot open NDJSON source {source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedLine(NdjsonError):
    """A line failed to decode while strict mode was on."""

    def __init__(self, error: DecodeError):
        super().__init__(
            f"Malformed NDJSON at line {error.line_number} in {error.source_identifier}: {error.message}"
        )
        self.error = error

    @property
    def line_number(self) -> int:
        return self.error.line_number

    @property
    def source_identifier(self) -> str:
        return self.error.source_identifier


class InvalidSelector(NdjsonError, ValueError):
    pass


class ConfigError(NdjsonError, ValueError):
    pass
