from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import InvalidSelector


class _NotFound:
    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class Selector:
    """Slash-delimited key walk, e.g. ``/data/author``.

    ``""`` and ``"/"`` select the whole value. Leading and trailing slashes are
    ignored; an empty segment in the middle (``/a//b``) is rejected.
    """

    raw: str = ""
    segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> Selector:
        if isinstance(raw, Selector):
            return raw
        if raw is None:
            return cls()
        if not isinstance(raw, str):
            raise InvalidSelector(f"item_selector must be a string, got {type(raw).__name__}")

        trimmed = raw.strip("/")
        if not trimmed:
            return cls(raw=raw)

        parts = tuple(trimmed.split("/"))
        if any(p == "" for p in parts):
            raise InvalidSelector(f"item_selector has an empty segment: {raw!r}")
        return cls(raw=raw, segments=parts)

    @property
    def is_identity(self) -> bool:
        return not self.segments

    def __str__(self) -> str:
        return "/" + "/".join(self.segments)


def select(value: Any, selector: Selector | str) -> Any:
    """Return the sub-value addressed by `selector`, or NOT_FOUND."""

    sel = Selector.parse(selector)
    if sel.is_identity:
        return value

    cur = value
    for key in sel.segments:
        if not isinstance(cur, dict) or key not in cur:
            return NOT_FOUND
        cur = cur[key]
    return cur
