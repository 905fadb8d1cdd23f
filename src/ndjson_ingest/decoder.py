from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .selector import NOT_FOUND, Selector, select
from .sources import UNKNOWN_SOURCE, is_blank


@dataclass(frozen=True)
class DecodeError:
    line_number: int
    source_identifier: str
    message: str


@dataclass(frozen=True)
class Emit:
    value: Any


@dataclass(frozen=True)
class Skip:
    reason: str  # blank|selector_miss|empty


@dataclass(frozen=True)
class Fail:
    error: DecodeError


ParseOutcome = Emit | Skip | Fail


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are accepted by the json module but are not JSON.
    raise ValueError(f"invalid JSON constant {name}")


def _json_error_message(e: Exception) -> str:
    if isinstance(e, json.JSONDecodeError):
        return f"{e.msg} (column {e.colno})"
    return str(e)


def decode_line(
    raw: str,
    selector: Selector,
    *,
    line_number: int,
    source_identifier: str = UNKNOWN_SOURCE,
    emit_empty: bool = False,
) -> ParseOutcome:
    """Classify one physical line as Emit, Skip, or Fail."""

    if is_blank(raw):
        return Skip("blank")

    text = raw.strip()

    try:
        if not text.isascii():
            # Lone surrogates come from undecodable bytes in the source.
            text.encode("utf-8")
        obj = json.loads(text, parse_constant=_reject_constant)
    except UnicodeEncodeError:
        return Fail(DecodeError(line_number, source_identifier, "invalid UTF-8 byte sequence"))
    except (ValueError, RecursionError) as e:
        return Fail(DecodeError(line_number, source_identifier, _json_error_message(e)))

    value = select(obj, selector)
    if value is NOT_FOUND:
        return Skip("selector_miss")

    # Falsy values (null, false, 0, "", {}, []) are dropped unless asked for.
    if not emit_empty and not value:
        return Skip("empty")

    return Emit(value)
