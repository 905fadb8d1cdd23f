from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .selector import Selector

STRATEGIES = ("stream", "buffered")


@dataclass(frozen=True)
class ParserConfig:
    # Fail the whole run on the first malformed line.
    strict_mode: bool = True

    item_selector: Selector = field(default_factory=Selector)

    # Keep null/false/0/""/{}/[] selections instead of dropping them.
    emit_empty: bool = False

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> ParserConfig:
        """Build a config from caller-supplied options, validating eagerly."""

        return cls(
            strict_mode=_as_bool(options.get("strict_mode"), name="strict_mode", default=True),
            item_selector=Selector.parse(options.get("item_selector")),
            emit_empty=_as_bool(options.get("emit_empty"), name="emit_empty", default=False),
        )


@dataclass
class IngestConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)

    # Sources read in order; file:// URLs or local paths.
    urls: list[str] = field(default_factory=list)

    # stream|buffered.
    strategy: str = "stream"

    # Optional NDJSON log of skipped lines.
    warnings_log: Path | None = None


def _as_bool(v: Any, *, name: str, default: bool) -> bool:
    if v is None:
        return default
    if not isinstance(v, bool):
        raise ConfigError(f"{name} must be a boolean, got {v!r}")
    return v


def _as_str(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _as_path(v: Any, *, base: Path) -> Path | None:
    s = _as_str(v)
    if s is None:
        return None
    p = Path(s)
    return (base / p).resolve() if not p.is_absolute() else p


def _as_str_list(v: Any, *, name: str) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    if not isinstance(v, list) or not all(isinstance(x, str) and x for x in v):
        raise ConfigError(f"{name} must be a string or a list of strings")
    return list(v)


def _as_url_list(v: Any, *, base: Path) -> list[str]:
    out: list[str] = []
    for u in _as_str_list(v, name="urls"):
        # Bare relative paths are relative to the config file, not the cwd.
        if "://" not in u and not u.startswith("/"):
            u = str((base / u).resolve())
        out.append(u)
    return out


def _as_strategy(v: Any) -> str:
    s = _as_str(v) or "stream"
    if s not in STRATEGIES:
        raise ConfigError(f"strategy must be one of {', '.join(STRATEGIES)}, got {s!r}")
    return s


def ingest_config_from_dict(data: Mapping[str, Any], *, base: Path) -> IngestConfig:
    return IngestConfig(
        parser=ParserConfig.from_options(data),
        urls=_as_url_list(data.get("urls"), base=base),
        strategy=_as_strategy(data.get("strategy")),
        warnings_log=_as_path(data.get("warnings_log"), base=base),
    )


def load_ingest_config(path: Path) -> IngestConfig:
    """Load an ndjson-ingest.yaml file if present; otherwise return defaults."""

    if not path.exists():
        return IngestConfig()

    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    return ingest_config_from_dict(loaded, base=path.parent)
