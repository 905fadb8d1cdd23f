from __future__ import annotations

from pathlib import Path

CONFIG_FILENAME = "ndjson-ingest.yaml"


def find_config_file(start: Path | None = None) -> Path | None:
    """Find the nearest ndjson-ingest.yaml walking up from `start` (default: cwd).

    This keeps behavior predictable when invoking `ndjson-ingest` from subdirectories.
    """

    cur = (start or Path.cwd()).resolve()
    for p in [cur, *cur.parents]:
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
