from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

import typer

from .config import IngestConfig, ParserConfig, load_ingest_config
from .diagnostics import DiagnosticsSink, JsonlSink, LoggingSink, TeeSink
from .errors import ConfigError, InvalidSelector, MalformedLine, SourceUnavailable
from .paths import find_config_file
from .runner import run_ingest
from .selector import Selector

app = typer.Typer(add_completion=False, help="ndjson-ingest: decode newline-delimited JSON into records")

FATAL_ERRORS = (SourceUnavailable, MalformedLine, InvalidSelector, ConfigError)


def _resolve_config(
    *,
    urls: list[str] | None,
    config_path: Path | None,
    selector: str | None,
    permissive: bool | None,
    buffered: bool | None,
    emit_empty: bool | None,
    warnings_log: Path | None,
) -> IngestConfig:
    path = config_path or find_config_file()
    cfg = load_ingest_config(path) if path is not None else IngestConfig()

    # Command-line flags win over the config file.
    parser = cfg.parser
    if selector is not None:
        parser = dataclasses.replace(parser, item_selector=Selector.parse(selector))
    if permissive is not None:
        parser = dataclasses.replace(parser, strict_mode=not permissive)
    if emit_empty is not None:
        parser = dataclasses.replace(parser, emit_empty=emit_empty)
    cfg.parser = parser

    if urls:
        cfg.urls = list(urls)
    if buffered is not None:
        cfg.strategy = "buffered" if buffered else "stream"
    if warnings_log is not None:
        cfg.warnings_log = warnings_log
    return cfg


def _sink_for(cfg: IngestConfig) -> DiagnosticsSink:
    if cfg.warnings_log is None:
        return LoggingSink()
    return TeeSink(LoggingSink(), JsonlSink(cfg.warnings_log))


def _fail(e: Exception) -> typer.Exit:
    typer.secho(str(e), fg=typer.colors.RED, err=True)
    return typer.Exit(code=2)


@app.command()
def parse(
    urls: list[str] | None = typer.Argument(None, help="file:// URLs or local paths (default: urls from config)"),
    selector: str | None = typer.Option(None, "--selector", "-s", help="Slash-delimited item selector, e.g. /data"),
    permissive: bool | None = typer.Option(
        None,
        "--permissive/--strict",
        help="Skip malformed lines with a warning instead of failing",
    ),
    buffered: bool | None = typer.Option(
        None,
        "--buffered/--stream",
        help="Read each source fully into memory before decoding",
    ),
    emit_empty: bool | None = typer.Option(
        None,
        "--emit-empty/--drop-empty",
        help="Keep selections that are null, false, 0, empty strings, objects or arrays",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (defaults to the nearest ndjson-ingest.yaml)",
    ),
    warnings_log: Path | None = typer.Option(None, "--warnings-log", help="Append skipped-line diagnostics here"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write records here instead of stdout"),
) -> None:
    """Decode sources and write the selected records as NDJSON."""

    try:
        cfg = _resolve_config(
            urls=urls,
            config_path=config,
            selector=selector,
            permissive=permissive,
            buffered=buffered,
            emit_empty=emit_empty,
            warnings_log=warnings_log,
        )
    except FATAL_ERRORS as e:
        raise _fail(e) from e

    if not cfg.urls:
        typer.secho("No sources given (pass URLs or set urls in the config file)", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    # Records go to a sibling .part file that replaces `output` only on success.
    part = output.with_name(output.name + ".part") if output is not None else None
    out_f = part.open("w", encoding="utf-8") if part is not None else None

    def write(record: Any) -> None:
        line = json.dumps(record, ensure_ascii=True)
        if out_f is None:
            typer.echo(line)
        else:
            out_f.write(line)
            out_f.write("\n")

    committed = False
    try:
        summary = run_ingest(cfg, write=write, sink=_sink_for(cfg))
        committed = True
    except FATAL_ERRORS as e:
        raise _fail(e) from e
    finally:
        if out_f is not None:
            out_f.close()
            if committed:
                part.replace(output)
            else:
                part.unlink(missing_ok=True)

    if output is not None:
        typer.secho(f"Wrote {summary.records_emitted} records to {output}", fg=typer.colors.GREEN, err=True)
    if summary.malformed_lines:
        typer.secho(f"Skipped {summary.malformed_lines} malformed lines", fg=typer.colors.YELLOW, err=True)


@app.command()
def check(
    urls: list[str] = typer.Argument(..., help="file:// URLs or local paths"),
    selector: str | None = typer.Option(None, "--selector", "-s", help="Slash-delimited item selector"),
) -> None:
    """Validate sources in strict mode and report how many records they hold."""

    try:
        parser = ParserConfig(item_selector=Selector.parse(selector))
        summary = run_ingest(IngestConfig(parser=parser, urls=list(urls)), write=lambda _: None)
    except FATAL_ERRORS as e:
        raise _fail(e) from e

    for s in summary.sources:
        typer.echo(f"{s.source_identifier}: {s.records_emitted} records, {s.lines_read} lines")
    typer.secho("OK", fg=typer.colors.GREEN)


def main() -> None:
    # Entry point for console script.
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    app()


if __name__ == "__main__":
    main()
