from __future__ import annotations

import json

from typer.testing import CliRunner

from ndjson_ingest.cli import app

runner = CliRunner()


def _write(tmp_path, name: str, text: str):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_parse_writes_selected_records(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    p = _write(tmp_path, "feed.ndjson", '{"id":1,"data":{"title":"A"}}\n{"id":2,"data":{"title":"B"}}\n')

    result = runner.invoke(app, ["parse", str(p), "--selector", "/data"])

    assert result.exit_code == 0
    assert [json.loads(x) for x in result.stdout.splitlines()] == [{"title": "A"}, {"title": "B"}]


def test_parse_strict_failure_exits_2(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    p = _write(tmp_path, "feed.ndjson", '{"id":1}\nnot-json\n')

    result = runner.invoke(app, ["parse", str(p), "--buffered"])

    assert result.exit_code == 2
    assert '{"id": 1}' not in result.output


def test_parse_permissive_to_file_with_warnings_log(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    p = _write(tmp_path, "feed.ndjson", '{"id":1}\n\nnot-json\n{"id":2}')
    out = tmp_path / "out.ndjson"
    log = tmp_path / "warnings.ndjson"

    result = runner.invoke(
        app,
        ["parse", f"file://{p}", "--permissive", "-o", str(out), "--warnings-log", str(log)],
    )

    assert result.exit_code == 0
    assert [json.loads(x) for x in out.read_text(encoding="utf-8").splitlines()] == [{"id": 1}, {"id": 2}]
    assert json.loads(log.read_text(encoding="utf-8"))["line_number"] == 3


def test_parse_uses_discovered_config(tmp_path, monkeypatch) -> None:
    _write(tmp_path, "feed.ndjson", '{"data":{"n":1}}\n{"other":1}\n')
    _write(tmp_path, "ndjson-ingest.yaml", "item_selector: /data\nurls: [feed.ndjson]\n")
    nested = tmp_path / "sub"
    nested.mkdir()
    monkeypatch.chdir(nested)

    result = runner.invoke(app, ["parse"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == ['{"n": 1}']


def test_parse_without_sources_exits_2(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["parse"])

    assert result.exit_code == 2


def test_parse_rejects_bad_selector(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    p = _write(tmp_path, "feed.ndjson", '{"id":1}\n')

    result = runner.invoke(app, ["parse", str(p), "-s", "/a//b"])

    assert result.exit_code == 2


def test_check_reports_counts(tmp_path) -> None:
    p = _write(tmp_path, "feed.ndjson", '{"id":1}\n\n{"id":2}\n')

    result = runner.invoke(app, ["check", str(p)])

    assert result.exit_code == 0
    assert f"{p}: 2 records, 3 lines" in result.stdout


def test_check_rejects_http(tmp_path) -> None:
    result = runner.invoke(app, ["check", "http://example.com/feed.ndjson"])

    assert result.exit_code == 2


def test_parse_failure_leaves_existing_output_untouched(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    p = _write(tmp_path, "feed.ndjson", '{"id":1}\nnot-json\n')
    out = _write(tmp_path, "out.ndjson", '{"previous": true}\n')

    result = runner.invoke(app, ["parse", str(p), "-o", str(out)])

    assert result.exit_code == 2
    assert out.read_text(encoding="utf-8") == '{"previous": true}\n'
    assert not (tmp_path / "out.ndjson.part").exists()


def test_parse_missing_source_does_not_create_output(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out.ndjson"

    result = runner.invoke(app, ["parse", str(tmp_path / "missing.ndjson"), "-o", str(out)])

    assert result.exit_code == 2
    assert not out.exists()
