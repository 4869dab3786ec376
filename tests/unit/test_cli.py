"""Unit tests for the build and query command-line entry points."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from docs_search import cli
from docs_search.search.indexer import write_artifact
from docs_search.search.models import SearchArtifact


@pytest.fixture(autouse=True)
def _skip_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    root = tmp_path / "content" / "docs"
    (root / "concepts").mkdir(parents=True)
    (root / "index.md").write_text("---\ntitle: Home\n---\nWelcome", encoding="utf-8")
    (root / "concepts" / "scheduler.md").write_text(
        "---\ntitle: Scheduler\ndescription: Ordering\n---\n## Loop\nThe scheduler runs nodes.",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def artifact_path(tmp_path: Path, sample_documents) -> Path:
    path = tmp_path / "public" / "search-index.json"
    artifact = SearchArtifact(
        version=2,
        generated="2024-05-01T12:00:00.000Z",
        total_docs=len(sample_documents),
        docs=sample_documents,
    )
    write_artifact(artifact, path)
    return path


def test_build_writes_artifact_and_reports(content_root: Path, tmp_path: Path, capsys) -> None:
    output = tmp_path / "out" / "search-index.json"

    exit_code = cli.main(["--content-dir", str(content_root), "--output", str(output)])

    assert exit_code == 0
    stdout = capsys.readouterr().out
    assert "Building search index..." in stdout
    assert "Search index built successfully!" in stdout
    assert "  - Total documents: 2" in stdout
    assert f"  - Output: {output}" in stdout
    assert " KB" in stdout
    payload = orjson.loads(output.read_bytes())
    assert payload["totalDocs"] == 2
    assert [doc["slug"] for doc in payload["docs"]] == ["/concepts/scheduler", "/"]


def test_build_uses_settings_defaults(content_root: Path, tmp_path: Path) -> None:
    # content/docs and public/search-index.json are resolved against the working directory
    assert cli.main([]) == 0
    assert (tmp_path / "public" / "search-index.json").is_file()


def test_build_fails_when_content_root_missing(tmp_path: Path, capsys) -> None:
    exit_code = cli.main(["--content-dir", str(tmp_path / "nope")])

    assert exit_code == 1
    assert "Error reading docs:" in capsys.readouterr().err


def test_build_reports_skipped_files_as_warnings(content_root: Path, capsys) -> None:
    (content_root / "broken.md").write_bytes(b"\xff\xfe")

    assert cli.main(["--content-dir", str(content_root)]) == 0

    stdout = capsys.readouterr().out
    assert "  - Total documents: 2" in stdout
    assert "warning: Unable to read" in stdout


def test_strict_build_aborts_on_unreadable_file(content_root: Path, capsys) -> None:
    (content_root / "broken.md").write_bytes(b"\xff\xfe")

    assert cli.main(["--content-dir", str(content_root), "--strict"]) == 1
    assert "Build aborted:" in capsys.readouterr().err


def test_query_prints_ranked_results(artifact_path: Path, capsys) -> None:
    exit_code = cli.query_main(["sched", "--artifact", str(artifact_path)])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == " 1. [16] <mark>Sched</mark>uler  /docs/0  (concepts)"
    assert any(line.startswith(" 2. [ 1] Python bindings  /docs/2") for line in lines)


def test_query_json_output(artifact_path: Path, capsys) -> None:
    assert cli.query_main(["nodes", "--artifact", str(artifact_path), "--json"]) == 0

    payload = orjson.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload] == [1]
    assert payload[0]["highlights"]["title"] == "<mark>Nodes</mark>"


def test_query_limit(artifact_path: Path, capsys) -> None:
    assert cli.query_main(["sched", "--artifact", str(artifact_path), "--limit", "1", "--json"]) == 0

    assert len(orjson.loads(capsys.readouterr().out)) == 1


@pytest.mark.parametrize("limit", ["0", "-1"])
def test_query_rejects_non_positive_limit(artifact_path: Path, limit: str, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.query_main(["sched", "--artifact", str(artifact_path), "--limit", limit])

    assert excinfo.value.code == 2
    assert "must be at least 1" in capsys.readouterr().err


def test_query_without_matches(artifact_path: Path, capsys) -> None:
    assert cli.query_main(["zzz", "--artifact", str(artifact_path)]) == 0
    assert capsys.readouterr().out.strip() == 'No results found for "zzz"'


def test_query_reports_unavailable_artifact(tmp_path: Path, capsys) -> None:
    exit_code = cli.query_main(["sched", "--artifact", str(tmp_path / "missing.json")])

    assert exit_code == 1
    assert "Search unavailable:" in capsys.readouterr().err


def test_query_resolves_artifact_from_settings(artifact_path: Path, capsys) -> None:
    # DOCS_SEARCH_PUBLIC_DIR=public relative to the test's working directory
    assert cli.query_main(["python"]) == 0
    assert "/docs/2" in capsys.readouterr().out


def test_build_writes_metrics_textfile(content_root: Path, tmp_path: Path, capsys) -> None:
    metrics_file = tmp_path / "metrics" / "search_index.prom"

    assert cli.main(["--content-dir", str(content_root), "--metrics-file", str(metrics_file)]) == 0

    assert f"  - Metrics: {metrics_file}" in capsys.readouterr().out
    assert 'index_document_count{stage="built"} 2.0' in metrics_file.read_text(encoding="utf-8")


def test_trace_flag_installs_console_exporter(content_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    installed: list[object] = []
    monkeypatch.setattr(cli, "init_tracing", lambda **kwargs: installed.append(kwargs["exporter"]))

    assert cli.main(["--content-dir", str(content_root), "--trace"]) == 0

    assert len(installed) == 1
    assert type(installed[0]).__name__ == "ConsoleSpanExporter"
