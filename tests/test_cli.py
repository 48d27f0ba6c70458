"""Tests for the gfss command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from filesearch.cli.main import build_parser, format_table, main
from filesearch.client import FileSearchClient
from filesearch.config import Settings


@pytest.fixture
def run(fake_api, test_settings: Settings, capsys):
    def factory() -> FileSearchClient:
        return FileSearchClient(settings=test_settings, genai_client=fake_api.genai_client())

    def invoke(*argv: str) -> tuple[int, str, str]:
        code = main(list(argv), client_factory=factory)
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return invoke


def _store_name(output: str) -> str:
    return next(line.split(": ", 1)[1] for line in output.splitlines() if line.startswith("Name: "))


def test_store_create_then_list_as_table(run) -> None:
    code, out, _ = run("store", "create", "--name", "Handbook")
    assert code == 0
    assert "Created store: Handbook" in out
    name = _store_name(out)

    code, out, _ = run("store", "list")
    assert code == 0
    header, separator, row = out.splitlines()[:3]
    assert header.split() == ["NAME", "DISPLAY", "NAME", "CREATE", "TIME"]
    assert set(separator.replace(" ", "")) == {"-"}
    assert row.startswith(name)


def test_store_list_empty(run) -> None:
    code, out, _ = run("store", "list")

    assert code == 0
    assert out.strip() == "No stores found."


def test_doc_upload_with_metadata_and_list_json(run, fake_api, tmp_path: Path) -> None:
    _, out, _ = run("store", "create", "--name", "Docs")
    store = _store_name(out)
    source = tmp_path / "policy.txt"
    source.write_text("Leave is 25 days.", encoding="utf-8")

    code, out, _ = run(
        "doc", "upload", store, str(source),
        "--meta", "author=Jane", "--meta", "year=2024",
        "--max-tokens", "200", "--overlap", "20",
    )
    assert code == 0
    assert out.startswith("Uploaded document: ")

    config, _ = fake_api.uploads[0]
    assert config["displayName"] == "policy.txt"
    assert config["customMetadata"] == [
        {"key": "author", "stringValue": "Jane"},
        {"key": "year", "numericValue": 2024.0},
    ]

    code, out, _ = run("doc", "list", store, "--json")
    assert code == 0
    documents = json.loads(out)
    assert documents[0]["state"] == "STATE_ACTIVE"


def test_doc_list_table_shows_state_label(run, tmp_path: Path) -> None:
    _, out, _ = run("store", "create", "--name", "Docs")
    store = _store_name(out)
    source = tmp_path / "a.txt"
    source.write_text("x", encoding="utf-8")
    run("doc", "upload", store, str(source))

    _, out, _ = run("doc", "list", store)

    assert "STATE" in out.splitlines()[0]
    assert " active " in out.splitlines()[2]


def test_bad_metadata_exits_with_error(run, tmp_path: Path) -> None:
    _, out, _ = run("store", "create", "--name", "Docs")
    source = tmp_path / "a.txt"
    source.write_text("x", encoding="utf-8")

    code, _, err = run("doc", "upload", _store_name(out), str(source), "--meta", "novalue")

    assert code == 1
    assert err.startswith("Error: Invalid metadata format")


def test_missing_file_exits_with_error(run, tmp_path: Path) -> None:
    code, _, err = run("doc", "upload", "abc", str(tmp_path / "missing.pdf"))

    assert code == 1
    assert err.startswith("Error:")


def test_store_get_missing_exits_with_error(run) -> None:
    code, _, err = run("store", "get", "missing")

    assert code == 1
    assert "not found" in err


def test_undecodable_response_exits_with_error(run, fake_api) -> None:
    fake_api.failures["file_search_stores.list"] = json.JSONDecodeError("Expecting value", "<html>", 0)

    code, out, err = run("store", "list")

    assert code == 1
    assert out == ""
    assert err.startswith("Error: file_search_stores.list failed: Expecting value")


def test_failed_import_exits_with_error(run, fake_api) -> None:
    fake_api.operation_error = {"code": 13, "message": "ingestion crashed"}
    _, out, _ = run("store", "create", "--name", "Docs")

    code, _, err = run("doc", "import", _store_name(out), "files/abc")

    assert code == 1
    assert "ingestion crashed" in err


def test_import_has_no_display_name_option() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["doc", "import", "abc", "files/x", "--display-name", "Guide"])


def test_query_json_output(run, fake_api) -> None:
    fake_api.generate_response = {
        "candidates": [
            {
                "content": {"parts": [{"text": "Yes."}]},
                "groundingMetadata": {"groundingChunks": [{"retrievedContext": {"title": "Doc"}}]},
            },
        ],
    }

    code, out, _ = run("query", "abc", "def", "-q", "Is it covered?", "--temperature", "0.3", "--json")

    assert code == 0
    assert json.loads(out) == {
        "text": "Yes.",
        "citations": [{"uri": None, "title": "Doc", "snippet": None, "startIndex": None, "endIndex": None}],
    }
    model, contents, config = fake_api.generate_requests[0]
    assert (model, contents) == ("gemini-2.5-flash", "Is it covered?")
    assert config.tools[0].file_search.file_search_store_names == ["fileSearchStores/abc", "fileSearchStores/def"]
    assert (config.temperature, config.top_p, config.max_output_tokens) == (0.3, None, None)


def test_query_show_citations(run, fake_api) -> None:
    fake_api.generate_response = {
        "candidates": [
            {
                "content": {"parts": [{"text": "Yes."}]},
                "groundingMetadata": {
                    "groundingChunks": [{"retrievedContext": {"title": "Doc", "uri": "gs://d", "text": "snip"}}],
                    "groundingSupports": [{"segment": {"endIndex": 4}, "groundingChunkIndices": [0]}],
                },
            },
        ],
    }

    code, out, _ = run("query", "abc", "-q", "Is it covered?", "--show-citations")

    assert code == 0
    assert out.splitlines()[0] == "Yes."
    assert "--- Citations ---" in out
    assert "Title: Doc | URI: gs://d | Snippet: snip | Range: 0-4" in out


def test_query_requires_question() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["query", "abc"])


def test_format_table_pads_columns() -> None:
    table = format_table(["A", "BB"], [["long value", "x"]])

    assert table.splitlines() == ["A           BB", "----------  --", "long value  x "]
