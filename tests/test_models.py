"""Tests for payload mapping of the domain models."""

from __future__ import annotations

import pytest

from filesearch.errors import InvalidArgument
from filesearch.models import ChunkingConfig, Document, DocumentState, MetadataEntry, Operation, Store
from filesearch.stores.service import normalize_store_name


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("author=Jane", MetadataEntry(key="author", string_value="Jane")),
        ("year=2024", MetadataEntry(key="year", numeric_value=2024.0)),
        ("ratio=0.5", MetadataEntry(key="ratio", numeric_value=0.5)),
        ("version=1.2.3", MetadataEntry(key="version", string_value="1.2.3")),
        ("note=", MetadataEntry(key="note", string_value="")),
        ("eq=a=b", MetadataEntry(key="eq", string_value="a=b")),
        ("big=inf", MetadataEntry(key="big", string_value="inf")),
    ],
)
def test_metadata_parse(text: str, expected: MetadataEntry) -> None:
    assert MetadataEntry.parse(text) == expected


def test_metadata_parse_requires_separator() -> None:
    with pytest.raises(InvalidArgument, match="Expected key=value"):
        MetadataEntry.parse("author")


def test_metadata_without_value_serializes_bare_key() -> None:
    assert MetadataEntry(key="flag").to_api() == {"key": "flag"}


def test_chunking_config_omits_unset_fields() -> None:
    assert ChunkingConfig(max_tokens_per_chunk=512).to_api() == {"whiteSpaceConfig": {"maxTokensPerChunk": 512}}


def test_store_from_api_parses_string_counters() -> None:
    store = Store.from_api(
        {
            "name": "fileSearchStores/abc",
            "displayName": "Handbook",
            "activeDocumentsCount": "3",
            "sizeBytes": "2048",
        },
    )

    assert store.display_name == "Handbook"
    assert store.active_documents_count == 3
    assert store.size_bytes == 2048
    assert store.pending_documents_count is None
    assert "documentCount" not in store.to_dict()


def test_document_from_api_maps_state_and_metadata() -> None:
    document = Document.from_api(
        {
            "name": "fileSearchStores/abc/documents/d1",
            "state": "STATE_PENDING",
            "customMetadata": [{"key": "year", "numericValue": 2024}, {"key": "team", "stringValue": "hr"}],
        },
    )

    assert document.state is DocumentState.PENDING
    assert document.state.label == "pending"
    assert [entry.value for entry in document.custom_metadata] == [2024.0, "hr"]
    assert document.to_dict()["customMetadata"] == [
        {"key": "year", "numericValue": 2024.0},
        {"key": "team", "stringValue": "hr"},
    ]


def test_unknown_document_state_maps_to_unspecified() -> None:
    assert DocumentState.parse("STATE_ARCHIVED") is DocumentState.UNSPECIFIED
    assert DocumentState.parse(None) is DocumentState.UNSPECIFIED


def test_operation_without_name_is_unknown() -> None:
    operation = Operation.from_api({"done": True})

    assert operation.name == "unknown"
    assert operation.done is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [("abc", "fileSearchStores/abc"), ("fileSearchStores/abc", "fileSearchStores/abc"), (" abc/ ", "fileSearchStores/abc")],
)
def test_normalize_store_name(value: str, expected: str) -> None:
    assert normalize_store_name(value) == expected


def test_normalize_store_name_rejects_blank() -> None:
    with pytest.raises(InvalidArgument):
        normalize_store_name("  ")
