"""Shared domain models mapped to and from the File Search REST payloads."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, Sequence, TypeVar

from filesearch.errors import InvalidArgument

T = TypeVar("T")


class DocumentState(str, Enum):
    """Ingestion state reported by the remote service."""

    UNSPECIFIED = "STATE_UNSPECIFIED"
    PENDING = "STATE_PENDING"
    ACTIVE = "STATE_ACTIVE"
    FAILED = "STATE_FAILED"

    @classmethod
    def parse(cls, value: object) -> "DocumentState":
        try:
            return cls(value)
        except ValueError:
            return cls.UNSPECIFIED

    @property
    def label(self) -> str:
        return self.value.removeprefix("STATE_").lower()


def _int_or_none(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)  # int64 fields arrive as JSON strings


@dataclass(frozen=True)
class ChunkingConfig:
    """Per-ingestion chunking parameters, applied by the remote service."""

    max_tokens_per_chunk: int | None = None
    max_overlap_tokens: int | None = None

    def to_api(self) -> dict[str, Any]:
        white_space: dict[str, Any] = {}
        if self.max_tokens_per_chunk is not None:
            white_space["maxTokensPerChunk"] = self.max_tokens_per_chunk
        if self.max_overlap_tokens is not None:
            white_space["maxOverlapTokens"] = self.max_overlap_tokens
        return {"whiteSpaceConfig": white_space}


@dataclass(frozen=True)
class MetadataEntry:
    """One custom metadata pair; holds a string or a numeric value."""

    key: str
    string_value: str | None = None
    numeric_value: float | None = None

    @classmethod
    def parse(cls, text: str) -> "MetadataEntry":
        """Build an entry from ``key=value``; numeric-looking values become numbers."""

        key, sep, raw = text.partition("=")
        if not sep:
            raise InvalidArgument(f'Invalid metadata format: "{text}". Expected key=value.')
        if raw.strip():
            try:
                number = float(raw)
            except ValueError:
                pass
            else:
                if math.isfinite(number):
                    return cls(key=key, numeric_value=number)
        return cls(key=key, string_value=raw)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "MetadataEntry":
        numeric = payload.get("numericValue")
        return cls(
            key=str(payload.get("key", "")),
            string_value=payload.get("stringValue"),
            numeric_value=float(numeric) if numeric is not None else None,
        )

    def to_api(self) -> dict[str, Any]:
        # An entry with neither value set is sent as a bare key.
        payload: dict[str, Any] = {"key": self.key}
        if self.string_value is not None:
            payload["stringValue"] = self.string_value
        if self.numeric_value is not None:
            payload["numericValue"] = self.numeric_value
        return payload

    @property
    def value(self) -> str | float | None:
        return self.string_value if self.string_value is not None else self.numeric_value


@dataclass(frozen=True)
class Store:
    """A named container of ingested documents."""

    name: str
    display_name: str | None = None
    create_time: str | None = None
    update_time: str | None = None
    active_documents_count: int | None = None
    pending_documents_count: int | None = None
    failed_documents_count: int | None = None
    size_bytes: int | None = None
    document_count: int | None = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Store":
        return cls(
            name=str(payload.get("name", "")),
            display_name=payload.get("displayName"),
            create_time=payload.get("createTime"),
            update_time=payload.get("updateTime"),
            active_documents_count=_int_or_none(payload.get("activeDocumentsCount")),
            pending_documents_count=_int_or_none(payload.get("pendingDocumentsCount")),
            failed_documents_count=_int_or_none(payload.get("failedDocumentsCount")),
            size_bytes=_int_or_none(payload.get("sizeBytes")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
            "createTime": self.create_time,
            "updateTime": self.update_time,
            "activeDocumentsCount": self.active_documents_count,
            "pendingDocumentsCount": self.pending_documents_count,
            "failedDocumentsCount": self.failed_documents_count,
            "sizeBytes": self.size_bytes,
        }
        if self.document_count is not None:
            data["documentCount"] = self.document_count
        return data


@dataclass(frozen=True)
class Document:
    """One ingested unit of content inside a store."""

    name: str
    display_name: str | None = None
    state: DocumentState = DocumentState.UNSPECIFIED
    create_time: str | None = None
    update_time: str | None = None
    size_bytes: int | None = None
    mime_type: str | None = None
    custom_metadata: tuple[MetadataEntry, ...] = ()

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Document":
        return cls(
            name=str(payload.get("name", "")),
            display_name=payload.get("displayName"),
            state=DocumentState.parse(payload.get("state")),
            create_time=payload.get("createTime"),
            update_time=payload.get("updateTime"),
            size_bytes=_int_or_none(payload.get("sizeBytes")),
            mime_type=payload.get("mimeType"),
            custom_metadata=tuple(MetadataEntry.from_api(item) for item in payload.get("customMetadata") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "state": self.state.value,
            "createTime": self.create_time,
            "updateTime": self.update_time,
            "sizeBytes": self.size_bytes,
            "mimeType": self.mime_type,
            "customMetadata": [entry.to_api() for entry in self.custom_metadata],
        }


@dataclass(frozen=True)
class Operation:
    """Handle to an asynchronous remote job.

    ``handle`` keeps the SDK operation object, which is what the SDK expects
    back when the operation is refreshed.
    """

    name: str
    done: bool = False
    error: Mapping[str, Any] | None = None
    response: Mapping[str, Any] | None = None
    metadata: Mapping[str, Any] | None = None
    handle: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any], handle: Any = None) -> "Operation":
        return cls(
            name=str(payload.get("name") or "unknown"),
            done=bool(payload.get("done", False)),
            error=payload.get("error"),
            response=payload.get("response"),
            metadata=payload.get("metadata"),
            handle=handle,
        )


@dataclass(frozen=True)
class Citation:
    """Answer span linked to a retrieved source chunk."""

    uri: str | None = None
    title: str | None = None
    snippet: str | None = None
    start_index: int | None = None
    end_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.uri,
            "title": self.title,
            "snippet": self.snippet,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
        }


@dataclass(frozen=True)
class QueryResult:
    """Grounded answer text plus reconstructed citations."""

    text: str
    citations: tuple[Citation, ...] = ()
    model: str | None = None
    raw_response: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "citations": [citation.to_dict() for citation in self.citations]}


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a cursor-paginated listing."""

    items: Sequence[T]
    next_page_token: str | None = None

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
