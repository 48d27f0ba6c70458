"""Document ingestion and lifecycle inside a store."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Sequence

from filesearch.errors import InvalidArgument, RemoteError
from filesearch.metrics.observability import get_logger
from filesearch.models import ChunkingConfig, Document, MetadataEntry, Operation, Page
from filesearch.operations.poller import OperationPoller, PollOptions
from filesearch.remote.transport import RemoteTransport
from filesearch.stores.service import normalize_store_name

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(file_name: str | None) -> str:
    """Infer a content type from a file name, falling back to generic binary."""

    if not file_name:
        return DEFAULT_MIME_TYPE
    mime, _ = mimetypes.guess_type(file_name)
    return mime or DEFAULT_MIME_TYPE


def build_ingestion_config(
    *,
    display_name: str | None = None,
    chunking_config: ChunkingConfig | None = None,
    metadata: Sequence[MetadataEntry] | None = None,
) -> Dict[str, Any]:
    """Shape the optional ingestion fields shared by upload and import."""

    config: Dict[str, Any] = {}
    if display_name:
        config["displayName"] = display_name
    if chunking_config is not None:
        config["chunkingConfig"] = chunking_config.to_api()
    if metadata:
        config["customMetadata"] = [entry.to_api() for entry in metadata]
    return config


class DocumentManager:
    """Upload, import, list, get and delete documents."""

    _logger = get_logger("documents")

    def __init__(self, transport: RemoteTransport, poller: OperationPoller) -> None:
        self._transport = transport
        self._poller = poller

    async def upload(
        self,
        store: str,
        content: bytes | str | Path,
        *,
        file_name: str | None = None,
        display_name: str | None = None,
        mime_type: str | None = None,
        chunking_config: ChunkingConfig | None = None,
        metadata: Sequence[MetadataEntry] | None = None,
        poll_options: PollOptions | None = None,
    ) -> Document:
        store_name = normalize_store_name(store)
        if isinstance(content, (str, Path)):
            path = Path(content)
            data = path.read_bytes()
            file_name = file_name or path.name
        else:
            data = bytes(content)
        effective_mime = mime_type or guess_mime_type(file_name)
        config = build_ingestion_config(
            display_name=display_name or file_name,
            chunking_config=chunking_config,
            metadata=metadata,
        )
        config["mimeType"] = effective_mime
        operation = await self._transport.upload_document(store_name, data, config)
        self._logger.info(
            "document.upload.submitted",
            store=store_name,
            operation=operation.name,
            size_bytes=len(data),
            mime_type=effective_mime,
        )
        finished = await self._poller.wait(operation, poll_options)
        return await self._resolve_document(finished)

    async def import_file(
        self,
        store: str,
        file_name: str,
        *,
        chunking_config: ChunkingConfig | None = None,
        metadata: Sequence[MetadataEntry] | None = None,
        poll_options: PollOptions | None = None,
    ) -> Document:
        if not (file_name or "").strip():
            raise InvalidArgument("A Files API resource name is required")
        store_name = normalize_store_name(store)
        config = build_ingestion_config(chunking_config=chunking_config, metadata=metadata)
        operation = await self._transport.import_file(store_name, file_name, config)
        self._logger.info("document.import.submitted", store=store_name, operation=operation.name, file=file_name)
        finished = await self._poller.wait(operation, poll_options)
        return await self._resolve_document(finished)

    async def list(
        self,
        store: str,
        page_size: int | None = None,
        page_token: str | None = None,
    ) -> Page[Document]:
        items, next_token = await self._transport.list_documents(
            normalize_store_name(store),
            page_size=page_size,
            page_token=page_token,
        )
        return Page(items=tuple(Document.from_api(item) for item in items), next_page_token=next_token)

    async def list_all(self, store: str, page_size: int | None = None) -> List[Document]:
        documents: List[Document] = []
        token: str | None = None
        while True:
            page = await self.list(store, page_size=page_size, page_token=token)
            documents.extend(page.items)
            token = page.next_page_token
            if not token:
                return documents

    async def get(self, name: str) -> Document:
        payload = await self._transport.get_document(name)
        return Document.from_api(payload)

    async def delete(self, name: str, force: bool = False) -> None:
        await self._transport.delete_document(name, force=force)
        self._logger.info("document.deleted", document=name, force=force)

    async def _resolve_document(self, operation: Operation) -> Document:
        response = operation.response or {}
        document_name = response.get("documentName")
        if document_name:
            return await self.get(document_name)
        raise RemoteError(f'Operation "{operation.name}" finished without a document reference')
