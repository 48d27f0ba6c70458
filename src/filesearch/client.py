"""Single entry point composing stores, documents, operations and queries."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from google import genai

from filesearch.config import Settings, get_settings
from filesearch.documents.service import DocumentManager
from filesearch.errors import ConfigurationError
from filesearch.models import ChunkingConfig, Document, MetadataEntry, Page, QueryResult, Store
from filesearch.operations.poller import OperationPoller, PollOptions, operation_fetcher
from filesearch.remote.transport import RemoteTransport
from filesearch.services.generation import GenerationParameters
from filesearch.services.query import QueryEngine
from filesearch.stores.service import StoreManager


class FileSearchClient:
    """Async client for the hosted File Search API.

    The API key comes from ``api_key`` or, failing that, from the
    ``FILESEARCH_API_KEY``, ``GEMINI_API_KEY`` or ``GOOGLE_API_KEY``
    environment variables. A missing key raises ``ConfigurationError`` here
    rather than on the first request.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str | None = None,
        settings: Settings | None = None,
        genai_client: genai.Client | None = None,
        poll_options: PollOptions | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        key = api_key or self._settings.api_key
        if not key:
            raise ConfigurationError(
                "API key is required. Set GEMINI_API_KEY environment variable or pass api_key.",
            )
        self.default_model = model or self._settings.default_model
        self._transport = RemoteTransport(
            key,
            client=genai_client,
            base_url=self._settings.api_base_url,
            api_version=self._settings.api_version,
            timeout=self._settings.request_timeout_seconds,
        )
        self._poller = OperationPoller(
            operation_fetcher(self._transport),
            default_options=poll_options
            or PollOptions(
                interval_seconds=self._settings.poll_interval_seconds,
                timeout_seconds=self._settings.poll_timeout_seconds,
            ),
        )
        self.stores = StoreManager(self._transport)
        self.documents = DocumentManager(self._transport, self._poller)
        self.engine = QueryEngine(self._transport, self.default_model)

    async def __aenter__(self) -> "FileSearchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    # Stores

    async def create_store(self, display_name: str) -> Store:
        return await self.stores.create(display_name)

    async def list_stores(self, page_size: int | None = None, page_token: str | None = None) -> Page[Store]:
        return await self.stores.list(page_size=page_size, page_token=page_token)

    async def list_all_stores(self) -> List[Store]:
        return await self.stores.list_all()

    async def get_store(self, name: str) -> Store:
        return await self.stores.get(name)

    async def delete_store(self, name: str, force: bool = False) -> None:
        await self.stores.delete(name, force=force)

    # Documents

    async def upload_document(
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
        return await self.documents.upload(
            store,
            content,
            file_name=file_name,
            display_name=display_name,
            mime_type=mime_type,
            chunking_config=chunking_config,
            metadata=metadata,
            poll_options=poll_options,
        )

    async def import_document(
        self,
        store: str,
        file_name: str,
        *,
        chunking_config: ChunkingConfig | None = None,
        metadata: Sequence[MetadataEntry] | None = None,
        poll_options: PollOptions | None = None,
    ) -> Document:
        return await self.documents.import_file(
            store,
            file_name,
            chunking_config=chunking_config,
            metadata=metadata,
            poll_options=poll_options,
        )

    async def list_documents(
        self,
        store: str,
        page_size: int | None = None,
        page_token: str | None = None,
    ) -> Page[Document]:
        return await self.documents.list(store, page_size=page_size, page_token=page_token)

    async def list_all_documents(self, store: str) -> List[Document]:
        return await self.documents.list_all(store)

    async def get_document(self, name: str) -> Document:
        return await self.documents.get(name)

    async def delete_document(self, name: str, force: bool = False) -> None:
        await self.documents.delete(name, force=force)

    # Queries

    async def query(
        self,
        store_names: Sequence[str],
        query_text: str,
        *,
        model: str | None = None,
        metadata_filter: str | None = None,
        system_instruction: str | None = None,
        generation: GenerationParameters | None = None,
        retrieval_top_k: int | None = None,
    ) -> QueryResult:
        return await self.engine.query(
            store_names,
            query_text,
            model=model,
            metadata_filter=metadata_filter,
            system_instruction=system_instruction,
            generation=generation,
            retrieval_top_k=retrieval_top_k,
        )
