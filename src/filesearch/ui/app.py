"""Gradio dashboard for browsing stores, managing documents and querying."""

from __future__ import annotations

import json
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import gradio as gr
import httpx

from filesearch.api.schemas import DocumentListResponse, QueryResponse, StoreListResponse, StoreModel
from filesearch.errors import InvalidArgument
from filesearch.models import MetadataEntry

DEFAULT_API_URL = os.getenv("FILESEARCH_DASHBOARD_API_URL", "http://localhost:8000")


class APIError(RuntimeError):
    """Raised when communication with the filesearch HTTP API fails."""


def _store_id(name: str) -> str:
    return name.rsplit("/", 1)[-1]


@dataclass
class FileSearchAPIClient:
    """HTTPX-based client for the filesearch FastAPI service."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 330.0  # uploads wait on ingestion server-side
    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    def _check(self, response: httpx.Response, action: str) -> Any:
        if response.status_code >= 400:
            cid = response.headers.get("X-Correlation-ID", "-")
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise APIError(f"{action} failed ({response.status_code}) [cid={cid}]: {message}")
        return response.json()

    def list_stores(self, include_document_counts: bool = True) -> StoreListResponse:
        params = {"include_document_counts": "true"} if include_document_counts else None
        data = self._check(self._client.get("/stores", params=params), "List stores")
        return StoreListResponse.model_validate(data)

    def create_store(self, display_name: str) -> StoreModel:
        data = self._check(self._client.post("/stores", json={"displayName": display_name}), "Create store")
        return StoreModel.model_validate(data)

    def delete_store(self, store_name: str, force: bool = False) -> None:
        params = {"force": "true"} if force else None
        self._check(self._client.delete(f"/stores/{_store_id(store_name)}", params=params), "Delete store")

    def list_documents(self, store_name: str) -> DocumentListResponse:
        data = self._check(self._client.get(f"/stores/{_store_id(store_name)}/documents"), "List documents")
        return DocumentListResponse.model_validate(data)

    def upload_document(
        self,
        store_name: str,
        path: Path,
        *,
        display_name: str | None = None,
        max_tokens_per_chunk: int | None = None,
        max_overlap_tokens: int | None = None,
        metadata: Sequence[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        mime, _ = mimetypes.guess_type(path.name)
        files = {"file": (path.name, path.read_bytes(), mime or "application/octet-stream")}
        form: dict[str, str] = {}
        if display_name:
            form["displayName"] = display_name
        if max_tokens_per_chunk:
            form["maxTokensPerChunk"] = str(max_tokens_per_chunk)
        if max_overlap_tokens:
            form["maxOverlapTokens"] = str(max_overlap_tokens)
        if metadata:
            form["metadata"] = json.dumps(list(metadata))
        response = self._client.post(f"/stores/{_store_id(store_name)}/documents", files=files, data=form or None)
        return self._check(response, "Upload")

    def delete_document(self, document_name: str) -> None:
        store_name, _, document_id = document_name.partition("/documents/")
        response = self._client.delete(f"/stores/{_store_id(store_name)}/documents/{document_id}")
        self._check(response, "Delete document")

    def query(
        self,
        store_names: Sequence[str],
        question: str,
        *,
        model: str | None = None,
        metadata_filter: str | None = None,
    ) -> QueryResponse:
        payload: dict[str, Any] = {"storeNames": list(store_names), "query": question}
        if model:
            payload["model"] = model
        if metadata_filter:
            payload["metadataFilter"] = metadata_filter
        data = self._check(self._client.post("/query", json=payload), "Query")
        return QueryResponse.model_validate(data)

    def close(self) -> None:
        self._client.close()


def format_stores(stores: StoreListResponse) -> str:
    if not stores.stores:
        return "No stores found."
    lines = ["| Name | Display name | Documents | Created |", "| --- | --- | --- | --- |"]
    for store in stores.stores:
        count = "-" if store.document_count is None else str(store.document_count)
        lines.append(f"| `{store.name}` | {store.display_name or ''} | {count} | {store.create_time or ''} |")
    return "\n".join(lines)


def format_documents(documents: DocumentListResponse) -> str:
    if not documents.documents:
        return "No documents found."
    lines = ["| Name | Display name | State | Metadata |", "| --- | --- | --- | --- |"]
    for document in documents.documents:
        metadata = ", ".join(
            f"{entry.key}={entry.string_value if entry.string_value is not None else entry.numeric_value}"
            for entry in document.custom_metadata
        )
        state = document.state.removeprefix("STATE_").lower()
        lines.append(f"| `{document.name}` | {document.display_name or ''} | {state} | {metadata} |")
    return "\n".join(lines)


def format_citations(response: QueryResponse) -> str:
    if not response.citations:
        return "Sources: none"
    lines = []
    for index, citation in enumerate(response.citations, start=1):
        label = citation.title or citation.uri or "untitled"
        span = ""
        if citation.start_index is not None or citation.end_index is not None:
            span = f" (chars {citation.start_index or 0}-{citation.end_index if citation.end_index is not None else '?'})"
        lines.append(f"[{index}] {label}{span}")
        if citation.snippet:
            lines.append(f"    {citation.snippet[:200]}")
    return "Sources:\n" + "\n".join(lines)


def parse_metadata_rows(text: str | None) -> list[dict[str, Any]]:
    """Parse ``key=value`` lines; numeric values become ``numericValue`` entries."""

    entries: list[dict[str, Any]] = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(MetadataEntry.parse(line).to_api())
        except InvalidArgument as exc:
            raise APIError(str(exc)) from exc
    return entries


def create_store_handlers(client: FileSearchAPIClient):
    def refresh() -> tuple[Any, str]:
        try:
            stores = client.list_stores()
        except APIError as exc:
            return gr.update(), f"⚠️ {exc}"
        choices = [store.name for store in stores.stores]
        return gr.update(choices=choices), format_stores(stores)

    def create(display_name: str) -> str:
        if not (display_name or "").strip():
            return "⚠️ Enter a display name."
        try:
            store = client.create_store(display_name.strip())
        except APIError as exc:
            return f"⚠️ {exc}"
        return f"✅ Created `{store.name}`"

    def delete(store_name: str | None, force: bool) -> str:
        if not store_name:
            return "⚠️ Select a store."
        try:
            client.delete_store(store_name, force=force)
        except APIError as exc:
            return f"⚠️ {exc}"
        return f"✅ Deleted `{store_name}`"

    return refresh, create, delete


def create_document_handlers(client: FileSearchAPIClient):
    def refresh(store_name: str | None) -> tuple[Any, str]:
        if not store_name:
            return gr.update(choices=[]), "Select a store."
        try:
            documents = client.list_documents(store_name)
        except APIError as exc:
            return gr.update(), f"⚠️ {exc}"
        return gr.update(choices=[document.name for document in documents.documents]), format_documents(documents)

    def upload(
        store_name: str | None,
        file: object,
        display_name: str | None,
        max_tokens: float | None,
        overlap: float | None,
        metadata_text: str | None,
    ) -> str:
        if not store_name:
            return "⚠️ Select a store."
        path = _file_path(file)
        if path is None:
            return "⚠️ Choose a file to upload."
        try:
            document = client.upload_document(
                store_name,
                path,
                display_name=(display_name or "").strip() or None,
                max_tokens_per_chunk=int(max_tokens) if max_tokens else None,
                max_overlap_tokens=int(overlap) if overlap else None,
                metadata=parse_metadata_rows(metadata_text),
            )
        except APIError as exc:
            return f"⚠️ Upload failed: {exc}"
        return f"✅ Uploaded `{document.get('name')}` ({document.get('state')})"

    def delete(document_name: str | None) -> str:
        if not document_name:
            return "⚠️ Select a document."
        try:
            client.delete_document(document_name)
        except APIError as exc:
            return f"⚠️ {exc}"
        return f"✅ Deleted `{document_name}`"

    return refresh, upload, delete


def create_query_handler(client: FileSearchAPIClient):
    def handle_query(
        question: str,
        store_names: Sequence[str] | None,
        model: str | None,
        metadata_filter: str | None,
    ) -> tuple[str, str]:
        if not (question or "").strip():
            return "⚠️ Enter a question.", ""
        if not store_names:
            return "⚠️ Select at least one store.", ""
        try:
            response = client.query(
                store_names,
                question,
                model=(model or "").strip() or None,
                metadata_filter=(metadata_filter or "").strip() or None,
            )
        except APIError as exc:
            return f"⚠️ {exc}", ""
        return response.text, format_citations(response)

    return handle_query


def _file_path(file: object) -> Path | None:
    if isinstance(file, Path):
        return file
    if isinstance(file, str):
        return Path(file)
    if hasattr(file, "name"):
        return Path(getattr(file, "name"))
    return None


def build_interface(base_url: str | None = None, client: FileSearchAPIClient | None = None) -> gr.Blocks:
    api_client = client or FileSearchAPIClient(base_url=base_url or DEFAULT_API_URL)
    refresh_stores, create_store, delete_store = create_store_handlers(api_client)
    refresh_documents, upload_document, delete_document = create_document_handlers(api_client)
    handle_query = create_query_handler(api_client)

    with gr.Blocks(title="File Search Dashboard") as demo:
        gr.Markdown("## File Search Dashboard")
        with gr.Tab("Stores"):
            with gr.Row():
                with gr.Column(scale=1):
                    new_store_name = gr.Textbox(label="New store display name")
                    create_button = gr.Button("Create Store", variant="primary")
                    store_select = gr.Dropdown(label="Store", choices=[], interactive=True)
                    force_checkbox = gr.Checkbox(label="Force delete (removes documents)", value=False)
                    delete_store_button = gr.Button("Delete Store", variant="stop")
                    refresh_button = gr.Button("Refresh")
                    store_status = gr.Markdown("")
                with gr.Column(scale=2):
                    stores_md = gr.Markdown("(stores will appear here)")
        with gr.Tab("Documents"):
            with gr.Row():
                with gr.Column(scale=1):
                    upload_input = gr.File(label="Document")
                    display_name_box = gr.Textbox(label="Display name (optional)")
                    max_tokens_box = gr.Number(label="Max tokens per chunk", precision=0)
                    overlap_box = gr.Number(label="Max overlap tokens", precision=0)
                    metadata_box = gr.Textbox(label="Metadata (key=value per line)", lines=3)
                    upload_button = gr.Button("Upload", variant="primary")
                    document_select = gr.Dropdown(label="Document", choices=[], interactive=True)
                    delete_document_button = gr.Button("Delete Document", variant="stop")
                    document_status = gr.Markdown("")
                with gr.Column(scale=2):
                    documents_md = gr.Markdown("Select a store.")
        with gr.Tab("Query"):
            query_stores = gr.Dropdown(label="Stores", choices=[], multiselect=True, interactive=True)
            model_box = gr.Textbox(label="Model (optional)")
            filter_box = gr.Textbox(label="Metadata filter (optional)", placeholder='author = "Jane"')
            question_box = gr.Textbox(label="Question", placeholder="Ask a question about your documents...")
            ask_button = gr.Button("Ask", variant="primary")
            answer_md = gr.Markdown("")
            citations_md = gr.Markdown("")

        refresh_button.click(refresh_stores, outputs=[store_select, stores_md])
        refresh_button.click(refresh_stores, outputs=[query_stores, stores_md])
        create_button.click(create_store, inputs=[new_store_name], outputs=store_status)
        delete_store_button.click(delete_store, inputs=[store_select, force_checkbox], outputs=store_status)
        store_select.change(refresh_documents, inputs=[store_select], outputs=[document_select, documents_md])
        upload_button.click(
            upload_document,
            inputs=[store_select, upload_input, display_name_box, max_tokens_box, overlap_box, metadata_box],
            outputs=document_status,
        )
        delete_document_button.click(delete_document, inputs=[document_select], outputs=document_status)
        ask_button.click(
            handle_query,
            inputs=[question_box, query_stores, model_box, filter_box],
            outputs=[answer_md, citations_md],
        )
        gr.Markdown("Tip: set `FILESEARCH_DASHBOARD_API_URL` before launching to point the dashboard at a remote API.")

    return demo


def launch(*, base_url: str | None = None, share: bool = False) -> None:
    """Launch the Gradio dashboard."""

    demo = build_interface(base_url=base_url)
    demo.launch(share=share)


if __name__ == "__main__":
    launch()
