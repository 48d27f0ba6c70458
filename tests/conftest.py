"""Shared fixtures: an in-memory stand-in for the google-genai async surface."""

from __future__ import annotations

from typing import Any, Type

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from filesearch.client import FileSearchClient
from filesearch.config import Settings

CREATE_TIME = "2025-11-10T09:30:00Z"


def _error(code: int, status: str, message: str) -> genai_errors.ClientError:
    return genai_errors.ClientError(code, {"error": {"code": code, "message": message, "status": status}})


def _config(config: Any) -> dict[str, Any]:
    if config is None:
        return {}
    if isinstance(config, dict):
        return dict(config)
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


class FakePager:
    """Mirrors the SDK pager: the current page plus the config for the next one."""

    def __init__(self, items: list[Any], config: dict[str, Any]) -> None:
        self.page = items
        self.config = config


class FakeDocuments:
    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self._api = api

    async def list(self, *, parent: str, config: Any = None) -> FakePager:
        self._api.record("documents.list", parent=parent, config=config)
        self._api.require_store(parent)
        items = list(self._api.documents[parent].values())
        return self._api.paginate(items, types.Document, _config(config))

    async def get(self, *, name: str, config: Any = None) -> types.Document:
        self._api.record("documents.get", name=name)
        return types.Document.model_validate(self._api.find_document(name))

    async def delete(self, *, name: str, config: Any = None) -> None:
        self._api.record("documents.delete", name=name, config=config)
        self._api.find_document(name)
        del self._api.documents[name.split("/documents/", 1)[0]][name]


class FakeStores:
    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self._api = api
        self.documents = FakeDocuments(api)

    async def create(self, *, config: Any = None) -> types.FileSearchStore:
        self._api.record("file_search_stores.create", config=config)
        name = f"fileSearchStores/{self._api.next_id('store')}"
        self._api.stores[name] = {
            "name": name,
            "displayName": _config(config).get("display_name"),
            "createTime": CREATE_TIME,
            "updateTime": CREATE_TIME,
        }
        self._api.documents[name] = {}
        return types.FileSearchStore.model_validate(self._api.stores[name])

    async def list(self, *, config: Any = None) -> FakePager:
        self._api.record("file_search_stores.list", config=config)
        return self._api.paginate(list(self._api.stores.values()), types.FileSearchStore, _config(config))

    async def get(self, *, name: str, config: Any = None) -> types.FileSearchStore:
        self._api.record("file_search_stores.get", name=name)
        return types.FileSearchStore.model_validate(self._api.require_store(name))

    async def delete(self, *, name: str, config: Any = None) -> None:
        self._api.record("file_search_stores.delete", name=name, config=config)
        self._api.require_store(name)
        if self._api.documents[name] and not _config(config).get("force"):
            raise _error(400, "FAILED_PRECONDITION", "Store contains documents; set force to delete")
        del self._api.stores[name]
        del self._api.documents[name]

    async def upload_to_file_search_store(
        self,
        *,
        file_search_store_name: str,
        file: Any,
        config: Any = None,
    ) -> types.UploadToFileSearchStoreOperation:
        self._api.record("file_search_stores.upload_to_file_search_store", store=file_search_store_name)
        self._api.require_store(file_search_store_name)
        body = _config(config)
        media = file.read()
        self._api.uploads.append((body, media))
        document_name = None
        if not self._api.operation_error:
            document_name = self._api.create_document(file_search_store_name, body, body.get("mimeType"), len(media))
        return self._api.start_operation(
            file_search_store_name,
            "upload/operations",
            document_name,
            types.UploadToFileSearchStoreOperation,
        )

    async def import_file(
        self,
        *,
        file_search_store_name: str,
        file_name: str,
        config: Any = None,
    ) -> types.ImportFileOperation:
        self._api.record("file_search_stores.import_file", store=file_search_store_name)
        self._api.require_store(file_search_store_name)
        body = {"fileName": file_name, **_config(config)}
        self._api.imports.append(body)
        document_name = None
        if not self._api.operation_error:
            document_name = self._api.create_document(file_search_store_name, body, "application/pdf", 0)
        return self._api.start_operation(file_search_store_name, "operations", document_name, types.ImportFileOperation)


class FakeOperations:
    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self._api = api

    async def get(self, operation: Any, *, config: Any = None) -> Any:
        self._api.record("operations.get", name=operation.name)
        state = self._api.operations.get(operation.name)
        if state is None:
            raise _error(404, "NOT_FOUND", f"Operation {operation.name} not found")
        state["remaining"] -= 1
        return type(operation).model_validate(self._api.operation_payload(operation.name))


class FakeModels:
    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self._api = api

    async def generate_content(
        self,
        *,
        model: str,
        contents: Any,
        config: types.GenerateContentConfig | None = None,
    ) -> types.GenerateContentResponse:
        self._api.record("models.generate_content", model=model)
        self._api.generate_requests.append((model, contents, config))
        return types.GenerateContentResponse.model_validate(self._api.generate_response)


class FakeAsyncClient:
    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self.file_search_stores = FakeStores(api)
        self.operations = FakeOperations(api)
        self.models = FakeModels(api)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class FakeGenaiClient:
    """Exposes ``.aio`` the way ``genai.Client`` does."""

    def __init__(self, api: "FakeFileSearchAPI") -> None:
        self.aio = FakeAsyncClient(api)


class FakeFileSearchAPI:
    """Minimal stateful fake of stores, documents, operations and generation."""

    def __init__(self) -> None:
        self.stores: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.operations: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.uploads: list[tuple[dict[str, Any], bytes]] = []
        self.imports: list[dict[str, Any]] = []
        self.pending_polls = 0
        self.operation_error: dict[str, Any] | None = None
        self.generate_response: dict[str, Any] = {"candidates": []}
        self.generate_requests: list[tuple[str, Any, types.GenerateContentConfig | None]] = []
        # Call name -> exception raised instead of serving that call once.
        self.failures: dict[str, BaseException] = {}
        self._counter = 0

    def genai_client(self) -> FakeGenaiClient:
        return FakeGenaiClient(self)

    # Helpers

    def record(self, call: str, **details: Any) -> None:
        self.calls.append((call, details))
        failure = self.failures.pop(call, None)
        if failure is not None:
            raise failure

    def call_names(self) -> list[str]:
        return [call for call, _ in self.calls]

    def next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def require_store(self, name: str) -> dict[str, Any]:
        if name not in self.stores:
            raise _error(404, "NOT_FOUND", f"Store {name} not found")
        return self.stores[name]

    def find_document(self, name: str) -> dict[str, Any]:
        document = self.documents.get(name.split("/documents/", 1)[0], {}).get(name)
        if document is None:
            raise _error(404, "NOT_FOUND", f"Document {name} not found")
        return document

    def paginate(self, items: list[dict[str, Any]], model: Type[Any], config: dict[str, Any]) -> FakePager:
        page_size = int(config.get("page_size") or 100)
        offset = int(config.get("page_token") or 0)
        next_config: dict[str, Any] = {}
        if offset + page_size < len(items):
            next_config["page_token"] = str(offset + page_size)
        page = [model.model_validate(item) for item in items[offset : offset + page_size]]
        return FakePager(page, next_config)

    def create_document(self, store: str, config: dict[str, Any], mime_type: str | None, size: int) -> str:
        name = f"{store}/documents/{self.next_id('doc')}"
        self.documents[store][name] = {
            "name": name,
            "displayName": config.get("displayName"),
            "state": "STATE_ACTIVE",
            "createTime": CREATE_TIME,
            "sizeBytes": size,
            "mimeType": mime_type,
            "customMetadata": config.get("customMetadata", []),
        }
        return name

    def start_operation(self, store: str, kind: str, document_name: str | None, model: Type[Any]) -> Any:
        name = f"{store}/{kind}/{self.next_id('op')}"
        self.operations[name] = {
            "remaining": self.pending_polls,
            "error": self.operation_error,
            "response": {"documentName": document_name} if document_name else None,
        }
        return model.model_validate(self.operation_payload(name))

    def operation_payload(self, name: str) -> dict[str, Any]:
        state = self.operations[name]
        payload: dict[str, Any] = {"name": name}
        if state["remaining"] <= 0:
            payload["done"] = True
            if state["error"]:
                payload["error"] = state["error"]
            else:
                payload["response"] = state["response"]
        return payload


@pytest.fixture
def fake_api() -> FakeFileSearchAPI:
    return FakeFileSearchAPI()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(environment="test", api_key="test-key", poll_interval_seconds=0.0, poll_timeout_seconds=5.0)


@pytest.fixture
def client(fake_api: FakeFileSearchAPI, test_settings: Settings) -> FileSearchClient:
    return FileSearchClient(settings=test_settings, genai_client=fake_api.genai_client())
