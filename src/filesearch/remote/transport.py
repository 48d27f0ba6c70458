"""Async access to the File Search API through the google-genai SDK."""

from __future__ import annotations

import io
from typing import Any, Awaitable, Callable, Mapping, Tuple, TypeVar

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from filesearch.errors import InvalidArgument, NotFound, PreconditionFailed, RemoteError
from filesearch.metrics.observability import ClientMetrics, get_logger
from filesearch.models import Operation

R = TypeVar("R")

_STATUS_ERRORS: Mapping[str, type[RemoteError]] = {
    "NOT_FOUND": NotFound,
    "FAILED_PRECONDITION": PreconditionFailed,
    "INVALID_ARGUMENT": InvalidArgument,
}
_HTTP_ERRORS: Mapping[int, type[RemoteError]] = {
    400: InvalidArgument,
    404: NotFound,
    409: PreconditionFailed,
    412: PreconditionFailed,
}


def error_from_api_error(exc: genai_errors.APIError) -> RemoteError:
    """Translate an SDK ``APIError`` into the matching typed error."""

    details = exc.details if isinstance(exc.details, Mapping) else {}
    payload = details.get("error", details)
    if not isinstance(payload, Mapping):
        payload = {}
    status = exc.status or None
    error_cls = _STATUS_ERRORS.get(status or "") or _HTTP_ERRORS.get(exc.code, RemoteError)
    return error_cls(
        f"{exc.message or exc} ({exc.code})",
        status_code=exc.code,
        status=status,
        payload=payload,
    )


def dump(model: Any) -> dict[str, Any]:
    """Serialise an SDK model to its camelCase REST form, dropping unset fields."""

    if model is None:
        return {}
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _page_config(page_size: int | None, page_token: str | None) -> dict[str, Any] | None:
    config = {"page_size": page_size, "page_token": page_token}
    config = {key: value for key, value in config.items() if value is not None}
    return config or None


def _page(pager: Any) -> Tuple[list[dict[str, Any]], str | None]:
    items = [dump(item) for item in pager.page]
    # The pager keeps the token for the following page in its request config.
    next_token = dict(pager.config or {}).get("page_token")
    return items, next_token or None


class RemoteTransport:
    """Thin async adapter over ``genai.Client`` returning REST-shaped payloads."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: genai.Client | None = None,
        base_url: str | None = None,
        api_version: str = "v1beta",
        timeout: float = 60.0,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            client = genai.Client(
                api_key=api_key,
                vertexai=False,
                http_options=types.HttpOptions(
                    base_url=base_url,
                    api_version=api_version,
                    timeout=int(timeout * 1000),
                ),
            )
        self._client = client
        self._aio = client.aio
        self._logger = get_logger("remote")

    async def _call(self, call: str, fn: Callable[..., Awaitable[R]], *args: Any, **kwargs: Any) -> R:
        try:
            result = await fn(*args, **kwargs)
        except genai_errors.APIError as exc:
            ClientMetrics.observe_request(call, str(exc.code))
            error = error_from_api_error(exc)
            self._logger.warning("remote.error", call=call, code=exc.code, status=error.status)
            raise error from exc
        except ValueError as exc:
            # Undecodable bodies and payloads the SDK cannot validate.
            ClientMetrics.observe_request(call, "invalid")
            self._logger.warning("remote.invalid_response", call=call, detail=str(exc))
            raise RemoteError(f"{call} failed: {exc}") from exc
        ClientMetrics.observe_request(call, "ok")
        return result

    # Stores

    async def create_store(self, display_name: str) -> dict[str, Any]:
        store = await self._call(
            "file_search_stores.create",
            self._aio.file_search_stores.create,
            config={"display_name": display_name},
        )
        return dump(store)

    async def list_stores(
        self,
        page_size: int | None = None,
        page_token: str | None = None,
    ) -> Tuple[list[dict[str, Any]], str | None]:
        pager = await self._call(
            "file_search_stores.list",
            self._aio.file_search_stores.list,
            config=_page_config(page_size, page_token),
        )
        return _page(pager)

    async def get_store(self, name: str) -> dict[str, Any]:
        return dump(await self._call("file_search_stores.get", self._aio.file_search_stores.get, name=name))

    async def delete_store(self, name: str, force: bool = False) -> None:
        await self._call(
            "file_search_stores.delete",
            self._aio.file_search_stores.delete,
            name=name,
            config={"force": True} if force else None,
        )

    # Documents

    async def upload_document(self, store_name: str, content: bytes, config: Mapping[str, Any]) -> Operation:
        operation = await self._call(
            "file_search_stores.upload_to_file_search_store",
            self._aio.file_search_stores.upload_to_file_search_store,
            file_search_store_name=store_name,
            file=io.BytesIO(content),
            config=types.UploadToFileSearchStoreConfig.model_validate(dict(config)),
        )
        return Operation.from_api(dump(operation), handle=operation)

    async def import_file(self, store_name: str, file_name: str, config: Mapping[str, Any]) -> Operation:
        operation = await self._call(
            "file_search_stores.import_file",
            self._aio.file_search_stores.import_file,
            file_search_store_name=store_name,
            file_name=file_name,
            config=types.ImportFileConfig.model_validate(dict(config)) if config else None,
        )
        return Operation.from_api(dump(operation), handle=operation)

    async def list_documents(
        self,
        store_name: str,
        page_size: int | None = None,
        page_token: str | None = None,
    ) -> Tuple[list[dict[str, Any]], str | None]:
        pager = await self._call(
            "documents.list",
            self._aio.file_search_stores.documents.list,
            parent=store_name,
            config=_page_config(page_size, page_token),
        )
        return _page(pager)

    async def get_document(self, name: str) -> dict[str, Any]:
        return dump(await self._call("documents.get", self._aio.file_search_stores.documents.get, name=name))

    async def delete_document(self, name: str, force: bool = False) -> None:
        await self._call(
            "documents.delete",
            self._aio.file_search_stores.documents.delete,
            name=name,
            config={"force": True} if force else None,
        )

    # Operations and generation

    async def get_operation(self, operation: Operation) -> Operation:
        if operation.handle is None:
            raise InvalidArgument(f'Operation "{operation.name}" has no SDK handle to refresh')
        refreshed = await self._call("operations.get", self._aio.operations.get, operation.handle)
        return Operation.from_api(dump(refreshed), handle=refreshed)

    async def generate_content(
        self,
        *,
        model: str,
        contents: str,
        config: types.GenerateContentConfig,
    ) -> dict[str, Any]:
        response = await self._call(
            "models.generate_content",
            self._aio.models.generate_content,
            model=model,
            contents=contents,
            config=config,
        )
        return dump(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._aio.aclose()
