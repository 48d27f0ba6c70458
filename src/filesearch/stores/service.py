"""Store lifecycle over the remote ``fileSearchStores`` collection."""

from __future__ import annotations

from typing import List

from filesearch.errors import InvalidArgument
from filesearch.metrics.observability import get_logger
from filesearch.models import Page, Store
from filesearch.remote.transport import RemoteTransport

STORE_COLLECTION = "fileSearchStores"


def normalize_store_name(name_or_id: str) -> str:
    """Accept ``fileSearchStores/{id}`` or a bare id and return the resource name."""

    value = (name_or_id or "").strip().strip("/")
    if not value:
        raise InvalidArgument("Store name is required")
    if value.startswith(f"{STORE_COLLECTION}/"):
        return value
    return f"{STORE_COLLECTION}/{value}"


class StoreManager:
    """Create, list, get and delete stores."""

    _logger = get_logger("stores")

    def __init__(self, transport: RemoteTransport) -> None:
        self._transport = transport

    async def create(self, display_name: str) -> Store:
        if not (display_name or "").strip():
            raise InvalidArgument("displayName is required")
        payload = await self._transport.create_store(display_name)
        store = Store.from_api(payload)
        self._logger.info("store.created", store=store.name, display_name=display_name)
        return store

    async def list(self, page_size: int | None = None, page_token: str | None = None) -> Page[Store]:
        items, next_token = await self._transport.list_stores(page_size=page_size, page_token=page_token)
        return Page(items=tuple(Store.from_api(item) for item in items), next_page_token=next_token)

    async def list_all(self, page_size: int | None = None) -> List[Store]:
        stores: List[Store] = []
        token: str | None = None
        while True:
            page = await self.list(page_size=page_size, page_token=token)
            stores.extend(page.items)
            token = page.next_page_token
            if not token:
                return stores

    async def get(self, name: str) -> Store:
        payload = await self._transport.get_store(normalize_store_name(name))
        return Store.from_api(payload)

    async def delete(self, name: str, force: bool = False) -> None:
        resource = normalize_store_name(name)
        await self._transport.delete_store(resource, force=force)
        self._logger.info("store.deleted", store=resource, force=force)
