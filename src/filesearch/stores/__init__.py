"""Store management."""

from .service import STORE_COLLECTION, StoreManager, normalize_store_name

__all__ = ["STORE_COLLECTION", "StoreManager", "normalize_store_name"]
