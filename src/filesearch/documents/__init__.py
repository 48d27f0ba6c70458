"""Document ingestion and management."""

from .service import DEFAULT_MIME_TYPE, DocumentManager, build_ingestion_config, guess_mime_type

__all__ = ["DEFAULT_MIME_TYPE", "DocumentManager", "build_ingestion_config", "guess_mime_type"]
