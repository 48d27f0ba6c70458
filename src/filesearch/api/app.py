"""FastAPI application exposing the filesearch client over HTTP."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import List, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from filesearch.api.schemas import (
    CreateStoreRequest,
    DeleteResponse,
    DocumentListResponse,
    DocumentModel,
    ErrorResponse,
    MetadataEntryModel,
    QueryRequest,
    QueryResponse,
    StoreListResponse,
    StoreModel,
)
from filesearch.cache import TTLCache
from filesearch.client import FileSearchClient
from filesearch.config import Settings, get_settings
from filesearch.errors import FileSearchError, InvalidArgument
from filesearch.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from filesearch.models import ChunkingConfig, Document, MetadataEntry, Store
from filesearch.stores.service import normalize_store_name


@dataclass(frozen=True)
class AppDependencies:
    client: FileSearchClient
    cache: TTLCache


def _build_dependencies(settings: Settings) -> AppDependencies:
    return AppDependencies(
        client=FileSearchClient(settings=settings),
        cache=TTLCache(ttl_seconds=settings.cache_ttl_seconds),
    )


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
    body = ErrorResponse(error=message, correlation_id=correlation_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or _build_dependencies(settings)

    configure_logging()
    logger = get_logger("api")

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await deps.client.aclose()

    app = FastAPI(title="File Search Store API", version="0.1.0", lifespan=lifespan)
    app.state.dependencies = deps

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(request, status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(FileSearchError)
    async def handle_filesearch_error(request: Request, exc: FileSearchError) -> JSONResponse:
        logger.error("filesearch.error", error_type=type(exc).__name__, detail=str(exc))
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(InvalidArgument)
    async def handle_invalid_argument(request: Request, exc: InvalidArgument) -> JSONResponse:
        # Only local validation is a client error; remote rejections are remote failures.
        if exc.status_code is not None:
            return await handle_filesearch_error(request, exc)
        return _error_response(request, status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled.error", detail=str(exc))
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_client(dep: AppDependencies = Depends(get_dependencies)) -> FileSearchClient:
        return dep.client

    def get_cache(dep: AppDependencies = Depends(get_dependencies)) -> TTLCache:
        return dep.cache

    @app.post("/stores", response_model=StoreModel, status_code=status.HTTP_201_CREATED)
    async def create_store(
        payload: CreateStoreRequest,
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> StoreModel:
        if not (payload.display_name or "").strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="displayName is required")
        store = await client.create_store(payload.display_name)
        cache.invalidate("stores:")
        return _store_model(store)

    @app.get("/stores", response_model=StoreListResponse)
    async def list_stores(
        include_document_counts: bool = False,
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> StoreListResponse:
        cache_key = f"stores:list:{include_document_counts}"
        cached = cache.get(cache_key)
        if cached is not None:
            return cached
        stores = await client.list_all_stores()
        if include_document_counts:
            stores = await _with_document_counts(client, stores)
        response = StoreListResponse(stores=[_store_model(store) for store in stores])
        cache.set(cache_key, response)
        return response

    async def _with_document_counts(client: FileSearchClient, stores: List[Store]) -> List[Store]:
        results = await asyncio.gather(
            *(client.list_all_documents(store.name) for store in stores),
            return_exceptions=True,
        )
        counted: List[Store] = []
        for store, result in zip(stores, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("stores.document_count_failed", store=store.name, detail=str(result))
                counted.append(replace(store, document_count=0))
            else:
                counted.append(replace(store, document_count=len(result)))
        return counted

    @app.get("/stores/{store_id}", response_model=StoreModel)
    async def get_store(store_id: str, client: FileSearchClient = Depends(get_client)) -> StoreModel:
        return _store_model(await client.get_store(store_id))

    @app.delete("/stores/{store_id}", response_model=DeleteResponse)
    async def delete_store(
        store_id: str,
        force: bool = False,
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> DeleteResponse:
        await client.delete_store(store_id, force=force)
        cache.invalidate()
        return DeleteResponse()

    @app.post(
        "/stores/{store_id}/documents",
        response_model=DocumentModel,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_document(
        store_id: str,
        file: Optional[UploadFile] = File(default=None),
        display_name: Optional[str] = Form(default=None, alias="displayName"),
        max_tokens_per_chunk: Optional[int] = Form(default=None, alias="maxTokensPerChunk"),
        max_overlap_tokens: Optional[int] = Form(default=None, alias="maxOverlapTokens"),
        metadata: Optional[str] = Form(default=None),
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> DocumentModel:
        if file is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="file is required")
        entries = _parse_metadata_field(metadata)
        chunking = None
        if max_tokens_per_chunk is not None or max_overlap_tokens is not None:
            chunking = ChunkingConfig(max_tokens_per_chunk=max_tokens_per_chunk, max_overlap_tokens=max_overlap_tokens)
        content = await file.read()
        await file.close()
        store_name = normalize_store_name(store_id)
        document = await client.upload_document(
            store_name,
            content,
            file_name=file.filename,
            display_name=display_name,
            mime_type=file.content_type if file.content_type not in (None, "", "application/octet-stream") else None,
            chunking_config=chunking,
            metadata=entries,
        )
        cache.invalidate(f"docs:{store_name}")
        cache.invalidate("stores:")
        return _document_model(document)

    @app.get("/stores/{store_id}/documents", response_model=DocumentListResponse)
    async def list_documents(
        store_id: str,
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> DocumentListResponse:
        store_name = normalize_store_name(store_id)
        cache_key = f"docs:{store_name}"
        cached = cache.get(cache_key)
        if cached is not None:
            return cached
        documents = await client.list_all_documents(store_name)
        response = DocumentListResponse(documents=[_document_model(document) for document in documents])
        cache.set(cache_key, response)
        return response

    @app.get("/stores/{store_id}/documents/{document_id}", response_model=DocumentModel)
    async def get_document(
        store_id: str,
        document_id: str,
        client: FileSearchClient = Depends(get_client),
    ) -> DocumentModel:
        name = f"{normalize_store_name(store_id)}/documents/{document_id}"
        return _document_model(await client.get_document(name))

    @app.delete("/stores/{store_id}/documents/{document_id}", response_model=DeleteResponse)
    async def delete_document(
        store_id: str,
        document_id: str,
        force: bool = False,
        client: FileSearchClient = Depends(get_client),
        cache: TTLCache = Depends(get_cache),
    ) -> DeleteResponse:
        store_name = normalize_store_name(store_id)
        await client.delete_document(f"{store_name}/documents/{document_id}", force=force)
        cache.invalidate(f"docs:{store_name}")
        cache.invalidate("stores:")
        return DeleteResponse()

    @app.post("/query", response_model=QueryResponse)
    async def query_stores(
        payload: QueryRequest,
        client: FileSearchClient = Depends(get_client),
    ) -> QueryResponse:
        if not payload.store_names:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="storeNames is required and must be a non-empty array",
            )
        if not (payload.query or "").strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="query is required")
        result = await client.query(
            payload.store_names,
            payload.query,
            model=payload.model,
            metadata_filter=payload.metadata_filter,
            system_instruction=payload.system_instruction,
            generation=payload.generation_parameters(),
            retrieval_top_k=payload.retrieval_top_k,
        )
        return QueryResponse.model_validate(result.to_dict())

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        from filesearch import __version__

        return {"status": "ok", "version": __version__, "environment": settings.environment}

    return app


def _store_model(store: Store) -> StoreModel:
    return StoreModel.model_validate(store.to_dict())


def _document_model(document: Document) -> DocumentModel:
    return DocumentModel.model_validate(document.to_dict())


def _parse_metadata_field(raw: str | None) -> List[MetadataEntry] | None:
    if not raw:
        return None
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError("metadata must be a JSON array")
        return [MetadataEntryModel.model_validate(item).to_entry() for item in items]
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid metadata: {exc}") from exc
