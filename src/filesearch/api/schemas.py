"""Pydantic models for the filesearch HTTP API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from filesearch.models import MetadataEntry
from filesearch.services.generation import GenerationParameters


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateStoreRequest(CamelModel):
    display_name: Optional[str] = Field(default=None, description="Human-readable store name")


class MetadataEntryModel(CamelModel):
    key: str
    string_value: Optional[str] = None
    numeric_value: Optional[float] = None

    def to_entry(self) -> MetadataEntry:
        return MetadataEntry(key=self.key, string_value=self.string_value, numeric_value=self.numeric_value)


class QueryRequest(CamelModel):
    store_names: List[str] = Field(default_factory=list, description="Stores to ground the answer on")
    query: Optional[str] = Field(default=None, description="End-user question to answer")
    model: Optional[str] = None
    metadata_filter: Optional[str] = Field(default=None, description="Opaque metadata filter expression")
    system_instruction: Optional[str] = None
    retrieval_top_k: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_output_tokens: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    seed: Optional[int] = None
    response_mime_type: Optional[str] = None

    def generation_parameters(self) -> GenerationParameters:
        return GenerationParameters(
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=self.max_output_tokens,
            stop_sequences=self.stop_sequences,
            presence_penalty=self.presence_penalty,
            frequency_penalty=self.frequency_penalty,
            seed=self.seed,
            response_mime_type=self.response_mime_type,
        )


class CitationModel(CamelModel):
    uri: Optional[str] = None
    title: Optional[str] = None
    snippet: Optional[str] = None
    start_index: Optional[int] = None
    end_index: Optional[int] = None


class QueryResponse(CamelModel):
    text: str
    citations: List[CitationModel]


class StoreModel(CamelModel):
    name: str
    display_name: Optional[str] = None
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    active_documents_count: Optional[int] = None
    pending_documents_count: Optional[int] = None
    failed_documents_count: Optional[int] = None
    size_bytes: Optional[int] = None
    document_count: Optional[int] = None


class StoreListResponse(CamelModel):
    stores: List[StoreModel]


class DocumentModel(CamelModel):
    name: str
    display_name: Optional[str] = None
    state: str
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    size_bytes: Optional[int] = None
    mime_type: Optional[str] = None
    custom_metadata: List[MetadataEntryModel] = Field(default_factory=list)


class DocumentListResponse(CamelModel):
    documents: List[DocumentModel]


class DeleteResponse(CamelModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    correlation_id: str
