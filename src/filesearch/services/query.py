"""Grounded query orchestration and citation reconstruction."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Sequence

from filesearch.errors import InvalidArgument
from filesearch.metrics.observability import ClientMetrics, TimedSection, get_logger
from filesearch.models import Citation, QueryResult
from filesearch.remote.transport import RemoteTransport
from filesearch.services.generation import GenerationParameters, build_generate_config
from filesearch.stores.service import normalize_store_name

_logger = get_logger("query")


def extract_text(response: Mapping[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""

    candidates = response.get("candidates") or ()
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or ()
    return "".join(part.get("text", "") for part in parts if not part.get("thought"))


def reconstruct_citations(grounding_metadata: Mapping[str, Any] | None) -> List[Citation]:
    """Join grounding chunks and grounding supports into per-chunk citations.

    Chunks are enumerated first; their order defines the index space that
    ``groundingSupports[].groundingChunkIndices`` refers to. Each support with
    a segment then stamps its character range onto every citation it names.
    A later support overwrites an earlier one for the same citation, and
    indices without a matching chunk are ignored.
    """

    if not grounding_metadata:
        return []

    citations: List[Citation] = []
    for chunk in grounding_metadata.get("groundingChunks") or ():
        context = chunk.get("retrievedContext") or {}
        citations.append(
            Citation(
                uri=context.get("uri"),
                title=context.get("title"),
                snippet=context.get("text"),
            ),
        )

    for support in grounding_metadata.get("groundingSupports") or ():
        segment = support.get("segment")
        if not segment:
            continue
        end = segment.get("endIndex")
        # Zero offsets are dropped from the wire payload.
        start = segment.get("startIndex", 0 if end is not None else None)
        for index in support.get("groundingChunkIndices") or ():
            if not 0 <= index < len(citations):
                _logger.debug("citation.index_out_of_range", index=index, citations=len(citations))
                continue
            citations[index] = replace(
                citations[index],
                start_index=start,
                end_index=end,
            )
    return citations


class QueryEngine:
    """Issues grounded generation requests against one or more stores."""

    def __init__(self, transport: RemoteTransport, default_model: str) -> None:
        self._transport = transport
        self._default_model = default_model

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
        if not store_names:
            raise InvalidArgument("storeNames is required and must be a non-empty list")
        if not (query_text or "").strip():
            raise InvalidArgument("query is required")

        effective_model = model or self._default_model
        config = build_generate_config(
            store_names=[normalize_store_name(name) for name in store_names],
            metadata_filter=metadata_filter,
            system_instruction=system_instruction,
            generation=generation,
            retrieval_top_k=retrieval_top_k,
        )
        timings: list[float] = []
        with TimedSection(timings.append):
            response = await self._transport.generate_content(
                model=effective_model,
                contents=query_text,
                config=config,
            )

        candidates = response.get("candidates") or ()
        grounding = candidates[0].get("groundingMetadata") if candidates else None
        citations = reconstruct_citations(grounding)
        ClientMetrics.observe_query(timings[0], len(citations))
        _logger.info(
            "query.complete",
            model=effective_model,
            stores=len(store_names),
            citation_count=len(citations),
            duration_seconds=timings[0],
        )
        return QueryResult(
            text=extract_text(response),
            citations=tuple(citations),
            model=effective_model,
            raw_response=response,
        )
