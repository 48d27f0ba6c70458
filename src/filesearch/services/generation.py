"""Generation config shaping for grounded queries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

from google.genai import types


@dataclass(frozen=True)
class GenerationParameters:
    """Optional model tuning parameters; unset fields are left to the model."""

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: Sequence[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    response_mime_type: str | None = None

    def to_config(self) -> Dict[str, Any]:
        fields = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_output_tokens": self.max_output_tokens,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
            "seed": self.seed,
            "response_mime_type": self.response_mime_type,
        }
        config = {key: value for key, value in fields.items() if value is not None}
        if self.stop_sequences:
            config["stop_sequences"] = list(self.stop_sequences)
        return config


def build_generate_config(
    *,
    store_names: Sequence[str],
    metadata_filter: str | None = None,
    system_instruction: str | None = None,
    generation: GenerationParameters | None = None,
    retrieval_top_k: int | None = None,
) -> types.GenerateContentConfig:
    """Build a ``generate_content`` config with the file search tool attached."""

    file_search = types.FileSearch(
        file_search_store_names=list(store_names),
        metadata_filter=metadata_filter or None,
        top_k=retrieval_top_k,
    )
    return types.GenerateContentConfig(
        tools=[types.Tool(file_search=file_search)],
        system_instruction=system_instruction or None,
        **(generation.to_config() if generation is not None else {}),
    )
