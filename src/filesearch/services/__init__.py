"""Service layer orchestrations for filesearch."""

from .generation import GenerationParameters, build_generate_config
from .query import QueryEngine, extract_text, reconstruct_citations

__all__ = [
    "GenerationParameters",
    "QueryEngine",
    "build_generate_config",
    "extract_text",
    "reconstruct_citations",
]
