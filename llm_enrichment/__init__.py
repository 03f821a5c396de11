"""LLM-backed product enrichment: title analysis and same-product judgements."""

from llm_enrichment.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter
from llm_enrichment.enricher import LLMProductEnricher
from llm_enrichment.schema import ProductAnalysis, ProductMatchJudgement

__all__ = [
    "BaseLLMAdapter",
    "LLMProductEnricher",
    "MockLLMAdapter",
    "OpenAILLMAdapter",
    "ProductAnalysis",
    "ProductMatchJudgement",
]
