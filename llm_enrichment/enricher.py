"""LLM implementation of the product enrichment collaborator."""

import logging
from typing import Optional

from llm_enrichment.adapter import BaseLLMAdapter
from llm_enrichment.prompt_builder import EnrichmentPromptBuilder
from llm_enrichment.retry import LLMRetryExhaustedError, generate_with_retry
from llm_enrichment.schema import ProductAnalysis, ProductMatchJudgement
from pricescout.scraping.enrichment import ProductEnrichmentCollaborator
from pricescout.scraping.types import ScrapedProduct

logger = logging.getLogger(__name__)


class LLMProductEnricher(ProductEnrichmentCollaborator):
    """Enrichment collaborator backed by an LLM adapter.

    Title analyses raise on adapter or validation failure so the caller can
    keep its heuristic values. Match judgements degrade to an undetermined
    result instead.
    """

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: Optional[EnrichmentPromptBuilder] = None,
        max_retries: int = 2,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or EnrichmentPromptBuilder()
        self._max_retries = max_retries

    def analyze_title(self, title: str) -> ProductAnalysis:
        prompt = self._prompt_builder.build_analysis_prompt(title)
        return generate_with_retry(
            self._adapter,
            prompt,
            ProductAnalysis,
            max_retries=self._max_retries,
        )

    def match_products(self, first: ScrapedProduct, second: ScrapedProduct) -> ProductMatchJudgement:
        prompt = self._prompt_builder.build_match_prompt(
            first.title,
            None if first.price is None else str(first.price),
            second.title,
            None if second.price is None else str(second.price),
        )
        try:
            return generate_with_retry(
                self._adapter,
                prompt,
                ProductMatchJudgement,
                max_retries=self._max_retries,
            )
        except LLMRetryExhaustedError as exc:
            logger.warning("Product match judgement unavailable: %s", exc)
            return ProductMatchJudgement.undetermined("Error during matching")
