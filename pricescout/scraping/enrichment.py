"""
Optional enrichment collaborator contract and the post-normalization hook.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from pricescout.scraping.logging_utils import log_event
from pricescout.scraping.types import ScrapedProduct

if TYPE_CHECKING:
    from llm_enrichment.schema import ProductAnalysis, ProductMatchJudgement

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.5


class ProductEnrichmentCollaborator(ABC):
    """
    External quality upgrade for heuristic brand/model/category values.
    """

    @abstractmethod
    def analyze_title(self, title: str) -> "ProductAnalysis":
        """
        Return structured brand/model/category/specs with a confidence score.
        """

    @abstractmethod
    def match_products(self, first: ScrapedProduct, second: ScrapedProduct) -> "ProductMatchJudgement":
        """
        Judge whether two listings describe the same product.
        """


async def enrich_products(
    products: Sequence[ScrapedProduct],
    enricher: ProductEnrichmentCollaborator,
    *,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> tuple[list[ScrapedProduct], list[str]]:
    """
    Return enriched replacements plus error notes. Failed or low-confidence
    analyses keep the heuristic values.
    """

    enriched: list[ScrapedProduct] = []
    errors: list[str] = []
    for product in products:
        if not product.title:
            enriched.append(product)
            continue
        try:
            analysis = await asyncio.to_thread(enricher.analyze_title, product.title)
        except Exception as exc:  # noqa: BLE001
            errors.append(f"Enrichment failed for '{product.title}': {exc}")
            log_event(
                logger,
                logging.WARNING,
                "product_enrichment_failed",
                fingerprint=product.fingerprint,
                error=str(exc),
            )
            enriched.append(product)
            continue

        if analysis.confidence < min_confidence:
            log_event(
                logger,
                logging.DEBUG,
                "product_enrichment_low_confidence",
                fingerprint=product.fingerprint,
                confidence=analysis.confidence,
            )
            enriched.append(product)
            continue

        attributes = dict(product.attributes)
        if analysis.subcategory:
            attributes["subcategory"] = analysis.subcategory
        if analysis.specifications:
            attributes["specifications"] = "; ".join(analysis.specifications)
        enriched.append(
            replace(
                product,
                brand=analysis.brand or product.brand,
                model=analysis.model or product.model,
                category=analysis.category or product.category,
                attributes=attributes,
            )
        )
    return enriched, errors
