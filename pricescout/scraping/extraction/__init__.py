"""
Extraction layer exports.
"""

from pricescout.scraping.extraction.page_query import BrowserPageQuery, HtmlPageQuery, PageQuery
from pricescout.scraping.extraction.promo import PromoCarouselExtractor, slides_to_carousels
from pricescout.scraping.extraction.rules import ExtractionOutcome, ExtractionRuleEngine, ExtractorSpec
from pricescout.scraping.extraction.strategies import (
    ContentKeywordStrategy,
    FallbackStrategy,
    FallbackStrategyRegistry,
    StructuralSelectorStrategy,
)

__all__ = [
    "BrowserPageQuery",
    "ContentKeywordStrategy",
    "ExtractionOutcome",
    "ExtractionRuleEngine",
    "ExtractorSpec",
    "FallbackStrategy",
    "FallbackStrategyRegistry",
    "HtmlPageQuery",
    "PageQuery",
    "PromoCarouselExtractor",
    "StructuralSelectorStrategy",
    "slides_to_carousels",
]
