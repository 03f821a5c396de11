"""
API schema exports.
"""

from pricescout.schemas.scrape_jobs import (
    PromoScrapeResponse,
    PromotionsRequest,
    ScrapedProductResponse,
    ScrapeJobRequest,
    ScrapeJobResponse,
    ScrapingFieldRequest,
)

__all__ = [
    "PromoScrapeResponse",
    "PromotionsRequest",
    "ScrapeJobRequest",
    "ScrapeJobResponse",
    "ScrapedProductResponse",
    "ScrapingFieldRequest",
]
