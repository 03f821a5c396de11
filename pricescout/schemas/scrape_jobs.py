"""
pricescout/schemas/scrape_jobs.py

Request/response schemas for scrape job endpoints. Requests accept
snake_case or camelCase keys.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from pricescout.scraping.config.models import DEFAULT_FALLBACK_KEYWORDS, ScrapingConfig, ScrapingField
from pricescout.scraping.types import PromoScrapeResult, ScrapedProduct, ScrapingResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScrapingFieldRequest(_CamelModel):
    label: str = Field(..., min_length=1)
    css: str = Field(..., min_length=1)
    attr: str = "text"
    data_attribute: str | None = None
    required: bool = False
    unique_key: bool = False


class ScrapeJobRequest(_CamelModel):
    """
    One scrape job submission.
    """

    start_url: HttpUrl
    list_selector: str = Field(..., min_length=1)
    fields: list[ScrapingFieldRequest] = Field(..., min_length=1)
    pagination_mode: str = "none"
    pagination_next: str | None = None
    max_pages: int | None = Field(default=None, ge=1)
    max_items: int | None = Field(default=None, ge=1)
    delay_ms: int = Field(
        default=1000,
        ge=0,
        validation_alias=AliasChoices("delay_ms", "delayMs", "delay"),
    )
    name: str | None = None
    category: str | None = None
    fallback_strategy: str = "none"
    fallback_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_KEYWORDS))
    scroll_steps: int = Field(default=0, ge=0)
    wait_for_selector: str | None = None

    def to_config(self) -> ScrapingConfig:
        """
        Build the engine config; invariant violations raise ConfigurationError.
        """

        return ScrapingConfig(
            start_url=str(self.start_url),
            list_selector=self.list_selector,
            fields=tuple(
                ScrapingField(
                    label=item.label,
                    css=item.css,
                    attr=item.attr,
                    data_attribute=item.data_attribute,
                    required=item.required,
                    unique_key=item.unique_key,
                )
                for item in self.fields
            ),
            pagination_mode=self.pagination_mode,
            pagination_next=self.pagination_next,
            max_pages=self.max_pages,
            max_items=self.max_items,
            delay_ms=self.delay_ms,
            name=self.name,
            category=self.category,
            fallback_strategy=self.fallback_strategy,
            fallback_keywords=tuple(item.strip().lower() for item in self.fallback_keywords if item.strip()),
            scroll_steps=self.scroll_steps,
            wait_for_selector=self.wait_for_selector,
        )


class PromotionsRequest(_CamelModel):
    url: HttpUrl


class ScrapedProductResponse(BaseModel):
    sku: str
    title: str
    price: Decimal | None = None
    original_price: Decimal | None = None
    image_url: str | None = None
    product_url: str | None = None
    brand: str | None = None
    model: str | None = None
    category: str | None = None
    competitor: str
    fingerprint: str
    provisional: bool = False
    attributes: dict[str, str | None] = Field(default_factory=dict)

    @classmethod
    def from_product(cls, product: ScrapedProduct) -> "ScrapedProductResponse":
        return cls(
            sku=product.sku,
            title=product.title,
            price=product.price,
            original_price=product.original_price,
            image_url=product.image_url,
            product_url=product.product_url,
            brand=product.brand,
            model=product.model,
            category=product.category,
            competitor=product.competitor,
            fingerprint=product.fingerprint,
            provisional=product.provisional,
            attributes=dict(product.attributes),
        )


class ScrapeJobResponse(BaseModel):
    """
    API response model for one scrape job.
    """

    success: bool
    data: list[ScrapedProductResponse] = Field(default_factory=list)
    total_items: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    execution_time_ms: int = Field(..., ge=0)

    @classmethod
    def from_result(cls, result: ScrapingResult) -> "ScrapeJobResponse":
        return cls(
            success=result.success,
            data=[ScrapedProductResponse.from_product(item) for item in result.data],
            total_items=result.total_items,
            pages=result.pages,
            errors=list(result.errors),
            execution_time_ms=result.execution_time_ms,
        )


class PromoScrapeResponse(BaseModel):
    success: bool
    url: str
    slides: list[dict[str, str | None]] = Field(default_factory=list)
    carousels: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    execution_time_ms: int = Field(..., ge=0)

    @classmethod
    def from_result(cls, result: PromoScrapeResult) -> "PromoScrapeResponse":
        payload = result.to_dict()
        return cls(
            success=payload["success"],
            url=payload["url"],
            slides=payload["slides"],
            carousels=payload["carousels"],
            errors=payload["errors"],
            execution_time_ms=payload["execution_time_ms"],
        )
