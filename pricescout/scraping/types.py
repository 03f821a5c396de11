"""
Shared scraping runtime data models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class JobState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    PAGINATING = "paginating"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RawRecord:
    """
    Field values read from one list element before normalization.
    """

    values: dict[str, str | None]
    position: int
    page_url: str
    provisional: bool = False

    def get(self, label: str) -> str | None:
        return self.values.get(label)


@dataclass(frozen=True)
class SiteContext:
    """
    Per-job context the normalizer needs besides the raw values.
    """

    competitor: str
    page_url: str
    unique_key_labels: tuple[str, ...]
    required_labels: frozenset[str] = frozenset()
    category: str | None = None


@dataclass(frozen=True)
class ScrapedProduct:
    """
    Canonical product record produced by the normalizer.
    """

    sku: str
    title: str
    price: Decimal | None
    image_url: str | None
    product_url: str | None
    brand: str | None
    competitor: str
    fingerprint: str
    original_price: Decimal | None = None
    model: str | None = None
    category: str | None = None
    provisional: bool = False
    attributes: dict[str, str | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["price"] = _decimal_to_str(self.price)
        payload["original_price"] = _decimal_to_str(self.original_price)
        return payload


@dataclass(frozen=True)
class ScrapingResult:
    """
    Outcome for one scrape job.
    """

    success: bool
    data: list[ScrapedProduct]
    total_items: int
    pages: int
    errors: list[str]
    execution_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": [item.to_dict() for item in self.data],
            "total_items": self.total_items,
            "pages": self.pages,
            "errors": list(self.errors),
            "execution_time_ms": self.execution_time_ms,
        }


@dataclass(frozen=True)
class PromoSlide:
    image: str
    link: str | None
    label: str | None
    fingerprint: str


@dataclass(frozen=True)
class PromoScrapeResult:
    """
    Outcome for one promotional carousel scrape.
    """

    success: bool
    url: str
    slides: list[PromoSlide]
    carousels: list[dict[str, Any]]
    errors: list[str]
    execution_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "url": self.url,
            "slides": [asdict(item) for item in self.slides],
            "carousels": list(self.carousels),
            "errors": list(self.errors),
            "execution_time_ms": self.execution_time_ms,
        }


def _decimal_to_str(value: Decimal | None) -> str | None:
    return None if value is None else str(value)
