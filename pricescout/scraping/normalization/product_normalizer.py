"""
Normalization layer: raw extracted fields to canonical product records.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from urllib.parse import urljoin, urlparse

from pricescout.scraping.logging_utils import log_event
from pricescout.scraping.types import RawRecord, ScrapedProduct, SiteContext

logger = logging.getLogger(__name__)

SLOT_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "name", "product_name"),
    "price": ("price", "current_price", "sale_price"),
    "original_price": ("original_price", "was_price"),
    "image": ("image", "image_url", "img"),
    "url": ("url", "link", "product_url", "href"),
    "brand": ("brand",),
    "model": ("model",),
    "category": ("category",),
    "sku": ("sku",),
}
URL_SLOTS = ("image", "url")
DEFAULT_CATEGORY = "Products"
SKU_TITLE_LENGTH = 20
FINGERPRINT_LENGTH = 16

PRICE_STRIP_REGEX = re.compile(r"[^\d.]")
LEADING_NUMBER_REGEX = re.compile(r"\d+(?:\.\d+)?|\.\d+")
SKU_STRIP_REGEX = re.compile(r"[^A-Za-z0-9]+")
MODEL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s-\s([A-Z][A-Z0-9]{2,}[A-Z0-9-]*)\b"),
    re.compile(r"\(([A-Z0-9]{3,}[A-Z0-9-]*)\)"),
    re.compile(r"\b([A-Z]{2,}[0-9]{3,}[A-Z0-9]*)\b"),
    re.compile(r"\b([A-Z]{2,}[A-Z0-9]*-[A-Z0-9]+)\b"),
    re.compile(r"\b(Model\s+[A-Z0-9][A-Z0-9-]*)", re.IGNORECASE),
)


def parse_price(value: str | None) -> Decimal | None:
    """
    Parse a display price such as ``$1,299.00`` or ``$49.99 inc. GST``.

    Only the leading number of the digits-and-dots residue counts, so trailing
    sentence dots are ignored. Anything without a number is None.
    """

    if not value:
        return None
    match = LEADING_NUMBER_REGEX.match(PRICE_STRIP_REGEX.sub("", value))
    if match is None:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def absolutize_url(base_url: str, value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    try:
        return urljoin(base_url, value.strip())
    except ValueError:
        return value


def infer_model(title: str) -> str | None:
    for pattern in MODEL_PATTERNS:
        match = pattern.search(title)
        if match:
            return match.group(1).strip()
    return None


def infer_brand(title: str) -> str | None:
    tokens = title.split()
    return tokens[0] if tokens else None


def category_from_url(url: str) -> str | None:
    segments = [item for item in urlparse(url).path.split("/") if item]
    if not segments:
        return None
    return segments[0].replace("-", " ").replace("_", " ").strip().title() or None


def generate_sku(title: str, position: int) -> str:
    slug = SKU_STRIP_REGEX.sub("-", title).strip("-")
    slug = slug[:SKU_TITLE_LENGTH].strip("-").upper()
    return f"{slug or 'ITEM'}-{position + 1}"


def fingerprint_for(values: Mapping[str, str | None], unique_key_labels: Iterable[str]) -> str:
    """
    Hash the unique-key values; when all of them are empty, hash every value.
    """

    parts = [values.get(label) or "" for label in unique_key_labels]
    if not any(parts):
        parts = [value or "" for value in values.values()]
    digest = hashlib.sha256("|".join(parts).encode("utf-8"))
    return digest.hexdigest()[:FINGERPRINT_LENGTH]


class ProductNormalizer:
    """
    Convert raw records into typed, deduplicated products.
    """

    def normalize(self, raw_records: Iterable[RawRecord], site_context: SiteContext) -> list[ScrapedProduct]:
        products: list[ScrapedProduct] = []
        seen: set[str] = set()
        for record in raw_records:
            product = self.normalize_one(record, site_context)
            if product is None or product.fingerprint in seen:
                continue
            seen.add(product.fingerprint)
            products.append(product)
        return products

    def normalize_one(self, record: RawRecord, site_context: SiteContext) -> ScrapedProduct | None:
        base_url = record.page_url or site_context.page_url
        labels = self._slot_labels(record.values)
        values = dict(record.values)
        for slot in URL_SLOTS:
            label = labels.get(slot)
            if label is not None:
                values[label] = absolutize_url(base_url, values.get(label))

        def slot(name: str) -> str | None:
            label = labels.get(name)
            return values.get(label) if label is not None else None

        price = parse_price(slot("price"))
        price_label = labels.get("price")
        if price is None and price_label is not None and price_label in site_context.required_labels:
            log_event(
                logger,
                logging.DEBUG,
                "record_dropped_unparsable_price",
                page_url=base_url,
                position=record.position,
                raw_price=record.values.get(price_label),
            )
            return None

        title = slot("title") or ""
        return ScrapedProduct(
            sku=slot("sku") or generate_sku(title, record.position),
            title=title,
            price=price,
            original_price=parse_price(slot("original_price")),
            image_url=slot("image"),
            product_url=slot("url"),
            brand=slot("brand") or infer_brand(title),
            model=slot("model") or infer_model(title),
            category=(
                slot("category")
                or site_context.category
                or category_from_url(base_url)
                or DEFAULT_CATEGORY
            ),
            competitor=site_context.competitor,
            fingerprint=fingerprint_for(values, site_context.unique_key_labels),
            provisional=record.provisional,
            attributes=values,
        )

    @staticmethod
    def _slot_labels(values: Mapping[str, str | None]) -> dict[str, str]:
        lowered = {label.strip().lower(): label for label in values}
        resolved: dict[str, str] = {}
        for slot, aliases in SLOT_ALIASES.items():
            for alias in aliases:
                if alias in lowered:
                    resolved[slot] = lowered[alias]
                    break
        return resolved
