"""
Fallback extraction strategies used when a configured list selector matches nothing.
"""

from __future__ import annotations

import importlib
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from bs4 import BeautifulSoup, Tag

from pricescout.scraping.config.models import DEFAULT_FALLBACK_KEYWORDS
from pricescout.scraping.errors import ConfigurationError
from pricescout.scraping.extraction.dom import (
    absolutize,
    best_image_source,
    clean_text,
    image_node,
    link_href,
)
from pricescout.scraping.types import RawRecord

PRICE_PATTERN = re.compile(r"\$[\d,]+(?:\.\d{2})?")
PRICE_HINT = re.compile(r"\$\d")
MAX_CONTENT_CANDIDATES = 300
MIN_TITLE_LENGTH = 10


class FallbackStrategy(ABC):
    """
    Produces raw records from a page when the configured rules find nothing.
    """

    name = "base"

    def __init__(self, *, keywords: Iterable[str] = DEFAULT_FALLBACK_KEYWORDS) -> None:
        self.keywords = tuple(item.lower() for item in keywords)

    @abstractmethod
    def extract(
        self,
        *,
        soup: BeautifulSoup,
        base_url: str,
        max_items: int | None = None,
    ) -> list[RawRecord]:
        """
        Return raw records found on the page, at most ``max_items``.
        """


class StructuralSelectorStrategy(FallbackStrategy):
    """
    Tries common product-card markup, then generic title/price/image/link selectors.
    """

    name = "structural"

    CARD_SELECTORS: tuple[str, ...] = (
        ".product-item",
        ".product-card",
        ".product",
        "[data-product]",
        "[class*='product']",
        ".item",
    )
    TITLE_SELECTORS: tuple[str, ...] = (
        ".product-item-name",
        ".product-title",
        ".product-name",
        "[data-testid='product-title']",
        "h2",
        "h3",
        "h4",
        "a[title]",
    )
    PRICE_SELECTORS: tuple[str, ...] = (
        "[data-price-type='finalPrice']",
        ".special-price",
        ".price",
        "[class*='price']",
        ".amount",
    )

    def extract(
        self,
        *,
        soup: BeautifulSoup,
        base_url: str,
        max_items: int | None = None,
    ) -> list[RawRecord]:
        cards: list[Tag] = []
        for selector in self.CARD_SELECTORS:
            cards = soup.select(selector)
            if cards:
                break

        records: list[RawRecord] = []
        for position, card in enumerate(cards):
            if max_items is not None and len(records) >= max_items:
                break
            title = _first_text(card, self.TITLE_SELECTORS)
            if title is None:
                continue
            image = image_node(card)
            records.append(
                RawRecord(
                    values={
                        "title": title,
                        "price": _first_text(card, self.PRICE_SELECTORS),
                        "image": absolutize(base_url, best_image_source(image)) if image else None,
                        "url": absolutize(base_url, link_href(card)),
                    },
                    position=position,
                    page_url=base_url,
                )
            )
        return records


class ContentKeywordStrategy(FallbackStrategy):
    """
    Scans page text for price-bearing blocks that mention a domain keyword.

    Results are heuristic and flagged provisional.
    """

    name = "content_keyword"

    def extract(
        self,
        *,
        soup: BeautifulSoup,
        base_url: str,
        max_items: int | None = None,
    ) -> list[RawRecord]:
        records: list[RawRecord] = []
        for position, node in enumerate(self._innermost_candidates(soup)):
            if max_items is not None and len(records) >= max_items:
                break
            text = node.get_text("\n")
            title = self._title_from_text(text)
            if title is None:
                continue
            prices = PRICE_PATTERN.findall(clean_text(text) or "")
            if not prices:
                continue
            image = image_node(node)
            records.append(
                RawRecord(
                    values={
                        "title": title,
                        "price": prices[-1],
                        "original_price": prices[0] if len(prices) > 1 and prices[0] != prices[-1] else None,
                        "image": absolutize(base_url, best_image_source(image)) if image else None,
                        "url": absolutize(base_url, link_href(node)),
                    },
                    position=position,
                    page_url=base_url,
                    provisional=True,
                )
            )
        return records

    def _qualifies(self, node: Tag) -> bool:
        text = node.get_text(" ")
        if not PRICE_HINT.search(text):
            return False
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)

    def _innermost_candidates(self, soup: BeautifulSoup) -> list[Tag]:
        candidates = [node for node in soup.find_all(["div", "a"]) if self._qualifies(node)]
        candidate_ids = {id(node) for node in candidates}
        innermost: list[Tag] = []
        for node in candidates:
            if any(id(child) in candidate_ids for child in node.find_all(["div", "a"])):
                continue
            innermost.append(node)
            if len(innermost) >= MAX_CONTENT_CANDIDATES:
                break
        return innermost

    def _title_from_text(self, text: str) -> str | None:
        for raw_line in text.split("\n"):
            line = clean_text(raw_line)
            if line is None or len(line) <= MIN_TITLE_LENGTH:
                continue
            lowered = line.lower()
            if any(keyword in lowered for keyword in self.keywords):
                return line
        return None


class FallbackStrategyRegistry:
    """
    Fallback strategy registry supporting built-ins and dynamic import paths.
    """

    def __init__(self, registrations: Mapping[str, type[FallbackStrategy]] | None = None) -> None:
        builtins: dict[str, type[FallbackStrategy]] = {
            StructuralSelectorStrategy.name: StructuralSelectorStrategy,
            ContentKeywordStrategy.name: ContentKeywordStrategy,
        }
        if registrations:
            builtins.update(registrations)
        self._registrations = builtins

    def register(self, *, name: str, strategy_class: type[FallbackStrategy]) -> None:
        self._registrations[name.strip().lower()] = strategy_class

    def create(self, name: str | None, *, keywords: Iterable[str] = DEFAULT_FALLBACK_KEYWORDS) -> FallbackStrategy | None:
        normalized = (name or "none").strip()
        if normalized.lower() in {"", "none"}:
            return None
        if ":" in normalized:
            strategy_class = self._load_dynamic_class(normalized)
        else:
            strategy_class = self._registrations.get(normalized.lower())
            if strategy_class is None:
                allowed = ", ".join(["none", *sorted(self._registrations.keys())])
                raise ConfigurationError(f"Unknown fallback_strategy='{name}'. Allowed: {allowed}.")
        return strategy_class(keywords=keywords)

    @staticmethod
    def _load_dynamic_class(path: str) -> type[FallbackStrategy]:
        module_path, class_name = path.split(":", 1)
        try:
            module = importlib.import_module(module_path)
        except ImportError as exc:
            raise ConfigurationError(f"Unable to import fallback strategy module {module_path!r}.") from exc
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ConfigurationError(f"Unable to resolve fallback strategy '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, FallbackStrategy):
            raise ConfigurationError(f"Class '{path}' must inherit from FallbackStrategy.")
        return loaded


def _first_text(node: Tag, selectors: Iterable[str]) -> str | None:
    for selector in selectors:
        found = node.select_one(selector)
        if found is None:
            continue
        text = clean_text(found.get_text(" ")) or (
            clean_text(str(found.get("title"))) if found.get("title") else None
        )
        if text:
            return text
    return None
