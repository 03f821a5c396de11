"""
Declarative CSS rule extraction over a DOM snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import soupsieve
from bs4 import BeautifulSoup, Tag

from pricescout.scraping.config.models import FieldAttribute, ScrapingConfig, ScrapingField
from pricescout.scraping.extraction.dom import (
    absolutize,
    attribute_text,
    best_image_source,
    clean_text,
    image_node,
    link_href,
)
from pricescout.scraping.extraction.strategies import FallbackStrategy
from pricescout.scraping.logging_utils import log_event
from pricescout.scraping.types import RawRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractorSpec:
    """
    The subset of a scrape config the extractor needs for one page.
    """

    list_selector: str
    fields: tuple[ScrapingField, ...]
    max_items: int | None = None
    fallback: FallbackStrategy | None = None

    @property
    def required_labels(self) -> frozenset[str]:
        return frozenset(item.label for item in self.fields if item.required)

    @classmethod
    def from_config(
        cls,
        config: ScrapingConfig,
        *,
        fallback: FallbackStrategy | None = None,
        max_items: int | None = None,
    ) -> "ExtractorSpec":
        return cls(
            list_selector=config.list_selector,
            fields=config.fields,
            max_items=max_items if max_items is not None else config.max_items,
            fallback=fallback,
        )


@dataclass
class ExtractionOutcome:
    records: list[RawRecord] = field(default_factory=list)
    matched: int = 0
    dropped: int = 0
    failed: int = 0
    used_fallback: bool = False


class ExtractionRuleEngine:
    """
    Applies field rules to every list element of a page snapshot.
    """

    def extract(self, *, html: str, base_url: str, spec: ExtractorSpec) -> list[RawRecord]:
        return self.run(html=html, base_url=base_url, spec=spec).records

    def run(self, *, html: str, base_url: str, spec: ExtractorSpec) -> ExtractionOutcome:
        soup = BeautifulSoup(html, "html.parser")
        elements = soup.select(spec.list_selector)
        outcome = ExtractionOutcome(matched=len(elements))

        if not elements:
            if spec.fallback is not None:
                outcome.used_fallback = True
                outcome.records = spec.fallback.extract(
                    soup=soup,
                    base_url=base_url,
                    max_items=spec.max_items,
                )
                log_event(
                    logger,
                    logging.INFO,
                    "fallback_extraction_used",
                    strategy=spec.fallback.name,
                    page_url=base_url,
                    records=len(outcome.records),
                )
            return outcome

        if spec.max_items is not None:
            elements = elements[: spec.max_items]

        required = spec.required_labels
        for position, element in enumerate(elements):
            try:
                values = {
                    item.label: self.read_field(element, item, base_url=base_url)
                    for item in spec.fields
                }
            except Exception as exc:  # noqa: BLE001
                outcome.failed += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "element_extraction_failed",
                    page_url=base_url,
                    position=position,
                    error=str(exc),
                )
                continue

            missing = [label for label in required if values.get(label) is None]
            if missing:
                outcome.dropped += 1
                log_event(
                    logger,
                    logging.DEBUG,
                    "record_missing_required_fields",
                    page_url=base_url,
                    position=position,
                    missing=sorted(missing),
                )
                continue
            outcome.records.append(RawRecord(values=values, position=position, page_url=base_url))
        return outcome

    @staticmethod
    def read_field(element: Tag, rule: ScrapingField, *, base_url: str) -> str | None:
        target = element.select_one(rule.css)
        if target is None and soupsieve.match(rule.css, element):
            target = element
        if target is None:
            return None

        if rule.attr is FieldAttribute.TEXT:
            return clean_text(target.get_text(" "))
        if rule.attr is FieldAttribute.SRC:
            image = image_node(target) or target
            return absolutize(base_url, best_image_source(image))
        if rule.attr is FieldAttribute.HREF:
            return absolutize(base_url, link_href(target))
        return attribute_text(target, rule.data_attribute or "")
