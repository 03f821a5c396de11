"""
Hero/promotional carousel extraction.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Sequence
from typing import Any

from bs4 import BeautifulSoup, Tag

from pricescout.scraping.extraction.dom import absolutize, best_image_source, clean_text
from pricescout.scraping.extraction.page_query import PageQuery
from pricescout.scraping.logging_utils import log_event
from pricescout.scraping.types import PromoSlide

logger = logging.getLogger(__name__)

CONTAINER_SELECTOR = ", ".join(
    (
        ".heroCarousel",
        ".swiper",
        ".swiper-container",
        ".slick-slider",
        ".owl-carousel",
        ".flickity-enabled",
        "[data-section-type='slideshow']",
        ".slideshow",
        ".slideshow-wrapper",
        "[data-nosto-ref]",
        ".glide",
        ".glide__track",
        ".hero-banner",
        ".homepage-carousel",
        ".banner-slider",
    )
)
SLIDE_SELECTOR = ", ".join(
    (
        ".swiper-slide",
        ".slick-slide",
        ".owl-item",
        ".glide__slide",
        ".slideshow__slide",
        ".carousel-item",
        "li",
        "div",
    )
)
ABOVE_FOLD_PX = 1200
MAX_CAROUSELS = 6
PROMO_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(\d+%\s*OFF)", re.IGNORECASE),
    re.compile(r"(SALE)", re.IGNORECASE),
    re.compile(r"(NEW)", re.IGNORECASE),
    re.compile(r"(CLEARANCE)", re.IGNORECASE),
    re.compile(r"(FREE\s+SHIPPING)", re.IGNORECASE),
    re.compile(r"(TRADE)", re.IGNORECASE),
    re.compile(r"(SAVE\s+\$?\d+)", re.IGNORECASE),
)


def slide_fingerprint(image: str, link: str | None, label: str | None) -> str:
    digest = hashlib.sha256("|".join((image, link or "", label or "")).encode("utf-8"))
    return digest.hexdigest()[:16]


class PromoCarouselExtractor:
    """
    Finds the first above-the-fold carousel and reads its image slides.
    """

    async def extract(self, query: PageQuery) -> list[PromoSlide]:
        container = await self._find_container(query)
        scope_html = await (query.outer_html(container) if container is not None else query.html())
        slides = self.slides_from_html(scope_html, base_url=query.url)
        log_event(
            logger,
            logging.INFO,
            "promo_slides_extracted",
            url=query.url,
            container_found=container is not None,
            slides=len(slides),
        )
        return slides

    async def _find_container(self, query: PageQuery) -> Any | None:
        for candidate in await query.query_all(CONTAINER_SELECTOR):
            if query.supports_layout:
                try:
                    box = await query.bounding_box(candidate)
                except Exception as exc:  # noqa: BLE001
                    log_event(logger, logging.DEBUG, "promo_container_box_failed", error=str(exc))
                    continue
                if box is None or box.get("y", 0) >= ABOVE_FOLD_PX:
                    continue
            markup = await query.outer_html(candidate)
            if BeautifulSoup(markup, "html.parser").find("img") is not None:
                return candidate
        return None

    @staticmethod
    def slides_from_html(html: str, *, base_url: str) -> list[PromoSlide]:
        soup = BeautifulSoup(html, "html.parser")
        seen: set[str] = set()
        slides: list[PromoSlide] = []
        for node in soup.select(SLIDE_SELECTOR):
            image_tag = node.find("img")
            if not isinstance(image_tag, Tag):
                continue
            image = absolutize(base_url, best_image_source(image_tag))
            if not image:
                continue
            anchor = node.find("a") or image_tag.find_parent("a")
            link = None
            if isinstance(anchor, Tag):
                link = absolutize(base_url, anchor.get("href") if isinstance(anchor.get("href"), str) else None)
            key = f"{image}|{link or ''}"
            if key in seen:
                continue
            seen.add(key)
            label = clean_text(image_tag.get("alt") if isinstance(image_tag.get("alt"), str) else None)
            if label is None and isinstance(anchor, Tag):
                label = clean_text(anchor.get_text(" "))
            slides.append(
                PromoSlide(
                    image=image,
                    link=link,
                    label=label,
                    fingerprint=slide_fingerprint(image, link, label),
                )
            )
        return slides


def extract_promo_text(label: str | None) -> str:
    for pattern in PROMO_TEXT_PATTERNS:
        match = pattern.search(label or "")
        if match:
            return match.group(1).upper()
    return "FEATURED"


def slides_to_carousels(slides: Sequence[PromoSlide], *, competitor: str) -> list[dict[str, Any]]:
    """
    Convert slides into carousel rows, keeping at most six.
    """

    return [
        {
            "competitor": competitor,
            "image_url": slide.image,
            "link_url": slide.link,
            "title": slide.label or f"Promotion {index + 1}",
            "promo_text": extract_promo_text(slide.label),
            "position": index,
            "active": True,
            "fingerprint": slide.fingerprint,
        }
        for index, slide in enumerate(slides[:MAX_CAROUSELS])
    ]
