"""
tests/test_promo.py

Unit tests for hero carousel extraction over static HTML.
"""

from __future__ import annotations

import asyncio

from pricescout.scraping.extraction.page_query import HtmlPageQuery
from pricescout.scraping.extraction.promo import (
    PromoCarouselExtractor,
    extract_promo_text,
    slide_fingerprint,
    slides_to_carousels,
)
from pricescout.scraping.types import PromoSlide

HOME_URL = "https://www.sydneytools.com.au/"

HOME_PAGE = """
<html><body>
  <nav><a href="/account"><img src="/logo.svg" alt="Sydney Tools"></a></nav>
  <div class="slick-slider">
    <div class="slick-slide"><a href="/promo/milwaukee"><img data-src="/hero/milwaukee.jpg" alt="Milwaukee SAVE $200"></a></div>
    <div class="slick-slide"><a href="/promo/clearance"><img src="/hero/clearance.jpg"><span>Clearance event</span></a></div>
  </div>
</body></html>
"""


def test_carousel_container_scopes_slides() -> None:
    slides = asyncio.run(PromoCarouselExtractor().extract(HtmlPageQuery(HOME_PAGE, HOME_URL)))

    assert [slide.link for slide in slides] == [
        "https://www.sydneytools.com.au/promo/milwaukee",
        "https://www.sydneytools.com.au/promo/clearance",
    ]
    assert slides[0].image == "https://www.sydneytools.com.au/hero/milwaukee.jpg"
    assert slides[0].label == "Milwaukee SAVE $200"
    assert slides[1].label == "Clearance event"


def test_page_without_carousel_scans_whole_document() -> None:
    html = '<section><a href="/deal"><img src="/deal.png" alt="Deal"></a></section>'

    slides = asyncio.run(PromoCarouselExtractor().extract(HtmlPageQuery(f"<div>{html}</div>", HOME_URL)))

    assert len(slides) == 1
    assert slides[0].link == "https://www.sydneytools.com.au/deal"


def test_slides_are_deduplicated_on_image_and_link() -> None:
    html = (
        '<ul><li><a href="/a"><img src="/x.jpg"></a></li>'
        '<li><a href="/a"><img src="/x.jpg"></a></li>'
        '<li><a href="/b"><img src="/x.jpg"></a></li></ul>'
    )

    slides = PromoCarouselExtractor.slides_from_html(html, base_url=HOME_URL)

    assert [slide.link for slide in slides] == [
        "https://www.sydneytools.com.au/a",
        "https://www.sydneytools.com.au/b",
    ]


def test_extract_promo_text() -> None:
    assert extract_promo_text("Milwaukee save $200 today") == "SAVE $200"
    assert extract_promo_text("Up to 30% off NOCO") == "30% OFF"
    assert extract_promo_text("Winter Clearance") == "CLEARANCE"
    assert extract_promo_text(None) == "FEATURED"


def test_slides_to_carousels_caps_at_six() -> None:
    slides = [
        PromoSlide(
            image=f"https://cdn.example.com/{index}.jpg",
            link=None,
            label=None,
            fingerprint=slide_fingerprint(f"https://cdn.example.com/{index}.jpg", None, None),
        )
        for index in range(8)
    ]

    carousels = slides_to_carousels(slides, competitor="Sydneytools")

    assert len(carousels) == 6
    assert carousels[0]["title"] == "Promotion 1"
    assert carousels[5]["position"] == 5
    assert all(row["active"] for row in carousels)
    assert len({row["fingerprint"] for row in carousels}) == 6
