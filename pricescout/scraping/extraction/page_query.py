"""
Page query capability: the narrow surface the orchestrator and extractors use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup

from pricescout.scraping.extraction.rules import ExtractionOutcome, ExtractionRuleEngine, ExtractorSpec
from pricescout.scraping.types import RawRecord


class PageQuery(ABC):
    """
    Read-only view over one loaded page.
    """

    supports_layout = True

    @abstractmethod
    async def evaluate_detailed(self, spec: ExtractorSpec) -> ExtractionOutcome:
        """
        Run the extraction rules against the current page state.
        """

    async def evaluate(self, spec: ExtractorSpec) -> list[RawRecord]:
        outcome = await self.evaluate_detailed(spec)
        return outcome.records

    @abstractmethod
    async def query_all(self, selector: str) -> list[Any]:
        """
        Return element handles matching ``selector``.
        """

    @abstractmethod
    async def bounding_box(self, element: Any) -> dict[str, float] | None:
        """
        Return the element's layout box, or None when layout is unknown.
        """

    @abstractmethod
    async def outer_html(self, element: Any) -> str:
        """
        Return the element's serialized markup.
        """

    @abstractmethod
    async def html(self) -> str:
        """
        Return the serialized document.
        """

    @property
    @abstractmethod
    def url(self) -> str:
        """
        The URL relative links resolve against.
        """


class BrowserPageQuery(PageQuery):
    """
    PageQuery over a live Playwright page; extraction runs on a DOM snapshot.
    """

    def __init__(self, page: Any, *, engine: ExtractionRuleEngine | None = None) -> None:
        self._page = page
        self._engine = engine or ExtractionRuleEngine()

    @property
    def url(self) -> str:
        return str(self._page.url)

    async def html(self) -> str:
        return str(await self._page.content())

    async def evaluate_detailed(self, spec: ExtractorSpec) -> ExtractionOutcome:
        html = await self._page.content()
        return self._engine.run(html=html, base_url=self.url, spec=spec)

    async def query_all(self, selector: str) -> list[Any]:
        return list(await self._page.query_selector_all(selector))

    async def bounding_box(self, element: Any) -> dict[str, float] | None:
        return await element.bounding_box()

    async def outer_html(self, element: Any) -> str:
        return str(await element.evaluate("(node) => node.outerHTML"))


class HtmlPageQuery(PageQuery):
    """
    PageQuery over static HTML, e.g. a subprocess-rendered DOM.
    """

    supports_layout = False

    def __init__(self, html: str, url: str, *, engine: ExtractionRuleEngine | None = None) -> None:
        self._html = html
        self._url = url
        self._engine = engine or ExtractionRuleEngine()
        self._soup = BeautifulSoup(html, "html.parser")

    @property
    def url(self) -> str:
        return self._url

    async def html(self) -> str:
        return self._html

    async def evaluate_detailed(self, spec: ExtractorSpec) -> ExtractionOutcome:
        return self._engine.run(html=self._html, base_url=self._url, spec=spec)

    async def query_all(self, selector: str) -> list[Any]:
        return list(self._soup.select(selector))

    async def bounding_box(self, element: Any) -> dict[str, float] | None:
        return None

    async def outer_html(self, element: Any) -> str:
        return str(element)
