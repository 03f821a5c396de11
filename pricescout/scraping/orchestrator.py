"""
Scrape orchestrator: drives one job from session acquisition to a result.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any

from pricescout.scraping.browser.rendered_dom import render_dom
from pricescout.scraping.browser.session import BrowserSessionManager
from pricescout.scraping.config.models import (
    PaginationMode,
    ScraperSettings,
    ScrapingConfig,
    competitor_name_from_url,
)
from pricescout.scraping.enrichment import ProductEnrichmentCollaborator, enrich_products
from pricescout.scraping.errors import ConfigurationError, ScrapingError
from pricescout.scraping.extraction.page_query import BrowserPageQuery, HtmlPageQuery, PageQuery
from pricescout.scraping.extraction.promo import PromoCarouselExtractor, slides_to_carousels
from pricescout.scraping.extraction.rules import ExtractionRuleEngine, ExtractorSpec
from pricescout.scraping.extraction.strategies import FallbackStrategyRegistry
from pricescout.scraping.logging_utils import log_context, log_event
from pricescout.scraping.navigation import NavigationController
from pricescout.scraping.normalization import ProductNormalizer
from pricescout.scraping.pagination import PaginationDriver
from pricescout.scraping.types import (
    JobState,
    PromoScrapeResult,
    ScrapedProduct,
    ScrapingResult,
    SiteContext,
)

logger = logging.getLogger(__name__)

PREVIEW_MAX_ITEMS = 10
PROMO_SCROLL_STEPS = 10

Renderer = Callable[..., Awaitable[str]]


@dataclass
class _JobRun:
    """
    Mutable per-job accumulator; never shared between jobs.
    """

    job_id: str
    config: ScrapingConfig
    started: float
    state: JobState = JobState.IDLE
    products: list[ScrapedProduct] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)
    pages: int = 0
    enrich: bool = True

    @property
    def item_ceiling_reached(self) -> bool:
        return self.config.max_items is not None and len(self.products) >= self.config.max_items


class ScrapeOrchestrator:
    """
    Runs scrape jobs: Idle -> Initializing -> Paginating -> Finalizing -> Done | Failed.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        session_manager: BrowserSessionManager | None = None,
        navigator: NavigationController | None = None,
        pagination: PaginationDriver | None = None,
        normalizer: ProductNormalizer | None = None,
        strategies: FallbackStrategyRegistry | None = None,
        engine: ExtractionRuleEngine | None = None,
        enricher: ProductEnrichmentCollaborator | None = None,
        renderer: Renderer = render_dom,
        promo_extractor: PromoCarouselExtractor | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._sessions = session_manager or BrowserSessionManager(settings=settings)
        self._navigator = navigator or NavigationController(
            timeout_ms=settings.navigation_timeout_ms,
            settle_timeout_ms=settings.settle_timeout_ms,
        )
        self._pagination = pagination or PaginationDriver(settle_delay_ms=settings.pagination_settle_ms)
        self._normalizer = normalizer or ProductNormalizer()
        self._strategies = strategies or FallbackStrategyRegistry()
        self._engine = engine or ExtractionRuleEngine()
        self._enricher = enricher
        self._renderer = renderer
        self._promo_extractor = promo_extractor or PromoCarouselExtractor()
        self._rng = rng or random.Random()

    async def preview(self, config: ScrapingConfig, *, enrich: bool = True) -> ScrapingResult:
        """
        Single-page sample run: at most ten items, no pagination.
        """

        return await self.run(
            replace(config, max_items=PREVIEW_MAX_ITEMS, pagination_mode=PaginationMode.NONE),
            enrich=enrich,
        )

    async def run(self, config: ScrapingConfig, *, enrich: bool = True) -> ScrapingResult:
        """
        Scrape every page of ``config``. With ``enrich=False`` the enrichment
        step is left to a later ``enrich()`` call.
        """

        job = _JobRun(
            job_id=uuid.uuid4().hex[:12],
            config=config,
            started=time.perf_counter(),
            enrich=enrich,
        )
        with log_context(job_id=job.job_id, competitor=config.name):
            return await self._execute(job)

    async def _execute(self, job: _JobRun) -> ScrapingResult:
        config = job.config
        self._transition(job, JobState.INITIALIZING, start_url=config.start_url)

        try:
            fallback = self._strategies.create(config.fallback_strategy, keywords=config.fallback_keywords)
        except ConfigurationError as exc:
            return self._fail(job, str(exc))

        try:
            handle = await self._sessions.acquire()
        except ScrapingError as exc:
            return self._fail(job, f"Browser session unavailable: {exc}")

        try:
            page = handle.page
            try:
                await self._navigator.goto(page, config.start_url)
            except Exception as exc:  # noqa: BLE001
                return self._fail(job, f"Failed to load {config.start_url}: {exc}")

            if not await self._navigator.settle(page):
                job.errors.append(
                    f"Page {config.start_url} did not reach network idle within "
                    f"{self._settings.settle_timeout_ms}ms; extracting anyway."
                )
            if config.wait_for_selector and not await self._navigator.wait_for_selector(
                page,
                config.wait_for_selector,
                timeout_ms=self._settings.settle_timeout_ms,
            ):
                job.errors.append(f"Selector '{config.wait_for_selector}' did not appear on the start page.")
            await asyncio.sleep(config.delay_ms / 1000)

            await self._paginate(
                job,
                page=page,
                query=BrowserPageQuery(page, engine=self._engine),
                spec=ExtractorSpec.from_config(config, fallback=fallback),
            )
        finally:
            await self._sessions.release(handle)

        return await self._finalize(job)

    async def run_rendered(self, config: ScrapingConfig) -> ScrapingResult:
        """
        Single-page variant that extracts from a subprocess-rendered DOM.
        """

        single_page = replace(config, pagination_mode=PaginationMode.NONE)
        job = _JobRun(job_id=uuid.uuid4().hex[:12], config=single_page, started=time.perf_counter())
        with log_context(job_id=job.job_id, competitor=config.name, variant="rendered"):
            return await self._execute_rendered(job)

    async def _execute_rendered(self, job: _JobRun) -> ScrapingResult:
        config = job.config
        self._transition(job, JobState.INITIALIZING, start_url=config.start_url)
        try:
            fallback = self._strategies.create(config.fallback_strategy, keywords=config.fallback_keywords)
            html = await self._renderer(
                config.start_url,
                chromium_path=self._settings.chromium_executable_path,
                timeout_seconds=self._settings.render_timeout_seconds,
            )
        except ScrapingError as exc:
            return self._fail(job, str(exc))

        self._transition(job, JobState.PAGINATING, page=1)
        job.pages = 1
        await self._scrape_page(
            job,
            page=None,
            query=HtmlPageQuery(html, config.start_url, engine=self._engine),
            spec=ExtractorSpec.from_config(config, fallback=fallback),
        )
        return await self._finalize(job)

    async def scrape_promotions(self, url: str) -> PromoScrapeResult:
        started = time.perf_counter()
        competitor = competitor_name_from_url(url)
        log_event(logger, logging.INFO, "promo_scrape_started", url=url)
        try:
            async with self._sessions.session() as handle:
                await self._navigator.goto(handle.page, url)
                await self._navigator.settle(handle.page)
                await self._navigator.scroll_to_bottom_incrementally(
                    handle.page,
                    steps=PROMO_SCROLL_STEPS,
                    step_delay_ms=self._settings.scroll_step_delay_ms,
                )
                slides = await self._promo_extractor.extract(BrowserPageQuery(handle.page, engine=self._engine))
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.ERROR, "promo_scrape_failed", url=url, error=str(exc))
            return PromoScrapeResult(
                success=False,
                url=url,
                slides=[],
                carousels=[],
                errors=[str(exc)],
                execution_time_ms=_elapsed_ms(started),
            )
        return PromoScrapeResult(
            success=True,
            url=url,
            slides=slides,
            carousels=slides_to_carousels(slides, competitor=competitor),
            errors=[],
            execution_time_ms=_elapsed_ms(started),
        )

    async def _paginate(self, job: _JobRun, *, page: Any, query: PageQuery, spec: ExtractorSpec) -> None:
        config = job.config
        max_pages = config.max_pages or self._settings.default_max_pages
        try:
            while True:
                job.pages += 1
                self._transition(job, JobState.PAGINATING, page=job.pages)
                await self._scrape_page(job, page=page, query=query, spec=spec)

                if job.item_ceiling_reached or job.pages >= max_pages:
                    break
                if not await self._pagination.advance(page, config):
                    break
                await asyncio.sleep(self._page_delay_seconds(config))
        except Exception as exc:  # noqa: BLE001
            job.errors.append(f"Scraping stopped on page {job.pages}: {exc}")
            log_event(
                logger,
                logging.ERROR,
                "pagination_loop_failed",
                page=job.pages,
                error=str(exc),
            )

    async def _scrape_page(self, job: _JobRun, *, page: Any, query: PageQuery, spec: ExtractorSpec) -> None:
        config = job.config
        try:
            if config.scroll_steps and page is not None:
                await self._navigator.scroll_to_bottom_incrementally(
                    page,
                    steps=config.scroll_steps,
                    step_delay_ms=self._settings.scroll_step_delay_ms,
                )
            outcome = await query.evaluate_detailed(spec)
        except Exception as exc:  # noqa: BLE001
            job.errors.append(f"Extraction failed on page {job.pages}: {exc}")
            log_event(
                logger,
                logging.WARNING,
                "page_extraction_failed",
                page=job.pages,
                error=str(exc),
            )
            return

        page_url = query.url
        if outcome.matched == 0 and not outcome.records:
            job.errors.append(f"Selector '{config.list_selector}' matched nothing on page {job.pages} ({page_url}).")

        context = SiteContext(
            competitor=config.name or competitor_name_from_url(config.start_url),
            page_url=page_url,
            unique_key_labels=config.unique_key_labels,
            required_labels=config.required_labels,
            category=config.category,
        )
        added = 0
        for product in self._normalizer.normalize(outcome.records, context):
            if product.fingerprint in job.seen:
                continue
            job.seen.add(product.fingerprint)
            job.products.append(product)
            added += 1

        log_event(
            logger,
            logging.INFO,
            "page_scraped",
            page=job.pages,
            page_url=page_url,
            matched=outcome.matched,
            extracted=len(outcome.records),
            added=added,
            fallback=outcome.used_fallback,
            total=len(job.products),
        )

    async def _finalize(self, job: _JobRun) -> ScrapingResult:
        self._transition(job, JobState.FINALIZING, pages=job.pages, items=len(job.products))
        products = job.products
        if job.config.max_items is not None:
            products = products[: job.config.max_items]
        if job.enrich:
            products = await self._enrich_within_budget(products, job.errors)

        result = ScrapingResult(
            success=True,
            data=products,
            total_items=len(products),
            pages=job.pages,
            errors=job.errors,
            execution_time_ms=_elapsed_ms(job.started),
        )
        self._transition(
            job,
            JobState.DONE,
            items=result.total_items,
            pages=result.pages,
            errors=len(result.errors),
            execution_time_ms=result.execution_time_ms,
        )
        return result

    async def enrich(self, result: ScrapingResult) -> ScrapingResult:
        """
        Apply enrichment to a finished result under its own time budget.
        """

        if self._enricher is None or not result.success or not result.data:
            return result
        started = time.perf_counter()
        errors = list(result.errors)
        products = await self._enrich_within_budget(result.data, errors)
        return replace(
            result,
            data=products,
            total_items=len(products),
            errors=errors,
            execution_time_ms=result.execution_time_ms + _elapsed_ms(started),
        )

    async def _enrich_within_budget(
        self,
        products: list[ScrapedProduct],
        errors: list[str],
    ) -> list[ScrapedProduct]:
        if self._enricher is None or not products:
            return products
        budget = self._settings.enrichment_timeout_seconds
        try:
            enriched, notes = await asyncio.wait_for(
                enrich_products(products, self._enricher),
                timeout=budget,
            )
        except asyncio.TimeoutError:
            errors.append(f"Enrichment exceeded {budget:g}s; heuristic values kept.")
            log_event(logger, logging.WARNING, "product_enrichment_timeout", timeout_seconds=budget)
            return products
        errors.extend(notes)
        return enriched

    def _fail(self, job: _JobRun, message: str) -> ScrapingResult:
        job.errors.append(message)
        self._transition(job, JobState.FAILED, error=message)
        return ScrapingResult(
            success=False,
            data=[],
            total_items=0,
            pages=job.pages,
            errors=job.errors,
            execution_time_ms=_elapsed_ms(job.started),
        )

    def _page_delay_seconds(self, config: ScrapingConfig) -> float:
        jitter = self._rng.uniform(0, self._settings.page_jitter_ms) if self._settings.page_jitter_ms else 0.0
        return (config.delay_ms + jitter) / 1000

    @staticmethod
    def _transition(job: _JobRun, state: JobState, **fields: Any) -> None:
        previous = job.state
        job.state = state
        log_event(
            logger,
            logging.ERROR if state is JobState.FAILED else logging.INFO,
            "job_state_changed",
            previous=previous.value,
            state=state.value,
            **fields,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
