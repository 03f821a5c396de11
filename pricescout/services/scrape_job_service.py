"""
pricescout/services/scrape_job_service.py

Service orchestration for browser scrape jobs.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from pricescout.env import get_bool_env, get_str_env, load_env_files
from pricescout.scraping.config import ScraperSettings, ScrapingConfig, get_scraper_settings, load_site_configs
from pricescout.scraping.enrichment import ProductEnrichmentCollaborator
from pricescout.scraping.logging_utils import log_event
from pricescout.scraping.orchestrator import ScrapeOrchestrator
from pricescout.scraping.storage import InMemorySnapshotStorage, ProductSnapshotStorage
from pricescout.scraping.types import PromoScrapeResult, ScrapingResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteScrapeSummary:
    """
    Summary for one configured site run.
    """

    competitor: str
    result: ScrapingResult
    snapshots_recorded: int = 0
    status: str = "success"
    errors: list[str] = field(default_factory=list)


class ScrapeJobService:
    """
    Submits scrape jobs with a hard timeout and bounded concurrency.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        orchestrator: ScrapeOrchestrator | None = None,
        storage: ProductSnapshotStorage | None = None,
    ) -> None:
        self._settings = settings
        self._orchestrator = orchestrator or ScrapeOrchestrator(settings=settings)
        self._storage = storage

    async def submit(self, config: ScrapingConfig, *, preview: bool = False) -> ScrapingResult:
        """
        Run one job under the job timeout; enrichment follows with its own budget.
        """

        if preview:
            job = self._orchestrator.preview(config, enrich=False)
        else:
            job = self._orchestrator.run(config, enrich=False)
        try:
            result = await asyncio.wait_for(job, timeout=self._settings.job_timeout_seconds)
        except asyncio.TimeoutError:
            message = f"Scrape job exceeded {self._settings.job_timeout_seconds:g}s and was cancelled."
            log_event(
                logger,
                logging.ERROR,
                "scrape_job_timeout",
                competitor=config.name,
                timeout_seconds=self._settings.job_timeout_seconds,
            )
            return ScrapingResult(
                success=False,
                data=[],
                total_items=0,
                pages=0,
                errors=[message],
                execution_time_ms=int(self._settings.job_timeout_seconds * 1000),
            )
        return await self._orchestrator.enrich(result)

    async def run_many(
        self,
        configs: Sequence[ScrapingConfig],
        *,
        preview: bool = False,
    ) -> list[ScrapingResult]:
        """
        Run jobs concurrently, at most ``max_concurrent_jobs`` at a time, in input order.
        """

        semaphore = asyncio.Semaphore(self._settings.max_concurrent_jobs)

        async def _bounded(config: ScrapingConfig) -> ScrapingResult:
            async with semaphore:
                return await self.submit(config, preview=preview)

        return list(await asyncio.gather(*(_bounded(config) for config in configs)))

    async def scrape_promotions(self, url: str) -> PromoScrapeResult:
        return await self._orchestrator.scrape_promotions(url)

    async def run_configured_sites(self, *, sites: Sequence[str] | None = None) -> list[SiteScrapeSummary]:
        configs = load_site_configs(config_path=self._settings.site_config_path)
        selected = self._select_sites(configs=configs, sites=sites)
        if not selected:
            raise ValueError("No enabled sites matched the run criteria.")

        results = await self.run_many(selected)
        summaries: list[SiteScrapeSummary] = []
        for config, result in zip(selected, results):
            competitor = config.name or "Unknown Competitor"
            recorded = 0
            errors = list(result.errors)
            if self._storage is not None and result.data:
                try:
                    recorded = self._storage.store(result.data, competitor=competitor)
                except Exception as exc:  # noqa: BLE001
                    errors.append(f"Storage failed: {exc}")
            status = "success"
            if not result.success:
                status = "failed"
            elif errors:
                status = "partial_success"
            summaries.append(
                SiteScrapeSummary(
                    competitor=competitor,
                    result=result,
                    snapshots_recorded=recorded,
                    status=status,
                    errors=errors,
                )
            )
            log_event(
                logger,
                logging.INFO if result.success else logging.ERROR,
                "site_scrape_completed",
                competitor=competitor,
                items=result.total_items,
                pages=result.pages,
                snapshots_recorded=recorded,
                status=status,
            )
        return summaries

    @staticmethod
    def _select_sites(
        *,
        configs: list[ScrapingConfig],
        sites: Sequence[str] | None,
    ) -> list[ScrapingConfig]:
        if not sites:
            return configs
        normalized = {item.strip().lower() for item in sites if item.strip()}
        if not normalized:
            return configs
        return [config for config in configs if (config.name or "").lower() in normalized]


def build_enricher() -> ProductEnrichmentCollaborator | None:
    """
    Build the LLM enricher when ENRICHMENT_ENABLED is set.
    """

    load_env_files()
    if not get_bool_env("ENRICHMENT_ENABLED", False):
        return None
    if not os.getenv("OPENAI_API_KEY", "").strip():
        logger.warning("ENRICHMENT_ENABLED is set but OPENAI_API_KEY is empty; enrichment disabled")
        return None

    from llm_enrichment import LLMProductEnricher, OpenAILLMAdapter

    adapter = OpenAILLMAdapter(model=get_str_env("ENRICHMENT_MODEL", "gpt-4o-mini"))
    return LLMProductEnricher(adapter)


@lru_cache(maxsize=1)
def get_scrape_job_service() -> ScrapeJobService:
    """
    Build and cache the scrape job service.
    """

    settings = get_scraper_settings()
    orchestrator = ScrapeOrchestrator(settings=settings, enricher=build_enricher())
    return ScrapeJobService(
        settings=settings,
        orchestrator=orchestrator,
        storage=InMemorySnapshotStorage(),
    )
