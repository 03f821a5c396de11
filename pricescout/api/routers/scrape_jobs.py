"""
pricescout/api/routers/scrape_jobs.py

Scrape job submission endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from pricescout.schemas.scrape_jobs import (
    PromoScrapeResponse,
    PromotionsRequest,
    ScrapeJobRequest,
    ScrapeJobResponse,
)
from pricescout.scraping.config.models import ScrapingConfig
from pricescout.scraping.errors import ConfigurationError
from pricescout.services.scrape_job_service import ScrapeJobService, get_scrape_job_service

router = APIRouter(tags=["scrape-jobs"])


def _to_config(payload: ScrapeJobRequest) -> ScrapingConfig:
    try:
        return payload.to_config()
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post("/scrape-jobs", response_model=ScrapeJobResponse)
async def submit_scrape_job(
    payload: ScrapeJobRequest,
    service: ScrapeJobService = Depends(get_scrape_job_service),
) -> ScrapeJobResponse:
    """
    Run one scrape job to completion and return its products.
    """

    result = await service.submit(_to_config(payload))
    return ScrapeJobResponse.from_result(result)


@router.post("/scrape-jobs/preview", response_model=ScrapeJobResponse)
async def preview_scrape_job(
    payload: ScrapeJobRequest,
    service: ScrapeJobService = Depends(get_scrape_job_service),
) -> ScrapeJobResponse:
    """
    Sample the first page only (at most ten items) to check selectors.
    """

    result = await service.submit(_to_config(payload), preview=True)
    return ScrapeJobResponse.from_result(result)


@router.post("/promotions", response_model=PromoScrapeResponse)
async def scrape_promotions(
    payload: PromotionsRequest,
    service: ScrapeJobService = Depends(get_scrape_job_service),
) -> PromoScrapeResponse:
    result = await service.scrape_promotions(str(payload.url))
    return PromoScrapeResponse.from_result(result)
