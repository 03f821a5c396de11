"""
Service layer exports.
"""

from pricescout.services.scrape_job_service import (
    ScrapeJobService,
    SiteScrapeSummary,
    get_scrape_job_service,
)

__all__ = ["ScrapeJobService", "SiteScrapeSummary", "get_scrape_job_service"]
