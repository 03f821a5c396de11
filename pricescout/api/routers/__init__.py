"""
pricescout/api/routers package marker.
"""

from pricescout.api.routers.scrape_jobs import router as scrape_jobs_router

__all__ = ["scrape_jobs_router"]
