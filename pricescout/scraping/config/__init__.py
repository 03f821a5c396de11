"""
Config helpers for browser scrape jobs.
"""

from pricescout.scraping.config.loader import (
    get_scraper_settings,
    load_site_configs,
    parse_scraping_config,
)
from pricescout.scraping.config.models import (
    FieldAttribute,
    PaginationMode,
    ScraperSettings,
    ScrapingConfig,
    ScrapingField,
)

__all__ = [
    "FieldAttribute",
    "PaginationMode",
    "ScraperSettings",
    "ScrapingConfig",
    "ScrapingField",
    "get_scraper_settings",
    "load_site_configs",
    "parse_scraping_config",
]
