"""
Environment + JSON config loader for scrape jobs.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from pricescout.env import get_bool_env, get_float_env, get_int_env, get_str_env, load_env_files
from pricescout.scraping.config.models import (
    DEFAULT_FALLBACK_KEYWORDS,
    ScraperSettings,
    ScrapingConfig,
    ScrapingField,
)
from pricescout.scraping.errors import ConfigurationError


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _resolve_config_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


def _optional_env(name: str) -> str | None:
    value = get_str_env(name, "")
    return value or None


@lru_cache(maxsize=1)
def get_scraper_settings() -> ScraperSettings:
    """
    Return cached scraper settings from environment variables.
    """

    load_env_files()
    config_path = get_str_env(
        "SCRAPER_SITE_CONFIG_PATH",
        "pricescout/scraping/config/sites.json",
    )
    return ScraperSettings(
        site_config_path=str(_resolve_config_path(config_path)),
        remote_browser_endpoint=_optional_env("BROWSERLESS_WSS"),
        remote_browser_token=_optional_env("BROWSERLESS_TOKEN"),
        chromium_executable_path=_optional_env("SCRAPER_CHROMIUM_PATH"),
        headless=get_bool_env("SCRAPER_HEADLESS", True),
        navigation_timeout_ms=max(1_000, get_int_env("SCRAPER_NAVIGATION_TIMEOUT_MS", 60_000)),
        settle_timeout_ms=max(0, get_int_env("SCRAPER_SETTLE_TIMEOUT_MS", 10_000)),
        protocol_timeout_ms=max(1_000, get_int_env("SCRAPER_PROTOCOL_TIMEOUT_MS", 90_000)),
        render_timeout_seconds=max(1.0, get_float_env("SCRAPER_RENDER_TIMEOUT_SECONDS", 15.0)),
        default_max_pages=max(1, get_int_env("SCRAPER_DEFAULT_MAX_PAGES", 20)),
        pagination_settle_ms=max(0, get_int_env("SCRAPER_PAGINATION_SETTLE_MS", 2_000)),
        page_jitter_ms=max(0, get_int_env("SCRAPER_PAGE_JITTER_MS", 2_000)),
        scroll_step_delay_ms=max(0, get_int_env("SCRAPER_SCROLL_STEP_DELAY_MS", 100)),
        job_timeout_seconds=max(1.0, get_float_env("SCRAPER_JOB_TIMEOUT_SECONDS", 300.0)),
        max_concurrent_jobs=max(1, get_int_env("SCRAPER_MAX_CONCURRENT_JOBS", 2)),
        enrichment_timeout_seconds=max(1.0, get_float_env("ENRICHMENT_TIMEOUT_SECONDS", 60.0)),
    )


def load_site_configs(*, config_path: str) -> list[ScrapingConfig]:
    """
    Load per-site scraping configurations from a JSON file.
    """

    path = _resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Site config file not found: {path}")

    raw_data = json.loads(path.read_text(encoding="utf-8"))
    sites = raw_data.get("sites", [])
    if not isinstance(sites, list):
        raise ConfigurationError("Invalid site config: 'sites' must be a list.")

    parsed: list[ScrapingConfig] = []
    for entry in sites:
        if not isinstance(entry, dict):
            continue
        if not _optional_bool(_pick(entry, "enabled"), True):
            continue
        parsed.append(parse_scraping_config(entry))
    return parsed


def parse_scraping_config(payload: Mapping[str, Any]) -> ScrapingConfig:
    """
    Build a ScrapingConfig from a snake_case or camelCase mapping.
    """

    start_url = _optional_str(_pick(payload, "start_url", "startUrl"))
    list_selector = _optional_str(_pick(payload, "list_selector", "listSelector"))
    if not start_url or not list_selector:
        raise ConfigurationError("Site config requires start_url and list_selector.")

    raw_fields = _pick(payload, "fields")
    if not isinstance(raw_fields, list):
        raise ConfigurationError(f"Site config for {start_url} must define a 'fields' list.")

    keywords = _pick(payload, "fallback_keywords", "fallbackKeywords")
    if isinstance(keywords, list):
        fallback_keywords = tuple(
            item.strip().lower() for item in keywords if isinstance(item, str) and item.strip()
        )
    else:
        fallback_keywords = DEFAULT_FALLBACK_KEYWORDS

    return ScrapingConfig(
        start_url=start_url,
        list_selector=list_selector,
        fields=tuple(_parse_field(item) for item in raw_fields if isinstance(item, dict)),
        pagination_mode=_optional_str(_pick(payload, "pagination_mode", "paginationMode")) or "none",
        pagination_next=_optional_str(_pick(payload, "pagination_next", "paginationNext")),
        max_pages=_optional_int(_pick(payload, "max_pages", "maxPages")),
        max_items=_optional_int(_pick(payload, "max_items", "maxItems")),
        delay_ms=_int_or_default(_pick(payload, "delay_ms", "delay"), 1000),
        name=_optional_str(_pick(payload, "name")),
        category=_optional_str(_pick(payload, "category")),
        fallback_strategy=_optional_str(_pick(payload, "fallback_strategy", "fallbackStrategy")) or "none",
        fallback_keywords=fallback_keywords,
        scroll_steps=_int_or_default(_pick(payload, "scroll_steps", "scrollSteps"), 0),
        wait_for_selector=_optional_str(_pick(payload, "wait_for_selector", "waitForSelector")),
    )


def _parse_field(entry: Mapping[str, Any]) -> ScrapingField:
    return ScrapingField(
        label=str(_pick(entry, "label") or "").strip(),
        css=str(_pick(entry, "css", "selector") or "").strip(),
        attr=_optional_str(_pick(entry, "attr")) or "text",
        data_attribute=_optional_str(_pick(entry, "data_attribute", "dataAttribute")),
        required=_optional_bool(_pick(entry, "required"), False),
        unique_key=_optional_bool(_pick(entry, "unique_key", "uniqueKey"), False),
    )


def _pick(entry: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _int_or_default(value: object, default: int) -> int:
    parsed = _optional_int(value)
    return default if parsed is None else parsed


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
