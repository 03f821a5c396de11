"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

import soupsieve

from pricescout.scraping.errors import ConfigurationError

DEFAULT_FALLBACK_KEYWORDS: tuple[str, ...] = ("charger", "battery", "jump", "starter")


class PaginationMode(str, Enum):
    CLICK = "click"
    SCROLL = "scroll"
    NONE = "none"


class FieldAttribute(str, Enum):
    TEXT = "text"
    SRC = "src"
    HREF = "href"
    DATA_ATTRIBUTE = "data-attribute"


@dataclass(frozen=True)
class ScrapingField:
    """
    One declarative field rule applied inside each list item.
    """

    label: str
    css: str
    attr: FieldAttribute = FieldAttribute.TEXT
    data_attribute: str | None = None
    required: bool = False
    unique_key: bool = False

    def __post_init__(self) -> None:
        if not self.label.strip():
            raise ConfigurationError("Scraping field label must not be empty.")
        if not isinstance(self.attr, FieldAttribute):
            try:
                object.__setattr__(self, "attr", FieldAttribute(str(self.attr).strip().lower()))
            except ValueError as exc:
                allowed = ", ".join(item.value for item in FieldAttribute)
                raise ConfigurationError(
                    f"Field '{self.label}' has unknown attr '{self.attr}'. Allowed: {allowed}."
                ) from exc
        if self.attr is FieldAttribute.DATA_ATTRIBUTE and not self.data_attribute:
            raise ConfigurationError(
                f"Field '{self.label}' reads a data attribute but names none."
            )
        _ensure_css(self.css, context=f"field '{self.label}'")


@dataclass(frozen=True)
class ScrapingConfig:
    """
    Immutable description of one scrape job.
    """

    start_url: str
    list_selector: str
    fields: tuple[ScrapingField, ...]
    pagination_mode: PaginationMode = PaginationMode.NONE
    pagination_next: str | None = None
    max_pages: int | None = None
    max_items: int | None = None
    delay_ms: int = 1000
    name: str | None = None
    category: str | None = None
    fallback_strategy: str = "none"
    fallback_keywords: tuple[str, ...] = DEFAULT_FALLBACK_KEYWORDS
    scroll_steps: int = 0
    wait_for_selector: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))
        if not isinstance(self.fallback_keywords, tuple):
            object.__setattr__(self, "fallback_keywords", tuple(self.fallback_keywords))
        if not isinstance(self.pagination_mode, PaginationMode):
            try:
                mode = PaginationMode(str(self.pagination_mode).strip().lower())
            except ValueError as exc:
                allowed = ", ".join(item.value for item in PaginationMode)
                raise ConfigurationError(
                    f"Unknown pagination_mode='{self.pagination_mode}'. Allowed: {allowed}."
                ) from exc
            object.__setattr__(self, "pagination_mode", mode)

        parsed = urlparse(self.start_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"start_url must be an absolute http(s) URL: {self.start_url!r}")
        _ensure_css(self.list_selector, context="list_selector")

        if not self.fields:
            raise ConfigurationError("At least one scraping field is required.")
        labels = [item.label for item in self.fields]
        if len(set(labels)) != len(labels):
            raise ConfigurationError(f"Field labels must be unique: {labels}")
        if not any(item.unique_key for item in self.fields):
            raise ConfigurationError(
                "At least one field must be marked unique_key so records can be deduplicated."
            )

        if self.pagination_mode is PaginationMode.CLICK and not self.pagination_next:
            raise ConfigurationError("pagination_mode='click' requires pagination_next.")
        for attribute in ("max_pages", "max_items"):
            value = getattr(self, attribute)
            if value is not None and value < 1:
                raise ConfigurationError(f"{attribute} must be positive when set, got {value}.")
        if self.delay_ms < 0 or self.scroll_steps < 0:
            raise ConfigurationError("delay_ms and scroll_steps must not be negative.")

        if not self.name:
            object.__setattr__(self, "name", competitor_name_from_url(self.start_url))

    @property
    def unique_key_labels(self) -> tuple[str, ...]:
        return tuple(item.label for item in self.fields if item.unique_key)

    @property
    def required_labels(self) -> frozenset[str]:
        return frozenset(item.label for item in self.fields if item.required)


@dataclass(frozen=True)
class ScraperSettings:
    """
    Process-level runtime settings for the scraping engine.
    """

    site_config_path: str
    remote_browser_endpoint: str | None = None
    remote_browser_token: str | None = None
    chromium_executable_path: str | None = None
    headless: bool = True
    navigation_timeout_ms: int = 60_000
    settle_timeout_ms: int = 10_000
    protocol_timeout_ms: int = 90_000
    render_timeout_seconds: float = 15.0
    default_max_pages: int = 20
    pagination_settle_ms: int = 2_000
    page_jitter_ms: int = 2_000
    scroll_step_delay_ms: int = 100
    job_timeout_seconds: float = 300.0
    enrichment_timeout_seconds: float = 60.0
    max_concurrent_jobs: int = 2


def competitor_name_from_url(url: str) -> str:
    """
    Derive a display name from a URL host, e.g. ``www.toolkitdepot.com.au`` -> ``Toolkitdepot``.
    """

    hostname = (urlparse(url).hostname or "").removeprefix("www.")
    first = hostname.split(".")[0] if hostname else ""
    return first.capitalize() if first else "Unknown Competitor"


def _ensure_css(selector: str, *, context: str) -> None:
    if not selector or not selector.strip():
        raise ConfigurationError(f"{context} selector must not be empty.")
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as exc:
        raise ConfigurationError(f"{context} selector {selector!r} is not valid CSS: {exc}") from exc
