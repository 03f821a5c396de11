"""
Structured logging helpers for scraping workflows.

Every line is one compact JSON object. Fields bound with ``log_context``
are merged into each line emitted inside the block, so navigation and
pagination logs carry the job they belong to without threading ids
through every call.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_bound_fields: ContextVar[dict[str, Any]] = ContextVar("scrape_log_fields", default={})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    token = _bound_fields.set({**_bound_fields.get(), **fields})
    try:
        yield
    finally:
        _bound_fields.reset(token)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **_bound_fields.get(), **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
