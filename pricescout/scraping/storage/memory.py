"""
In-memory snapshot storage with per-fingerprint price history.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from pricescout.scraping.storage.base import ProductSnapshotStorage
from pricescout.scraping.types import ScrapedProduct


@dataclass(frozen=True)
class PriceSnapshot:
    fingerprint: str
    competitor: str
    price: Decimal | None
    original_price: Decimal | None
    version: int
    captured_at: datetime


class InMemorySnapshotStorage(ProductSnapshotStorage):
    """
    Keeps the latest product per fingerprint and a versioned price history.

    A snapshot is only appended when the price differs from the latest one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._products: dict[str, ScrapedProduct] = {}
        self._history: dict[str, list[PriceSnapshot]] = {}

    def store(self, products: Sequence[ScrapedProduct], *, competitor: str) -> int:
        recorded = 0
        captured_at = datetime.now(timezone.utc)
        with self._lock:
            for product in products:
                self._products[product.fingerprint] = product
                history = self._history.setdefault(product.fingerprint, [])
                if history and history[-1].price == product.price:
                    continue
                history.append(
                    PriceSnapshot(
                        fingerprint=product.fingerprint,
                        competitor=competitor,
                        price=product.price,
                        original_price=product.original_price,
                        version=len(history) + 1,
                        captured_at=captured_at,
                    )
                )
                recorded += 1
        return recorded

    def latest(self, fingerprint: str) -> ScrapedProduct | None:
        with self._lock:
            return self._products.get(fingerprint)

    def history(self, fingerprint: str) -> list[PriceSnapshot]:
        with self._lock:
            return list(self._history.get(fingerprint, []))
