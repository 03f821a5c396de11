"""
tests/test_storage.py

Unit tests for the in-memory snapshot storage.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from pricescout.scraping.storage import InMemorySnapshotStorage
from pricescout.scraping.types import ScrapedProduct

PRODUCT = ScrapedProduct(
    sku="GB40",
    title="NOCO Boost Plus GB40",
    price=Decimal("199.95"),
    image_url=None,
    product_url="https://example.com/p/gb40",
    brand="NOCO",
    competitor="Example",
    fingerprint="f00d",
)


def test_history_only_grows_on_price_change() -> None:
    storage = InMemorySnapshotStorage()

    assert storage.store([PRODUCT], competitor="Example") == 1
    assert storage.store([PRODUCT], competitor="Example") == 0
    assert storage.store([replace(PRODUCT, price=Decimal("179.95"))], competitor="Example") == 1

    history = storage.history("f00d")
    assert [snapshot.version for snapshot in history] == [1, 2]
    assert [snapshot.price for snapshot in history] == [Decimal("199.95"), Decimal("179.95")]
    assert storage.latest("f00d").price == Decimal("179.95")


def test_unknown_fingerprint() -> None:
    storage = InMemorySnapshotStorage()

    assert storage.latest("missing") is None
    assert storage.history("missing") == []
