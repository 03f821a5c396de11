"""
Storage layer exports.
"""

from pricescout.scraping.storage.base import ProductSnapshotStorage
from pricescout.scraping.storage.memory import InMemorySnapshotStorage, PriceSnapshot

__all__ = ["InMemorySnapshotStorage", "PriceSnapshot", "ProductSnapshotStorage"]
