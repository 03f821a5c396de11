"""
Persistence collaborator interface for scraped products.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pricescout.scraping.types import ScrapedProduct


class ProductSnapshotStorage(ABC):
    """
    Storage abstraction for product + price snapshot writes.
    """

    @abstractmethod
    def store(self, products: Sequence[ScrapedProduct], *, competitor: str) -> int:
        """
        Persist products and return the number of new price snapshots recorded.
        """
