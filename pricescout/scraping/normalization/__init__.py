"""
Normalization layer exports.
"""

from pricescout.scraping.normalization.product_normalizer import ProductNormalizer, parse_price

__all__ = ["ProductNormalizer", "parse_price"]
