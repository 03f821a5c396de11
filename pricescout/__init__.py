"""
PriceScout: config-driven competitor listing scraper.
"""
