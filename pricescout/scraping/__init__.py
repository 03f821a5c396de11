"""
Browser-driven listing scraping engine.
"""
