"""
Test package for pricescout.
"""
