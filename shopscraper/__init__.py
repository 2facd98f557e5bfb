"""Concurrent product catalog scraper: listing page in, CSV out."""

__version__ = "1.0.0"
