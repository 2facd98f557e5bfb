"""
Error taxonomy for the product scraper.

Failures local to one job (ExtractionError) or one output row (SinkError)
are logged and skipped by their callers. DiscoveryError and TransportError
end the run.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for all scraper failures"""


class DiscoveryError(ScraperError):
    """The listing page could not be loaded or its anchors could not be read"""

    def __init__(self, listing_url: str, message: str):
        super().__init__(f"{message} ({listing_url})")
        self.listing_url = listing_url


class ExtractionError(ScraperError):
    """One detail page failed its step sequence; the record is discarded"""

    def __init__(self, url: str, step: str, message: str = ""):
        detail = f": {message}" if message else ""
        super().__init__(f"step '{step}' failed for {url}{detail}")
        self.url = url
        self.step = step


class SinkError(ScraperError):
    """A row (or the output file itself) could not be written"""

    def __init__(self, message: str, product_id: Optional[str] = None):
        super().__init__(message)
        self.product_id = product_id


class TransportError(ScraperError):
    """The remote rendering API could not deliver a usable capture"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
