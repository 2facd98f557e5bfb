#!/usr/bin/env python3
"""
Link Discoverer

Loads the listing page, triggers incremental loading by scrolling to the
bottom a fixed number of times, then reads every detail-page anchor from the
rendered document in one pass.
"""

import logging
import time
from typing import List
from urllib.parse import urljoin, urldefrag

from bs4 import BeautifulSoup
from selenium.common.exceptions import WebDriverException

from shopscraper.base_scraper import BaseScraper
from shopscraper.errors import DiscoveryError

# Anchors pointing at product detail pages
DETAIL_LINK_SELECTOR = "a[href*='/products/']"


def unique_in_order(urls) -> List[str]:
    """Drop duplicates, keeping the first occurrence of each URL."""
    seen = set()
    unique = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def extract_detail_links(page_source, page_url, selector=DETAIL_LINK_SELECTOR):
    """Absolute detail-page URLs from a rendered listing document, in document order."""
    soup = BeautifulSoup(page_source, "lxml")
    links = []
    for anchor in soup.select(selector):
        href = (anchor.get("href") or "").strip()
        if not href or href.startswith(("javascript:", "#")):
            continue
        absolute, _ = urldefrag(urljoin(page_url, href))
        links.append(absolute)
    return links


class LinkDiscoverer(BaseScraper):
    def __init__(self, config=None, session_factory=None, selector=DETAIL_LINK_SELECTOR):
        super().__init__(config, session_factory)
        self.selector = selector

    def discover(self, listing_url=None, max_scrolls=None) -> List[str]:
        """
        Return the unique detail-page URLs of a listing page in first-seen order.

        Raises DiscoveryError if the page cannot be loaded or read. No retries;
        the caller decides whether an empty result is fatal.
        """
        listing_url = listing_url or self.config.listing_url
        if max_scrolls is None:
            max_scrolls = self.config.max_scrolls

        logging.info(f"🔎 Discovering product links on {listing_url} ({max_scrolls} scrolls)...")
        try:
            with self.new_session("discovery") as session:
                page_source = self._load_listing(session, listing_url, max_scrolls)
        except (WebDriverException, OSError, ValueError) as e:
            # OSError covers chromedriver download failures from requests
            raise DiscoveryError(listing_url, f"Browser session failed: {getattr(e, 'msg', None) or e}") from e

        urls = unique_in_order(extract_detail_links(page_source, listing_url, self.selector))
        logging.info(f"✅ Discovered {len(urls)} unique product links")
        return urls

    def _load_listing(self, session, listing_url, max_scrolls):
        try:
            session.navigate(listing_url, timeout=self.config.page_load_timeout)
        except WebDriverException as e:
            raise DiscoveryError(listing_url, f"Failed to load listing page: {e.msg or e}") from e

        for i in range(max_scrolls):
            try:
                session.scroll_to_bottom()
            except WebDriverException as e:
                logging.warning(f"⚠️ Scroll {i + 1}/{max_scrolls} failed, stopping early: {e}")
                break
            time.sleep(self.config.scroll_pause)

        try:
            return session.page_source
        except WebDriverException as e:
            raise DiscoveryError(listing_url, f"Failed to read listing anchors: {e.msg or e}") from e
