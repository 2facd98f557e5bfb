#!/usr/bin/env python3
"""
Page Acquisition

Two interchangeable ways to turn a listing URL into product records:
driving local browsers (discover links, then scrape every detail page), or
asking the remote rendering API for one capture and reading the product feed
out of it. One is picked per run from ScrapingConfig.acquisition_mode.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from shopscraper.aggregator import JobOutcome
from shopscraper.config import ScrapingConfig
from shopscraper.link_discoverer import LinkDiscoverer
from shopscraper.product_data import ProductRecord
from shopscraper.errors import TransportError
from shopscraper.remote_renderer import RemoteRenderer, find_exchange, parse_product_feed, record_from_feed_item
from shopscraper.worker_pool import WorkerPool


@dataclass
class AcquisitionResult:
    discovered: List[str] = field(default_factory=list)
    records: List[ProductRecord] = field(default_factory=list)
    failures: List[JobOutcome] = field(default_factory=list)


class PageAcquisition(ABC):
    def __init__(self, config: ScrapingConfig):
        self.config = config

    @abstractmethod
    def acquire(self, listing_url: str) -> AcquisitionResult:
        pass


class BrowserAcquisition(PageAcquisition):
    def __init__(self, config, session_factory=None, discoverer=None, pool=None):
        super().__init__(config)
        self.discoverer = discoverer or LinkDiscoverer(config, session_factory)
        self.pool = pool or WorkerPool(config, session_factory)

    def acquire(self, listing_url):
        urls = self.discoverer.discover(listing_url, self.config.max_scrolls)
        result = AcquisitionResult(discovered=urls)
        if not urls:
            return result
        aggregate = self.pool.run(urls, self.config.worker_count, self.config.job_timeout)
        result.records = aggregate.records
        result.failures = aggregate.failures
        return result


class RemoteAcquisition(PageAcquisition):
    def __init__(self, config, renderer=None):
        super().__init__(config)
        self.renderer = renderer or RemoteRenderer.from_config(config)

    def acquire(self, listing_url):
        capture = self.renderer.capture(
            listing_url,
            max_scrolls=self.config.max_scrolls,
            pause_ms=int(self.config.scroll_pause * 1000),
        )
        exchange = find_exchange(capture, self.config.remote_data_pattern)
        if exchange is None:
            raise TransportError(
                f"No product data found in exchanges matching '{self.config.remote_data_pattern}'"
            )
        products, breadcrumbs = parse_product_feed(exchange.body)
        if len(products) > self.config.max_products:
            logging.info(f"Feed has {len(products)} products, keeping the first {self.config.max_products}")

        result = AcquisitionResult()
        for item in products[: self.config.max_products]:
            try:
                record = record_from_feed_item(item, breadcrumbs, self.config.base_url)
            except (AttributeError, TypeError, ValueError) as e:
                link = item.get("link", "") if isinstance(item, dict) else ""
                logging.warning(f"⚠️ Skipping malformed feed item {link or item!r}: {e}")
                result.failures.append(JobOutcome(url=link, error=str(e)))
                continue
            result.discovered.append(record.url)
            result.records.append(record)
        return result


def build_acquisition(config, session_factory=None) -> PageAcquisition:
    if config.acquisition_mode == "remote":
        return RemoteAcquisition(config)
    return BrowserAcquisition(config, session_factory)
