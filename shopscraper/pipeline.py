#!/usr/bin/env python3
"""
Run orchestration: acquire records for the listing page, then write them out.
"""

import logging
from dataclasses import dataclass

from shopscraper.acquisition import build_acquisition
from shopscraper.csv_writer import CsvSink
from shopscraper.errors import DiscoveryError


@dataclass
class RunSummary:
    discovered: int = 0
    scraped: int = 0
    failed: int = 0
    rows_written: int = 0


def run(config, acquisition=None, sink=None) -> RunSummary:
    """
    Scrape the configured listing page and write the CSV.

    Raises DiscoveryError when nothing was discovered; TransportError and
    SinkError from setup propagate unchanged.
    """
    acquisition = acquisition or build_acquisition(config)
    sink = sink or CsvSink(config.output_file)

    result = acquisition.acquire(config.listing_url)
    logging.info(f"📊 Discovered {len(result.discovered)} product links")
    if not result.discovered:
        raise DiscoveryError(config.listing_url, "No product links discovered")

    logging.info(f"📊 Scraped {len(result.records)} products ({len(result.failures)} failed)")

    rows_written = sink.write(result.records)
    summary = RunSummary(
        discovered=len(result.discovered),
        scraped=len(result.records),
        failed=len(result.failures),
        rows_written=rows_written,
    )
    logging.info(
        f"✅ Run complete: {summary.discovered} discovered, {summary.scraped} scraped, "
        f"{summary.failed} failed, {summary.rows_written} rows written"
    )
    return summary
