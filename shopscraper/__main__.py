import logging
import os
import sys

from shopscraper.config import ACQUISITION_MODES, ScrapingConfig
from shopscraper.errors import DiscoveryError, SinkError, TransportError
from shopscraper import pipeline


def build_parser():
    import argparse
    parser = argparse.ArgumentParser(description="Product catalog scraper (listing page to CSV)")
    parser.add_argument('--listing-url', type=str, default=None, help='Listing page to discover product links on')
    parser.add_argument('--max-scrolls', type=int, default=None, help='Number of scroll-to-bottom "load more" triggers')
    parser.add_argument('--workers', type=int, default=None, help='Number of concurrent browser workers')
    parser.add_argument('--max-products', type=int, default=None, help='Maximum number of products to scrape')
    parser.add_argument('--job-timeout', type=float, default=None, help='Per-product deadline in seconds')
    parser.add_argument('--output-file', type=str, default=None)
    parser.add_argument('--headful', action='store_true', help='Show the browser windows')
    parser.add_argument('--lenient', action='store_true', help='Keep records whose optional fields failed to extract')
    parser.add_argument('--mode', choices=ACQUISITION_MODES, default=None, help='Page acquisition strategy')
    parser.add_argument('--log-file', type=str, default=None)
    return parser


def setup_logging(log_file=None):
    # If only a filename is given, place it in the log folder
    if log_file and not os.path.dirname(log_file):
        os.makedirs('log', exist_ok=True)
        log_file = os.path.join('log', log_file)

    logging.basicConfig(
        filename=log_file,
        level=logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s'
    )
    if log_file:
        # Also log to stdout
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
        logging.getLogger().addHandler(handler)


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = ScrapingConfig.from_env(
            listing_url=args.listing_url,
            max_scrolls=args.max_scrolls,
            worker_count=args.workers,
            max_products=args.max_products,
            job_timeout=args.job_timeout,
            output_file=args.output_file,
            headless=False if args.headful else None,
            strict_extraction=False if args.lenient else None,
            acquisition_mode=args.mode,
            log_file=args.log_file,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_file)
    logging.info("🚀 Starting product scraping and CSV generation...")

    try:
        summary = pipeline.run(config)
    except DiscoveryError as e:
        logging.error(f"❌ Discovery failed: {e}")
        return 1
    except TransportError as e:
        logging.error(f"❌ Remote renderer failed: {e}")
        return 1
    except SinkError as e:
        logging.error(f"❌ Failed to write output: {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("🛑 Interrupted by user")
        return 130

    if summary.failed:
        logging.warning(f"⚠️ {summary.failed} products could not be scraped")
    logging.info("✅ All processes completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
