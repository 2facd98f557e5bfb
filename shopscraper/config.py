#!/usr/bin/env python3
"""
Configuration for the product scraper.

Values come from environment variables (a local .env file is honoured when
present), then CLI flags override them.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

ACQUISITION_MODES = ("browser", "remote")

# field name -> environment variable
ENV_VARS = {
    "listing_url": "LISTING_URL",
    "base_url": "BASE_URL",
    "max_scrolls": "MAX_SCROLLS",
    "scroll_pause": "SCROLL_PAUSE",
    "worker_count": "WORKER_COUNT",
    "max_products": "MAX_PRODUCTS",
    "job_timeout": "JOB_TIMEOUT",
    "step_timeout": "STEP_TIMEOUT",
    "page_load_timeout": "PAGE_LOAD_TIMEOUT",
    "implicit_wait": "IMPLICIT_WAIT",
    "headless": "HEADLESS",
    "user_agent": "USER_AGENT",
    "strict_extraction": "STRICT_EXTRACTION",
    "acquisition_mode": "ACQUISITION_MODE",
    "remote_api_key": "ZENROWS_API_KEY",
    "remote_api_url": "ZENROWS_API_URL",
    "remote_proxy_country": "ZENROWS_PROXY_COUNTRY",
    "remote_data_pattern": "REMOTE_DATA_PATTERN",
    "remote_timeout": "ZENROWS_TIMEOUT",
    "output_file": "OUTPUT_FILE",
    "log_file": "LOG_FILE",
}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


@dataclass
class ScrapingConfig:
    """Configuration for a scraping run"""
    # Discovery
    listing_url: str = "https://shop.adidas.jp/men/"
    base_url: str = "https://shop.adidas.jp"
    max_scrolls: int = 5
    scroll_pause: float = 2.0

    # Worker pool
    worker_count: int = 4
    max_products: int = 250
    job_timeout: float = 60.0
    step_timeout: float = 15.0

    # Selenium settings
    page_load_timeout: float = 30.0
    implicit_wait: float = 0.0
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    # Extraction policy
    strict_extraction: bool = True

    # Page acquisition
    acquisition_mode: str = "browser"
    remote_api_key: Optional[str] = None
    remote_api_url: str = "https://api.zenrows.com/v1/"
    remote_proxy_country: str = "us"
    remote_data_pattern: str = "recs/api/products"
    remote_timeout: float = 120.0

    # Output
    output_file: str = "csv/products.csv"
    log_file: Optional[str] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if self.max_products < 1:
            raise ValueError("max_products must be at least 1")
        if self.job_timeout <= 0:
            raise ValueError("job_timeout must be positive")
        if self.max_scrolls < 0:
            raise ValueError("max_scrolls cannot be negative")
        if self.acquisition_mode not in ACQUISITION_MODES:
            raise ValueError(
                f"acquisition_mode must be one of {', '.join(ACQUISITION_MODES)}"
            )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "ScrapingConfig":
        """Build a config from the environment, then apply non-None overrides."""
        load_dotenv(env_file)
        values = {}
        for f in fields(cls):
            raw = os.getenv(ENV_VARS.get(f.name, ""))
            if raw is None or raw == "":
                continue
            if f.type in (int, "int"):
                values[f.name] = int(raw)
            elif f.type in (float, "float"):
                values[f.name] = float(raw)
            elif f.type in (bool, "bool"):
                values[f.name] = _parse_bool(raw)
            else:
                values[f.name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
