"""
Pytest configuration and fixtures for scraper tests.

FakeSite stands in for the browser: it serves in-memory pages to FakeSession
objects that implement the same operations as BrowserSession.
"""

import json
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import pytest
from selenium.common.exceptions import (
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)

from shopscraper import extraction
from shopscraper.config import ScrapingConfig

BASE = "https://shop.example.jp"


@dataclass
class FakePage:
    texts: Dict[str, str] = field(default_factory=dict)
    attributes: Dict[tuple, str] = field(default_factory=dict)
    scripts: Dict[str, object] = field(default_factory=dict)
    ready: bool = True
    # The ready wait runs out its whole timeout before failing
    stall: bool = False
    clickable: Set[str] = field(default_factory=set)
    revealed: Set[str] = field(default_factory=set)
    # Listing pages: anchors present on load, then one batch per scroll
    anchors: List[str] = field(default_factory=list)
    scroll_batches: List[List[str]] = field(default_factory=list)


def detail_page(name="Samba OG", price="¥14,300", ready=True, chart=True):
    """A fully extractable detail page built from the real selectors and scripts."""
    s = extraction.SELECTORS
    return FakePage(
        texts={
            s["page_ready"]: name,
            s["price"]: price,
            s["description"]: "Classic indoor shoe",
            s["sense_of_size"]: "True to size",
        },
        attributes={(s["image"], "src"): f"{BASE}/img/{name.replace(' ', '_')}.jpg"},
        scripts={
            extraction.BREADCRUMBS_SCRIPT: json.dumps(["Home", "Men", "Shoes"]),
            extraction.ITEMIZED_DESCRIPTION_SCRIPT: json.dumps(["Leather upper", "Gum sole"]),
            extraction.SIZES_SCRIPT: json.dumps(["26.0cm", "26.5cm", "27.0cm"]),
            extraction.KEYWORDS_SCRIPT: json.dumps(["originals", "samba"]),
            extraction.SIZE_CHART_SCRIPT: json.dumps([{"JP": "26.0", "US": "8"}]),
            extraction.REVIEWS_SCRIPT: json.dumps([
                {"rating": "5", "title": "Great", "date": "2024-01-01", "author": "K", "body": "Love it"}
            ]),
            extraction.COORDINATES_SCRIPT: json.dumps([
                {"name": "Socks", "price": "¥990", "url": f"{BASE}/products/S1/", "image_url": f"{BASE}/s1.jpg"}
            ]),
        },
        ready=ready,
        clickable={s["size_chart_toggle"]} if chart else set(),
        revealed={s["size_chart_table"]} if chart else set(),
    )


class FakeSite:
    """In-memory pages plus a record of every session opened against them."""

    def __init__(self, pages=None, fail_session_start=False):
        self.pages: Dict[str, FakePage] = pages or {}
        self.fail_session_start = fail_session_start
        self.sessions: List["FakeSession"] = []
        self.lock = threading.Lock()

    def session(self, name="session"):
        return FakeSession(self, name)

    @property
    def visited(self):
        return [url for s in self.sessions for url in s.visited]


class FakeSession:
    def __init__(self, site, name):
        self.site = site
        self.name = name
        self.started = False
        self.closed = False
        self.visited: List[str] = []
        self.scrolls = 0
        self.page: Optional[FakePage] = None
        self.url = None
        self.clicked: Set[str] = set()

    def __enter__(self):
        if self.site.fail_session_start:
            raise WebDriverException("chrome not reachable")
        self.started = True
        with self.site.lock:
            self.site.sessions.append(self)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def navigate(self, url, timeout=None):
        self.visited.append(url)
        page = self.site.pages.get(url)
        if page is None:
            raise WebDriverException(f"net::ERR_NAME_NOT_RESOLVED {url}")
        self.page = page
        self.url = url
        self.scrolls = 0
        self.clicked = set()

    def _present(self):
        return set(self.page.texts) | {sel for sel, _ in self.page.attributes}

    def wait_for(self, selector, timeout):
        if self.page.stall:
            time.sleep(timeout)
            raise TimeoutException(f"waiting for {selector} timed out after {timeout}s")
        if not self.page.ready or selector not in self._present():
            raise TimeoutException(f"waiting for {selector}")

    def wait_visible(self, selector, timeout):
        if not self.clicked or selector not in self.page.revealed:
            raise TimeoutException(f"waiting for {selector} to be visible")

    def text(self, selector):
        if selector not in self.page.texts:
            raise NoSuchElementException(f"no such element: {selector}")
        return self.page.texts[selector]

    def attribute(self, selector, name):
        if (selector, name) not in self.page.attributes:
            raise NoSuchElementException(f"no such element: {selector}")
        return self.page.attributes[(selector, name)]

    def click(self, selector, timeout=10):
        if selector not in self.page.clickable:
            raise TimeoutException(f"{selector} not clickable")
        self.clicked.add(selector)

    def evaluate(self, script):
        return self.page.scripts.get(script)

    def scroll_to_bottom(self):
        self.scrolls += 1

    @property
    def page_source(self):
        anchors = list(self.page.anchors)
        for batch in self.page.scroll_batches[: self.scrolls]:
            anchors.extend(batch)
        links = "".join(f'<li><a class="card" href="{href}">item</a></li>' for href in anchors)
        return f"<html><body><ul>{links}</ul><a href='/about'>About</a></body></html>"


@pytest.fixture
def config(tmp_path):
    """Fast config: no scroll pauses, output under tmp_path."""
    return ScrapingConfig(
        listing_url=f"{BASE}/men/",
        base_url=BASE,
        max_scrolls=2,
        scroll_pause=0,
        worker_count=2,
        job_timeout=5,
        step_timeout=1,
        output_file=str(tmp_path / "csv" / "products.csv"),
    )


@pytest.fixture
def site():
    return FakeSite()
