#!/usr/bin/env python3
"""
Remote Renderer API client.

The rendering service loads a page in its own browser and returns the final
HTML together with the background (XHR) exchanges it intercepted. The listing
page loads its product feed through one of those exchanges; it is found by
matching its URL against a known endpoint pattern, never by position.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import requests

from shopscraper.errors import TransportError
from shopscraper.product_data import ProductRecord, derive_product_id


@dataclass(frozen=True)
class Exchange:
    url: str
    body: str


@dataclass
class RenderCapture:
    html: str = ""
    exchanges: List[Exchange] = field(default_factory=list)


def build_js_instructions(max_scrolls, pause_ms=1500):
    """Scroll-and-wait instructions equivalent to the browser discovery loop."""
    instructions = []
    for _ in range(max_scrolls):
        instructions.append({"scroll_y": 10000})
        instructions.append({"wait": pause_ms})
    return json.dumps(instructions)


class RemoteRenderer:
    def __init__(self, api_key, api_url="https://api.zenrows.com/v1/", proxy_country="us", timeout=120, session=None):
        if not api_key:
            raise TransportError("Remote renderer API key is not configured (ZENROWS_API_KEY)")
        self.api_key = api_key
        self.api_url = api_url
        self.proxy_country = proxy_country
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config, session=None):
        return cls(
            api_key=config.remote_api_key,
            api_url=config.remote_api_url,
            proxy_country=config.remote_proxy_country,
            timeout=config.remote_timeout,
            session=session,
        )

    def capture(self, url, max_scrolls=0, pause_ms=1500) -> RenderCapture:
        params = {
            "apikey": self.api_key,
            "url": url,
            "js_render": "true",
            "json_response": "true",
            "premium_proxy": "true",
            "proxy_country": self.proxy_country,
        }
        if max_scrolls:
            params["js_instructions"] = build_js_instructions(max_scrolls, pause_ms)

        logging.info(f"🔎 Requesting remote capture of {url}...")
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Remote renderer request failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(
                f"Remote renderer returned non-OK status: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Remote renderer returned invalid JSON: {e}") from e

        exchanges = [
            Exchange(url=item.get("url", ""), body=item.get("body", ""))
            for item in payload.get("xhr") or []
            if isinstance(item, dict)
        ]
        logging.info(f"✅ Capture received with {len(exchanges)} background exchanges")
        return RenderCapture(html=payload.get("html", ""), exchanges=exchanges)


def find_exchange(capture: RenderCapture, pattern: str) -> Optional[Exchange]:
    """First exchange whose URL contains pattern and whose body is a JSON object."""
    for exchange in capture.exchanges:
        if pattern not in exchange.url:
            continue
        try:
            if isinstance(json.loads(exchange.body), dict):
                return exchange
        except (TypeError, ValueError):
            logging.warning(f"⚠️ Skipping undecodable exchange body from {exchange.url}")
    return None


def parse_product_feed(body: str) -> Tuple[List[Dict], List[Dict]]:
    """Return (recommendations, breadcrumbs) from a product feed body."""
    data = json.loads(body)
    products = data.get("recommendations") or []
    breadcrumbs = data.get("json_breadcrumbs") or data.get("breadcrumbs") or []
    return products, breadcrumbs


def _absolute(link, base_url):
    if not link or link.startswith("http"):
        return link or ""
    return base_url.rstrip("/") + "/" + link.lstrip("/")


def record_from_feed_item(item: Dict, breadcrumbs: List[Dict], base_url: str) -> ProductRecord:
    url = _absolute(item.get("link", ""), base_url)
    keywords = []
    if item.get("sport"):
        keywords.append(str(item["sport"]))
    surface = item.get("surface")
    if isinstance(surface, list):
        keywords.extend(str(s) for s in surface if s)
    elif surface:
        keywords.append(str(surface))
    for key in ("brand", "category"):
        if item.get(key):
            keywords.append(str(item[key]))

    price = (item.get("pricing") or {}).get("currentPrice")
    return ProductRecord(
        url=url,
        product_id=item.get("articleNumber") or derive_product_id(url),
        name=item.get("name", ""),
        price=f"{float(price):.2f}" if price is not None else "",
        image_url=item.get("imageLink", ""),
        breadcrumbs=tuple(bc.get("text", "") for bc in breadcrumbs if bc.get("text")),
        description=item.get("subTitle", ""),
        sizes=tuple(str(s) for s in item.get("sizes") or ()),
        keywords=tuple(keywords),
    )

