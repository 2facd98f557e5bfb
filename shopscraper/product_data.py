#!/usr/bin/env python3
"""
Product Data Models

ProductRecord is the unit of output. It is built from a mutable field dict
while a job runs and frozen once the job hands it off.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
from urllib.parse import urlparse

BREADCRUMB_SEPARATOR = " > "
LIST_SEPARATOR = ", "

# Fixed CSV column order, paired with the record attribute it comes from
CSV_COLUMNS: List[Tuple[str, str]] = [
    ("ID", "product_id"),
    ("URL", "url"),
    ("ProductName", "name"),
    ("Price", "price"),
    ("ImageURL", "image_url"),
    ("Breadcrumbs", "breadcrumbs"),
    ("Description", "description"),
    ("ItemizedDescription", "itemized_description"),
    ("AvailableSizes", "sizes"),
    ("SenseOfSize", "sense_of_size"),
    ("Keywords", "keywords"),
    ("SizeChart", "size_chart"),
    ("Reviews", "reviews"),
    ("CoordinatedProducts", "coordinated_products"),
]

CSV_HEADER = [column for column, _ in CSV_COLUMNS]


def derive_product_id(url: str) -> str:
    """
    Return the last non-empty path segment of a product URL.

    Examples:
        https://shop.adidas.jp/products/IX1234/  -> IX1234
        https://site/x/y/12345                   -> 12345
    """
    path = urlparse(url).path if "://" in url else url.split("?", 1)[0]
    segments = [segment for segment in path.rstrip("/").split("/") if segment]
    return segments[-1] if segments else ""


def _join(values, separator):
    return separator.join(v for v in values if v)


def _split(text, separator):
    if not text:
        return ()
    return tuple(part for part in text.split(separator) if part)


@dataclass(frozen=True)
class ProductRecord:
    """One scraped product. Blobs are serialized JSON text."""

    url: str
    product_id: str
    name: str = ""
    price: str = ""
    image_url: str = ""
    breadcrumbs: Tuple[str, ...] = field(default_factory=tuple)
    description: str = ""
    itemized_description: str = ""
    sizes: Tuple[str, ...] = field(default_factory=tuple)
    sense_of_size: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    size_chart: str = ""
    reviews: str = ""
    coordinated_products: str = ""

    @classmethod
    def from_fields(cls, url: str, values: Dict) -> "ProductRecord":
        """Freeze the field dict a job has been filling in."""
        data = dict(values)
        data.setdefault("product_id", derive_product_id(url))
        for name in ("breadcrumbs", "sizes", "keywords"):
            if name in data:
                data[name] = tuple(data[name] or ())
        return cls(url=url, **data)

    @property
    def sizes_text(self) -> str:
        return _join(self.sizes, LIST_SEPARATOR)

    def to_row(self) -> List[str]:
        """Render the record as a CSV row in CSV_COLUMNS order."""
        row = []
        for _, attr in CSV_COLUMNS:
            value = getattr(self, attr)
            if attr == "breadcrumbs":
                value = _join(value, BREADCRUMB_SEPARATOR)
            elif attr == "sizes":
                value = self.sizes_text
            elif attr == "keywords":
                value = _join(value, LIST_SEPARATOR)
            row.append(value)
        return row

    @classmethod
    def from_row(cls, row: List[str]) -> "ProductRecord":
        """Rebuild a record from a CSV row written by to_row."""
        if len(row) != len(CSV_COLUMNS):
            raise ValueError(
                f"Expected {len(CSV_COLUMNS)} columns, got {len(row)}"
            )
        values = {}
        for (_, attr), text in zip(CSV_COLUMNS, row):
            if attr == "breadcrumbs":
                values[attr] = _split(text, BREADCRUMB_SEPARATOR)
            elif attr in ("sizes", "keywords"):
                values[attr] = _split(text, LIST_SEPARATOR)
            else:
                values[attr] = text
        return cls(**values)
