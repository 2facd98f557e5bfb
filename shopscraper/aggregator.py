"""
Aggregator: single consumer of the worker pool's results queue.

Records come out in completion order, which is not the discovery order.
"""

import queue
from dataclasses import dataclass, field
from typing import List, Optional

from shopscraper.product_data import ProductRecord

# Put on the results queue once, after every worker has finished
DONE = object()


@dataclass(frozen=True)
class JobOutcome:
    """What one job produced: a record, or the reason it was discarded"""
    url: str
    record: Optional[ProductRecord] = None
    error: Optional[str] = None
    worker: str = ""

    @property
    def ok(self):
        return self.record is not None


@dataclass
class Aggregate:
    records: List[ProductRecord] = field(default_factory=list)
    failures: List[JobOutcome] = field(default_factory=list)

    @property
    def processed(self):
        return len(self.records) + len(self.failures)


def collect(results: "queue.Queue") -> Aggregate:
    """Drain results until the DONE marker. Every outcome is kept exactly once."""
    aggregate = Aggregate()
    while True:
        item = results.get()
        if item is DONE:
            break
        if item.ok:
            aggregate.records.append(item.record)
        else:
            aggregate.failures.append(item)
    return aggregate
