#!/usr/bin/env python3
"""
Extraction Sequence for product detail pages.

A detail page is read by running a fixed, ordered list of steps against one
browser session. Later steps depend on DOM state produced by earlier ones
(the size chart table only exists after its toggle was clicked), so steps run
strictly in order and the sequence stops at the first failure that the
extraction policy does not allow to pass.

Step kinds:
1. Navigate / WaitFor - load the page and wait for dynamic content
2. ReadText / ReadAttribute - structural reads from a CSS selector
3. Evaluate - a small in-page script returning JSON text
4. Reveal - click a toggle, wait for the revealed element, then evaluate
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from selenium.common.exceptions import WebDriverException

from shopscraper.errors import ExtractionError
from shopscraper.product_data import ProductRecord, derive_product_id

SELECTORS = {
    "page_ready": "h1.itemTitle",
    "name": "h1.itemTitle",
    "price": ".articlePrice .price-value",
    "image": ".article_image_wrapper img",
    "description": ".itemFeature .description .heading",
    "sense_of_size": ".sizeFitBar .label",
    "size_chart_toggle": ".sizeDescription .sizeChartLink",
    "size_chart_table": ".sizeChartTable",
}

BREADCRUMBS_SCRIPT = """
return JSON.stringify(
    Array.from(document.querySelectorAll('.breadcrumbList li'))
        .map(li => li.textContent.trim())
        .filter(Boolean)
);
"""

ITEMIZED_DESCRIPTION_SCRIPT = """
return JSON.stringify(
    Array.from(document.querySelectorAll('.articleFeatures .articleFeaturesItem'))
        .map(li => li.textContent.trim())
        .filter(Boolean)
);
"""

SIZES_SCRIPT = """
return JSON.stringify(
    Array.from(document.querySelectorAll('.sizeSelectorList .sizeSelectorListItemButton'))
        .map(b => b.textContent.trim())
        .filter(Boolean)
);
"""

KEYWORDS_SCRIPT = """
return JSON.stringify(
    Array.from(document.querySelectorAll('.itemTagsPosition a'))
        .map(a => a.textContent.trim())
        .filter(Boolean)
);
"""

SIZE_CHART_SCRIPT = """
const table = document.querySelector('.sizeChartTable');
if (!table) { return null; }
const rows = Array.from(table.querySelectorAll('tr'));
if (rows.length === 0) { return JSON.stringify([]); }
const header = Array.from(rows[0].querySelectorAll('th, td')).map(c => c.textContent.trim());
return JSON.stringify(rows.slice(1).map(row => {
    const cells = Array.from(row.querySelectorAll('th, td')).map(c => c.textContent.trim());
    const entry = {};
    header.forEach((column, i) => { entry[column || String(i)] = cells[i] || ''; });
    return entry;
}));
"""

REVIEWS_SCRIPT = """
const text = (root, sel) => { const e = root.querySelector(sel); return e ? e.textContent.trim() : ''; };
return JSON.stringify(
    Array.from(document.querySelectorAll('.reviewList .reviewItem')).map(item => ({
        rating: (item.querySelector('.reviewRating') || {dataset: {}}).dataset.rating || text(item, '.reviewRating'),
        title: text(item, '.reviewTitle'),
        date: text(item, '.reviewDate'),
        author: text(item, '.reviewAuthor'),
        body: text(item, '.reviewBody'),
    }))
);
"""

COORDINATES_SCRIPT = """
const text = (root, sel) => { const e = root.querySelector(sel); return e ? e.textContent.trim() : ''; };
return JSON.stringify(
    Array.from(document.querySelectorAll('.coordinateItems .coordinateItem')).map(item => {
        const link = item.querySelector('a');
        const image = item.querySelector('img');
        return {
            name: text(item, '.title'),
            price: text(item, '.price'),
            url: link ? link.href : '',
            image_url: image ? image.src : '',
        };
    })
);
"""

# Failures a single step may raise; anything else is a programming error
STEP_FAILURES = (WebDriverException, ValueError, TypeError)


class Deadline:
    """A fixed point in time that bounds every wait of one job."""

    def __init__(self, seconds, clock=time.monotonic):
        self.clock = clock
        self.expires_at = clock() + seconds

    def remaining(self):
        return max(0.0, self.expires_at - self.clock())

    @property
    def expired(self):
        return self.remaining() <= 0

    def bound(self, timeout):
        return min(timeout, self.remaining())


@dataclass
class StepContext:
    session: object
    url: str
    deadline: Deadline
    step_timeout: float
    page_load_timeout: float
    fields: Dict = field(default_factory=dict)

    def wait_timeout(self):
        return self.deadline.bound(self.step_timeout)


def decode_json_list(raw) -> List:
    if not isinstance(raw, str):
        raise ValueError("script returned no data")
    value = json.loads(raw)
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON list, got {type(value).__name__}")
    return value


def as_strings(raw):
    return tuple(str(v) for v in decode_json_list(raw))


def as_lines(raw):
    return "\n".join(str(v) for v in decode_json_list(raw))


def as_blob(raw):
    """Validate script output and re-serialize it as compact JSON text."""
    return json.dumps(decode_json_list(raw), ensure_ascii=False)


class Step:
    """One fallible action against a browser session."""

    def __init__(self, name, required=False):
        self.name = name
        self.required = required

    def run(self, ctx: StepContext):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class Navigate(Step):
    def __init__(self, name="navigate"):
        super().__init__(name, required=True)

    def run(self, ctx):
        ctx.session.navigate(ctx.url, timeout=ctx.deadline.bound(ctx.page_load_timeout))


class WaitFor(Step):
    def __init__(self, name, selector, required=True):
        super().__init__(name, required)
        self.selector = selector

    def run(self, ctx):
        ctx.session.wait_for(self.selector, ctx.wait_timeout())


class ReadText(Step):
    def __init__(self, name, selector, field_name=None, required=False):
        super().__init__(name, required)
        self.selector = selector
        self.field_name = field_name or name

    def run(self, ctx):
        ctx.fields[self.field_name] = ctx.session.text(self.selector)


class ReadAttribute(Step):
    def __init__(self, name, selector, attribute, field_name=None, required=False):
        super().__init__(name, required)
        self.selector = selector
        self.attribute = attribute
        self.field_name = field_name or name

    def run(self, ctx):
        ctx.fields[self.field_name] = ctx.session.attribute(self.selector, self.attribute)


class Evaluate(Step):
    def __init__(self, name, script, convert: Callable = as_blob, field_name=None, required=False):
        super().__init__(name, required)
        self.script = script
        self.convert = convert
        self.field_name = field_name or name

    def run(self, ctx):
        ctx.fields[self.field_name] = self.convert(ctx.session.evaluate(self.script))


class Reveal(Evaluate):
    """Click a toggle, wait for the revealed element to be visible, then read it."""

    def __init__(self, name, toggle, target, script, convert: Callable = as_blob, field_name=None, required=False):
        super().__init__(name, script, convert, field_name, required)
        self.toggle = toggle
        self.target = target

    def run(self, ctx):
        ctx.session.click(self.toggle, ctx.wait_timeout())
        ctx.session.wait_visible(self.target, ctx.wait_timeout())
        super().run(ctx)


def default_steps() -> List[Step]:
    """The detail page steps, in the order they must run."""
    return [
        Navigate(),
        WaitFor("page_ready", SELECTORS["page_ready"]),
        ReadText("name", SELECTORS["name"], required=True),
        ReadText("price", SELECTORS["price"], required=True),
        ReadAttribute("image_url", SELECTORS["image"], "src"),
        Evaluate("breadcrumbs", BREADCRUMBS_SCRIPT, as_strings),
        ReadText("description", SELECTORS["description"]),
        Evaluate("itemized_description", ITEMIZED_DESCRIPTION_SCRIPT, as_lines),
        Evaluate("sizes", SIZES_SCRIPT, as_strings),
        ReadText("sense_of_size", SELECTORS["sense_of_size"]),
        Evaluate("keywords", KEYWORDS_SCRIPT, as_strings),
        Reveal(
            "size_chart",
            SELECTORS["size_chart_toggle"],
            SELECTORS["size_chart_table"],
            SIZE_CHART_SCRIPT,
        ),
        Evaluate("reviews", REVIEWS_SCRIPT),
        Evaluate("coordinated_products", COORDINATES_SCRIPT),
    ]


class ExtractionSequence:
    """
    Runs the detail page steps for one URL and freezes the result.

    With strict=True any failing step discards the record. With strict=False
    only required steps do; other failures leave their field empty.
    """

    def __init__(
        self,
        steps: Optional[List[Step]] = None,
        strict=True,
        job_timeout=60.0,
        step_timeout=15.0,
        page_load_timeout=30.0,
        clock=time.monotonic,
    ):
        self.steps = steps if steps is not None else default_steps()
        self.strict = strict
        self.job_timeout = job_timeout
        self.step_timeout = step_timeout
        self.page_load_timeout = page_load_timeout
        self.clock = clock

    @classmethod
    def from_config(cls, config, steps=None):
        return cls(
            steps=steps,
            strict=config.strict_extraction,
            job_timeout=config.job_timeout,
            step_timeout=config.step_timeout,
            page_load_timeout=config.page_load_timeout,
        )

    def extract(self, session, url, job_timeout=None) -> ProductRecord:
        ctx = StepContext(
            session=session,
            url=url,
            deadline=Deadline(job_timeout or self.job_timeout, self.clock),
            step_timeout=self.step_timeout,
            page_load_timeout=self.page_load_timeout,
            fields={"product_id": derive_product_id(url)},
        )
        for step in self.steps:
            if ctx.deadline.expired:
                raise ExtractionError(url, step.name, "job deadline exceeded")
            try:
                step.run(ctx)
            except STEP_FAILURES as e:
                reason = getattr(e, "msg", None) or str(e) or type(e).__name__
                if step.required or self.strict:
                    raise ExtractionError(url, step.name, reason) from e
                logging.warning(f"⚠️ Step '{step.name}' failed for {url}, leaving it empty: {reason}")
        return ProductRecord.from_fields(url, ctx.fields)
