#!/usr/bin/env python3
"""
Job Dispatcher / Worker Pool

Distributes detail-page URLs over a fixed number of worker threads. Each
worker owns one browser session for its whole lifetime and reuses it for
every job it takes; starting Chrome is the expensive part. Jobs are never
retried and a failed job never stops the pool.

Shared state is limited to two queues: the job queue, filled once and closed
with one STOP marker per worker, and the results queue, closed with DONE only
after every worker has returned.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Iterable, Optional

from shopscraper.aggregator import DONE, Aggregate, JobOutcome, collect
from shopscraper.base_scraper import BaseScraper
from shopscraper.errors import ExtractionError
from shopscraper.extraction import ExtractionSequence

STOP = object()


@dataclass(frozen=True)
class Job:
    url: str


class WorkerPool(BaseScraper):
    def __init__(self, config=None, session_factory=None, sequence: Optional[ExtractionSequence] = None):
        super().__init__(config, session_factory)
        self.sequence = sequence or ExtractionSequence.from_config(self.config)

    def run(self, urls: Iterable[str], worker_count=None, per_job_limit=None) -> Aggregate:
        """Scrape every URL (up to max_products) and return the collected outcomes."""
        worker_count = worker_count or self.config.worker_count
        per_job_limit = per_job_limit or self.config.job_timeout

        jobs = [Job(url) for url in list(urls)[: self.config.max_products]]
        if not jobs:
            return Aggregate()
        worker_count = min(worker_count, len(jobs))

        job_queue = queue.Queue(maxsize=len(jobs) + worker_count)
        for job in jobs:
            job_queue.put(job)
        for _ in range(worker_count):
            job_queue.put(STOP)
        results = queue.Queue()

        logging.info(f"🚀 Starting to scrape {len(jobs)} products with {worker_count} workers...")
        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="scrape-worker") as executor:
            futures = [
                executor.submit(self._worker, f"worker-{n + 1}", job_queue, results, per_job_limit)
                for n in range(worker_count)
            ]
            closer = threading.Thread(
                target=self._close_when_done,
                args=(futures, job_queue, results),
                name="results-closer",
                daemon=True,
            )
            closer.start()
            aggregate = collect(results)
        closer.join()

        logging.info(
            f"✅ Pool finished: {len(aggregate.records)} scraped, {len(aggregate.failures)} failed"
        )
        return aggregate

    def _worker(self, name, job_queue, results, per_job_limit):
        try:
            with self.new_session(name) as session:
                while True:
                    job = job_queue.get()
                    if job is STOP:
                        break
                    results.put(self._run_job(session, job, per_job_limit, name))
        except Exception as e:
            logging.exception(f"❌ {name} stopped, its session could not be used: {e}")

    def _run_job(self, session, job, per_job_limit, worker):
        logging.info(f"--- ({worker}) Processing {job.url}")
        try:
            record = self.sequence.extract(session, job.url, job_timeout=per_job_limit)
        except ExtractionError as e:
            logging.warning(f"⚠️ FAILED to scrape {job.url}: {e}")
            return JobOutcome(url=job.url, error=str(e), worker=worker)
        except Exception as e:
            logging.exception(f"❌ Unexpected error scraping {job.url}: {e}")
            return JobOutcome(url=job.url, error=f"{type(e).__name__}: {e}", worker=worker)
        logging.info(f"   ✅ Scraped: {record.name or record.product_id}")
        return JobOutcome(url=job.url, record=record, worker=worker)

    @staticmethod
    def _close_when_done(futures, job_queue, results):
        wait(futures)
        # Jobs left behind when every worker lost its session still count as processed
        while True:
            try:
                job = job_queue.get_nowait()
            except queue.Empty:
                break
            if job is not STOP:
                logging.warning(f"⚠️ FAILED to scrape {job.url}: no worker session available")
                results.put(JobOutcome(url=job.url, error="no worker session available"))
        results.put(DONE)
