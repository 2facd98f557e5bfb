"""
End-to-end tests: listing page to CSV file, with fake browser sessions.
"""

import csv
import logging
import sys

import pytest

from shopscraper import __main__ as cli
from shopscraper import pipeline
from shopscraper.acquisition import BrowserAcquisition
from shopscraper.errors import DiscoveryError
from tests.conftest import BASE, FakePage, FakeSite, detail_page


def run(config, site):
    return pipeline.run(config, acquisition=BrowserAcquisition(config, session_factory=site.session))


def csv_lines(config):
    with open(config.output_file, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestPipeline:
    def test_duplicate_anchor_scenario(self, config):
        """3 anchors with 1 duplicate and 2 scrolls give 2 records and 3 CSV lines."""
        site = FakeSite()
        site.pages[config.listing_url] = FakePage(
            anchors=["/products/A1/"],
            scroll_batches=[["/products/B2/"], ["/products/A1/"]],
        )
        site.pages[f"{BASE}/products/A1/"] = detail_page(name="Alpha")
        site.pages[f"{BASE}/products/B2/"] = detail_page(name="Beta")

        summary = run(config, site)

        assert summary.discovered == 2
        assert summary.scraped == 2
        assert summary.failed == 0
        assert summary.rows_written == 2
        lines = csv_lines(config)
        assert len(lines) == 3
        assert sorted(line[0] for line in lines[1:]) == ["A1", "B2"]

    def test_one_job_fails(self, config, caplog):
        site = FakeSite()
        site.pages[config.listing_url] = FakePage(anchors=["/products/A1/", "/products/B2/"])
        site.pages[f"{BASE}/products/A1/"] = detail_page(name="Alpha")
        site.pages[f"{BASE}/products/B2/"] = detail_page(name="Beta", ready=False)

        summary = run(config, site)

        assert summary.scraped == 1
        assert summary.failed == 1
        assert len(csv_lines(config)) == 2
        failures = [r for r in caplog.records if "FAILED to scrape" in r.getMessage()]
        assert len(failures) == 1
        assert "B2" in failures[0].getMessage()

    def test_no_links_is_fatal(self, config):
        site = FakeSite()
        site.pages[config.listing_url] = FakePage()
        with pytest.raises(DiscoveryError):
            run(config, site)

    def test_unreachable_listing(self, config):
        with pytest.raises(DiscoveryError):
            run(config, FakeSite())


class TestCli:
    """Test exit codes of the command line entry point."""

    def test_success(self, monkeypatch):
        monkeypatch.setattr(pipeline, "run", lambda config: pipeline.RunSummary(2, 2, 0, 2))
        assert cli.main([]) == 0

    def test_discovery_failure(self, monkeypatch):
        def fail(config):
            raise DiscoveryError(config.listing_url, "No product links discovered")
        monkeypatch.setattr(pipeline, "run", fail)
        assert cli.main(["--workers", "2"]) == 1

    def test_flags_reach_config(self, monkeypatch):
        seen = {}

        def capture(config):
            seen["config"] = config
            return pipeline.RunSummary()
        monkeypatch.setattr(pipeline, "run", capture)
        cli.main(["--workers", "3", "--lenient", "--headful", "--max-scrolls", "1", "--mode", "browser"])
        config = seen["config"]
        assert config.worker_count == 3
        assert config.strict_extraction is False
        assert config.headless is False
        assert config.max_scrolls == 1

    def test_invalid_config(self):
        assert cli.main(["--workers", "0"]) == 2


class TestSetupLogging:
    def test_log_file_also_logs_to_stdout(self, tmp_path, monkeypatch):
        """A bare log file name goes under log/ and console output moves to stdout."""
        monkeypatch.chdir(tmp_path)
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            cli.setup_logging("scraper.log")
            added = [h for h in root.handlers if h not in before]
            assert any(getattr(h, "stream", None) is sys.stdout for h in added)
            assert (tmp_path / "log").is_dir()
        finally:
            for handler in root.handlers[:]:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()
