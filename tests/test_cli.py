"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

from drupal_crawler.browser_config import DEFAULT_BROWSER_CONFIG, HEADED_CONFIG
from drupal_crawler.cli import build_parser, config_from_args, main
from drupal_crawler.config import BackendKind, settings
from drupal_crawler.models import CrawlState, CrawlSummary


class TestParser:
    """Argument parsing."""

    def test_arguments_map_to_config(self, tmp_path):
        args = build_parser().parse_args([
            "https://example.com",
            "--start-path", "/node/add",
            "--cookie", "SESSabc=123",
            "--backend", "scripted",
            "--max-pages", "25",
            "--threads", "3",
            "--output-dir", str(tmp_path),
            "--timeout", "60",
        ])

        config = config_from_args(args)

        assert config.base_domain == "https://example.com/"
        assert config.start_url == "https://example.com/node/add"
        assert config.cookie_string == "SESSabc=123"
        assert config.backend == BackendKind.SCRIPTED
        assert config.max_pages == 25
        assert config.thread_count == 3
        assert config.request_timeout == 60


class TestMain:
    """Test cases for main()."""

    @patch("drupal_crawler.cli.setup_logging")
    def test_invalid_config_exit_code(self, mock_logging, capsys):
        assert main(["ftp://example.com", "--threads", "2"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    @patch("drupal_crawler.cli.setup_logging")
    def test_malformed_env_number_exit_code(self, mock_logging, monkeypatch, capsys):
        monkeypatch.setattr(settings, "MAX_PAGES", "plenty")

        assert main(["https://example.com", "--threads", "2"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err

    @patch("drupal_crawler.cli.setup_logging")
    @patch("drupal_crawler.cli.SiteCrawler")
    def test_run_prints_summary_and_saves_it(self, mock_crawler_cls, mock_logging, tmp_path, capsys):
        mock_crawler_cls.return_value.run.return_value = CrawlSummary(
            max_pages=10, pages_visited=4, pages_processed=4, elapsed_seconds=2.0, state=CrawlState.DONE
        )

        code = main(["https://example.com", "--threads", "2", "--max-pages", "10", "--output-dir", str(tmp_path)])

        assert code == 0
        out = capsys.readouterr().out
        assert "Drupal Crawler Configuration" in out
        assert "Pages processed: 4/10" in out
        saved = json.loads((tmp_path / "crawl_summary.json").read_text())
        assert saved["pages_processed"] == 4
        assert mock_crawler_cls.call_args.kwargs["browser_config"] is DEFAULT_BROWSER_CONFIG

    @patch("drupal_crawler.cli.setup_logging")
    @patch("drupal_crawler.cli.SiteCrawler")
    def test_headed_flag(self, mock_crawler_cls, mock_logging, tmp_path):
        mock_crawler_cls.return_value.run.return_value = CrawlSummary(max_pages=1)

        main(["https://example.com", "--threads", "1", "--headed", "--output-dir", str(tmp_path)])

        assert mock_crawler_cls.call_args.kwargs["browser_config"] is HEADED_CONFIG

    @patch("drupal_crawler.cli.setup_logging")
    @patch("drupal_crawler.cli.SiteCrawler")
    def test_log_options_passed(self, mock_crawler_cls, mock_logging, tmp_path):
        mock_crawler_cls.return_value.run.return_value = CrawlSummary(max_pages=1)
        log_file = str(tmp_path / "crawl.log")

        main(["https://example.com", "--threads", "1", "--log-level", "DEBUG",
              "--log-file", log_file, "--output-dir", str(tmp_path)])

        mock_logging.assert_called_once_with(level="DEBUG", log_file=log_file)

