"""Command-line interface for the Drupal crawler."""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from drupal_crawler.browser_config import DEFAULT_BROWSER_CONFIG, HEADED_CONFIG
from drupal_crawler.config import BackendKind, CrawlConfig, settings
from drupal_crawler.exceptions import ConfigError
from drupal_crawler.form_handler import FormHandler
from drupal_crawler.logging_config import setup_logging
from drupal_crawler.models import CrawlSummary
from drupal_crawler.output_manager import OutputManager
from drupal_crawler.site_crawler import SiteCrawler

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drupal-crawler",
        description="Crawl a Drupal site, record status messages and exercise edit/add forms",
    )
    parser.add_argument('url', nargs='?', help='Base domain URL (default: CRAWLER_BASE_URL)')
    parser.add_argument('--start-path', help='Path below the base domain to start from')
    parser.add_argument('--cookie', help='Session cookies, e.g. "SESSabc=123; other=x"')
    parser.add_argument('--backend', choices=[b.value for b in BackendKind],
                       help='static: HTTP requests, scripted: Playwright browser')
    parser.add_argument('--max-pages', type=int, help='Page budget for the whole crawl')
    parser.add_argument('--threads', type=int, help='Number of workers')
    parser.add_argument('--output-dir', help='Directory for the per-worker CSV files')
    parser.add_argument('--timeout', type=int, help='Static backend request timeout in seconds')
    parser.add_argument('--headed', action='store_true',
                       help='Show the browser window (scripted backend only)')
    parser.add_argument('--values-file', help='YAML file overriding fill values by field name')
    parser.add_argument('--log-level', default=settings.LOG_LEVEL,
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                       help='Logging level (default: INFO)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    return parser


def config_from_args(args: argparse.Namespace) -> CrawlConfig:
    """Merge CLI arguments over the environment defaults."""
    return CrawlConfig.from_env(
        base_domain=args.url,
        start_path=args.start_path,
        cookie_string=args.cookie,
        backend=args.backend,
        max_pages=args.max_pages,
        thread_count=args.threads,
        output_dir=args.output_dir,
        request_timeout=args.timeout,
    )


def print_banner(config: CrawlConfig) -> None:
    print(f"\n{'=' * 60}")
    print("Drupal Crawler Configuration")
    print(f"{'=' * 60}")
    for label, value in config.describe().items():
        print(f"  {label + ':':<13} {value}")
    print(f"{'=' * 60}\n")


def print_summary(summary: CrawlSummary, output_dir: str) -> None:
    print(f"\n{'=' * 60}")
    print("Crawl Complete")
    print(f"{'=' * 60}")
    print(f"  Pages processed: {summary.pages_processed}/{summary.max_pages}")
    print(f"  URLs visited:    {summary.pages_visited}")
    print(f"  Still queued:    {summary.pending_tasks}")
    print(f"  Elapsed:         {summary.elapsed_ms} ms")
    if summary.abandoned_workers:
        print(f"  ⚠️  Abandoned workers: {summary.abandoned_workers}")
    print(f"  Results in:      {output_dir}")
    print(f"{'=' * 60}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Run a crawl from the command line.

    Returns:
        0 on success, 2 on invalid configuration
    """
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        config = config_from_args(args)
    except (ConfigError, ValidationError) as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 2

    print_banner(config)

    browser_config = HEADED_CONFIG if args.headed else DEFAULT_BROWSER_CONFIG
    output_manager = OutputManager(config.output_dir)
    crawler = SiteCrawler(
        config,
        browser_config=browser_config,
        form_handler=FormHandler(values_path=args.values_file),
        output_manager=output_manager,
    )
    summary = crawler.run()
    output_manager.save_summary(summary)

    print_summary(summary, config.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
