"""Site crawler: runs a fixed pool of workers over one shared frontier."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, List, Optional

from drupal_crawler.browser_config import DEFAULT_BROWSER_CONFIG, BrowserConfig
from drupal_crawler.config import BackendKind, CrawlConfig
from drupal_crawler.constants import DRAIN_CHECK_SECONDS, ROOT_REFERRER
from drupal_crawler.fetcher import Fetcher
from drupal_crawler.form_handler import FormHandler
from drupal_crawler.frontier import Frontier
from drupal_crawler.models import CrawlState, CrawlSummary
from drupal_crawler.output_manager import OutputManager
from drupal_crawler.worker import CrawlWorker

logger = logging.getLogger(__name__)


def make_fetcher(
    config: CrawlConfig,
    browser_config: BrowserConfig = DEFAULT_BROWSER_CONFIG,
    form_handler: Optional[FormHandler] = None,
) -> Fetcher:
    """Build the fetcher selected by config.backend."""
    form_handler = form_handler or FormHandler()
    if config.backend == BackendKind.SCRIPTED:
        from drupal_crawler.browser_crawler import BrowserFetcher
        return BrowserFetcher(browser_config, form_handler=form_handler)

    from drupal_crawler.crawler import StaticFetcher
    return StaticFetcher(
        user_agent=config.user_agent,
        timeout=config.request_timeout,
        form_handler=form_handler,
    )


class SiteCrawler:
    """Coordinates one crawl run.

    Lifecycle: CONFIGURED -> RUNNING (seed + spawn workers) -> DRAINING (queue
    empty with the budget spent or nothing in flight, or every worker
    returned) -> DONE (all returned, or the bounded wait expired and the
    stragglers were abandoned). DRAINING is skipped only when the bounded wait
    expires first.
    """

    def __init__(
        self,
        config: CrawlConfig,
        browser_config: BrowserConfig = DEFAULT_BROWSER_CONFIG,
        form_handler: Optional[FormHandler] = None,
        fetcher_factory: Optional[Callable[[], Fetcher]] = None,
        output_manager: Optional[OutputManager] = None,
        frontier: Optional[Frontier] = None,
    ):
        """Initialize the site crawler.

        Args:
            config: Validated crawl configuration
            browser_config: Settings for the scripted backend
            form_handler: Form engine shared by all fetchers (it holds no page state)
            fetcher_factory: Override for building each worker's fetcher
            output_manager: Where per-worker result files are written
            frontier: Optional pre-built frontier
        """
        self.config = config
        self.browser_config = browser_config
        self.form_handler = form_handler or FormHandler()
        self._fetcher_factory = fetcher_factory or (
            lambda: make_fetcher(self.config, self.browser_config, self.form_handler)
        )
        self.output_manager = output_manager or OutputManager(config.output_dir)
        self.frontier = frontier or Frontier()
        self.state = CrawlState.CONFIGURED
        self.state_history: List[CrawlState] = [self.state]
        self._stop_event = threading.Event()

    def _set_state(self, state: CrawlState) -> None:
        self.state = state
        self.state_history.append(state)

    def _run_worker(self, worker_id: int) -> int:
        worker = CrawlWorker(
            worker_id=worker_id,
            frontier=self.frontier,
            config=self.config,
            fetcher_factory=self._fetcher_factory,
            writer_factory=self.output_manager.open_writer,
            stop_event=self._stop_event,
        )
        return worker.run()

    def run(self) -> CrawlSummary:
        """Crawl from the start URL until the budget is spent or nothing is left.

        Returns:
            CrawlSummary describing the run
        """
        if self.state != CrawlState.CONFIGURED:
            raise RuntimeError(f"SiteCrawler already ran (state: {self.state.value})")

        summary = CrawlSummary(max_pages=self.config.max_pages)
        start_time = time.time()
        deadline = start_time + self.config.run_timeout

        self._set_state(CrawlState.RUNNING)
        self.frontier.enqueue(self.config.start_url, ROOT_REFERRER)
        logger.info(f"Starting crawl from {self.config.start_url} with {self.config.thread_count} worker(s)")

        executor = ThreadPoolExecutor(
            max_workers=self.config.thread_count,
            thread_name_prefix="crawl-worker",
        )
        futures = {
            executor.submit(self._run_worker, worker_id): worker_id
            for worker_id in range(1, self.config.thread_count + 1)
        }

        done, pending = set(), set(futures)
        while pending:
            remaining = deadline - time.time()
            if remaining <= 0:
                break
            done, pending = wait(futures, timeout=min(remaining, DRAIN_CHECK_SECONDS))
            if self.state == CrawlState.RUNNING and (
                not pending or self.frontier.is_drained(self.config.max_pages)
            ):
                self._set_state(CrawlState.DRAINING)
                logger.debug(f"Frontier drained, waiting for {len(pending)} worker(s) to return")

        for future in done:
            error = future.exception()
            if error is not None:
                logger.error(f"Worker {futures[future]} failed: {error}")

        if pending:
            logger.warning(f"Run timeout reached, abandoning {len(pending)} worker(s)")
            self._stop_event.set()
            executor.shutdown(wait=False, cancel_futures=True)
        else:
            executor.shutdown(wait=True)

        self._set_state(CrawlState.DONE)
        summary.state = self.state
        summary.abandoned_workers = len(pending)
        summary.pages_visited = self.frontier.visited_count()
        summary.pages_processed = min(self.frontier.processed_count, self.config.max_pages)
        summary.pending_tasks = self.frontier.pending()
        summary.elapsed_seconds = time.time() - start_time
        summary.finished_at = datetime.now()

        logger.info(
            f"Crawl finished: {summary.pages_processed}/{summary.max_pages} page(s) "
            f"in {summary.elapsed_ms} ms"
        )
        return summary
