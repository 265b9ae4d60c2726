"""Per-worker crawl loop."""

import logging
import threading
import time
from typing import Callable, Optional

from drupal_crawler.config import CrawlConfig
from drupal_crawler.constants import (
    DESTRUCTIVE_ACTION_MARKER,
    FETCH_FAILED_STATUS,
    FORM_PAGE_MARKERS,
    LOGOUT_MARKER,
    MAX_SNIPPET_LENGTH,
    POLL_INTERVAL_SECONDS,
    SESSION_DENYLIST,
)
from drupal_crawler.exceptions import SinkError
from drupal_crawler.fetcher import Fetcher, FetchResult
from drupal_crawler.frontier import Frontier
from drupal_crawler.logging_config import bind_worker
from drupal_crawler.messages import extract_messages, truncate
from drupal_crawler.models import CrawlTask, FormStatus, PageOutcome
from drupal_crawler.output_manager import ResultWriter

logger = logging.getLogger(__name__)


def is_session_destroying(url: str) -> bool:
    """URLs that would end or swap the shared login session."""
    return any(marker in url for marker in SESSION_DENYLIST)


def is_form_page(url: str) -> bool:
    return any(marker in url for marker in FORM_PAGE_MARKERS)


def should_follow(link: str, base_domain: str) -> bool:
    """Links stay inside the base domain and never point at logout."""
    return link.startswith(base_domain) and LOGOUT_MARKER not in link


class CrawlWorker:
    """One worker of the pool.

    Owns its fetcher and its result sink; shares only the frontier and the
    read-only configuration with the other workers.
    """

    def __init__(
        self,
        worker_id: int,
        frontier: Frontier,
        config: CrawlConfig,
        fetcher_factory: Callable[[], Fetcher],
        writer_factory: Callable[[int], ResultWriter],
        stop_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize a worker.

        Args:
            worker_id: Identifier used in the result file name and logs
            frontier: Shared frontier
            config: Shared crawl configuration
            fetcher_factory: Builds this worker's fetcher (called in the worker thread)
            writer_factory: Opens this worker's result sink given its id
            stop_event: Set by the coordinator when the run is abandoned
            sleep: Sleep function used while polling an empty queue
        """
        self.worker_id = worker_id
        self.frontier = frontier
        self.config = config
        self._fetcher_factory = fetcher_factory
        self._writer_factory = writer_factory
        self._stop_event = stop_event or threading.Event()
        self._sleep = sleep
        self.rows_written = 0

    def run(self) -> int:
        """Work until the frontier is drained or the budget is spent.

        Returns:
            Number of rows this worker wrote
        """
        bind_worker(self.worker_id)
        try:
            return self._run()
        finally:
            bind_worker(None)

    def _run(self) -> int:
        try:
            writer = self._writer_factory(self.worker_id)
        except (SinkError, OSError) as e:
            logger.error(f"Worker {self.worker_id} cannot open its result file: {e}")
            return 0

        with writer:
            fetcher = self._fetcher_factory()
            try:
                fetcher.inject_session(self.config.cookie_string)
                self._loop(fetcher, writer)
            except (SinkError, OSError) as e:
                logger.error(f"Worker {self.worker_id} stopped, result file failed: {e}")
            finally:
                fetcher.close()

        logger.debug(f"Worker {self.worker_id} finished with {self.rows_written} row(s)")
        return self.rows_written

    def _loop(self, fetcher: Fetcher, writer: ResultWriter) -> None:
        while not self._stop_event.is_set():
            task = self.frontier.try_dequeue()
            if task is None:
                if self._should_stop_polling():
                    return
                self._sleep(POLL_INTERVAL_SECONDS)
                continue

            try:
                if not self._handle_task(task, fetcher, writer):
                    return
            finally:
                self.frontier.task_done()

    def _should_stop_polling(self) -> bool:
        return self.frontier.is_drained(self.config.max_pages)

    def _handle_task(self, task: CrawlTask, fetcher: Fetcher, writer: ResultWriter) -> bool:
        """Process one dequeued task. Returns False when the worker must stop."""
        if is_session_destroying(task.url):
            logger.debug(f"Skipping session URL {task.url}")
            return True

        if not self.frontier.mark_visited(task.url):
            return True

        page_number = self.frontier.increment_processed()
        if page_number > self.config.max_pages:
            return False

        outcome = self.process_page(task, page_number, fetcher)
        writer.write(outcome)
        self.rows_written += 1
        return True

    def process_page(self, task: CrawlTask, page_number: int, fetcher: Fetcher) -> PageOutcome:
        """Fetch, classify, submit and discover for one URL."""
        start_time = time.time()
        try:
            result = fetcher.fetch(task.url)
        except Exception as e:
            logger.warning(f"Fetch failed for {task.url}: {e}")
            self._log_progress(page_number, FETCH_FAILED_STATUS, start_time, task)
            return PageOutcome(url=task.url, status_code=FETCH_FAILED_STATUS, referrer=task.referrer)

        messages = extract_messages(result.document)

        form_status = FormStatus.NOT_APPLICABLE
        if result.ok:
            if is_form_page(task.url):
                form_status = self.handle_form(fetcher, result)
            self.discover_links(result, task.url)

        self._log_progress(page_number, result.status_code, start_time, task)
        return PageOutcome(
            url=task.url,
            status_code=result.status_code,
            referrer=task.referrer,
            form_submission_status=form_status,
            issue_types=tuple(m.severity.value for m in messages),
            issue_snippets=tuple(truncate(m.text, MAX_SNIPPET_LENGTH) for m in messages),
        )

    def handle_form(self, fetcher: Fetcher, result: FetchResult) -> str:
        """Submit the first form of an edit/add page unless it is destructive."""
        forms = result.document.forms()
        if not forms:
            return FormStatus.NOT_APPLICABLE

        action = result.document.form_action(forms[0])
        if DESTRUCTIVE_ACTION_MARKER in action.lower():
            logger.info(f"Skipping destructive form action {action}")
            return FormStatus.SKIPPED_DELETE

        try:
            return fetcher.submit_form(result, 0)
        except Exception as e:
            logger.error(f"Form submission raised on {result.url}: {e}")
            return FormStatus.error(str(e))

    def discover_links(self, result: FetchResult, referrer: str) -> int:
        """Enqueue in-scope links. Returns how many were new."""
        added = 0
        for link in result.links:
            if should_follow(link, self.config.base_domain) and self.frontier.enqueue(link, referrer):
                added += 1
        return added

    def _log_progress(self, page_number: int, status_code: int, start_time: float, task: CrawlTask) -> None:
        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"#{page_number} | {status_code} | {elapsed_ms} ms | "
            f"Remaining: {self.frontier.pending()} | {task.url} | Ref: {task.referrer}"
        )
