"""
Thread-safe frontier for the crawler.

Holds the FIFO work queue, the set of URLs ever enqueued, the set of URLs
visited, and the shared processed-page counter. A single lock guards all of
them so every check-and-insert and increment-and-read is atomic.
"""

import logging
import threading
from collections import deque
from typing import Optional, Set

from drupal_crawler.models import CrawlTask

logger = logging.getLogger(__name__)


class Frontier:
    """Shared URL work queue plus its two membership sets.

    Instances are independent: workers receive one by reference at
    construction, so tests can build as many as they like.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._queue: deque = deque()
        self._enqueued: Set[str] = set()
        self._visited: Set[str] = set()
        self._processed = 0
        self._in_flight = 0

    def enqueue(self, url: str, referrer: str) -> bool:
        """Queue a URL unless it was ever queued before.

        Returns:
            True only for the first caller to offer this URL
        """
        with self._lock:
            if url in self._enqueued:
                return False
            self._enqueued.add(url)
            self._queue.append(CrawlTask(url=url, referrer=referrer))
            return True

    def try_dequeue(self) -> Optional[CrawlTask]:
        """Pop the head task without blocking.

        A returned task counts as in flight until task_done() is called.
        """
        with self._lock:
            if not self._queue:
                return None
            self._in_flight += 1
            return self._queue.popleft()

    def task_done(self) -> None:
        """Mark a task obtained from try_dequeue() as finished."""
        with self._lock:
            if self._in_flight > 0:
                self._in_flight -= 1

    def mark_visited(self, url: str) -> bool:
        """Record a URL as visited; True only on first insertion."""
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            return True

    def increment_processed(self) -> int:
        """Increment the processed-page counter and return the new value."""
        with self._lock:
            self._processed += 1
            return self._processed

    @property
    def processed_count(self) -> int:
        with self._lock:
            return self._processed

    def is_drained(self, max_pages: int) -> bool:
        """True when the queue is empty and either the budget is spent or nothing is in flight.

        Both parts are read under one lock, so a discovery landing between
        them cannot be missed.
        """
        with self._lock:
            if self._queue:
                return False
            return self._processed >= max_pages or self._in_flight == 0

    def pending(self) -> int:
        """Number of tasks still waiting in the queue."""
        with self._lock:
            return len(self._queue)

    def visited_count(self) -> int:
        with self._lock:
            return len(self._visited)

    def was_enqueued(self, url: str) -> bool:
        with self._lock:
            return url in self._enqueued

    def was_visited(self, url: str) -> bool:
        with self._lock:
            return url in self._visited
