"""Thread pool for running per-domain fetch phases in parallel.

One failing domain never takes the others down: every item comes back as a
(success, item, result_or_error) tuple, in the order the items were given.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional, Sequence

FetchOutcome = tuple[bool, Any, Any]


@dataclass
class FetchStats:
    max_workers: int
    total_submitted: int = 0
    total_successful: int = 0
    total_failed: int = 0


class FetchPool:
    """ThreadPoolExecutor wrapper that captures per-item failures."""

    def __init__(self, max_workers: int = 4, logger: Optional[logging.Logger] = None):
        """
        Args:
            max_workers: Upper bound on concurrent fetches (default: 4)
            logger: Logger for per-item outcomes (module logger when None)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._stats = FetchStats(max_workers=max_workers)

    def _count(self, success: bool) -> None:
        with self._lock:
            if success:
                self._stats.total_successful += 1
            else:
                self._stats.total_failed += 1

    def map(self, func: Callable[[Any], Any], items: Sequence, desc: str = "Fetching") -> list[FetchOutcome]:
        """
        Run func over items in parallel.

        Args:
            func: Fetch function, called once per item
            items: Items to fetch (e.g. domain names)
            desc: Prefix for log messages

        Returns:
            (success, item, result_or_error) per item, in input order
        """
        if not items:
            return []

        with self._lock:
            self._stats.total_submitted += len(items)

        outcomes: list[Optional[FetchOutcome]] = [None] * len(items)
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as executor:
            futures = {executor.submit(func, item): index for index, item in enumerate(items)}
            for future in as_completed(futures):
                index = futures[future]
                item = items[index]
                try:
                    outcomes[index] = (True, item, future.result())
                except Exception as e:
                    self._count(False)
                    outcomes[index] = (False, item, e)
                    self.logger.error(f"{desc}: {item} failed: {type(e).__name__}: {e}")
                    continue
                self._count(True)
                self.logger.debug(f"{desc}: {item} done")

        return outcomes

    def get_stats(self) -> dict:
        with self._lock:
            return asdict(self._stats)
