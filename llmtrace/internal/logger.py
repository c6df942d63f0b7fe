"""
Logging utilities for internal use.
Usage:
    from llmtrace.internal.logger import get_logger
    log = get_logger(__name__)

    log.debug("patched %s", name)

Records are rate limited per call site: one record per ``pathname``/``lineno``
per window, 60 seconds unless ``LLMTRACE_LOGGING_RATE`` says otherwise (``0``
turns rate limiting off). Loggers set to DEBUG are never rate limited. The
first record let through after a window carries the number of dropped records
in its ``skipped`` attribute.
"""

import logging
import threading
import time
from typing import Dict
from typing import Tuple


MINUTE = 60


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with the llmtrace rate limiter attached."""
    logger = logging.getLogger(name)
    # addFilter is a no-op when the filter is already attached
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


class LoggingBucket:
    """Start of the current window of one call site and the records dropped in it."""

    def __init__(self, bucket: float, skipped: int):
        self.bucket = bucket
        self.skipped = skipped

    def __repr__(self):
        return f"LoggingBucket({self.bucket}, {self.skipped})"

    def is_sampled(self, record: logging.LogRecord, rate: float) -> bool:
        current = time.monotonic()
        if current - self.bucket >= rate:
            self.bucket = current
            record.skipped = self.skipped
            self.skipped = 0
            return True
        self.skipped += 1
        return False


class RateLimitFilter:
    """Log filter shared by every llmtrace logger.

    Call sites log from any importing thread, so buckets are created and
    updated under a lock.
    """

    def __init__(self, rate: float = MINUTE):
        self.rate = rate
        self.buckets: Dict[Tuple[str, int], LoggingBucket] = {}
        self._lock = threading.Lock()

    def __call__(self, record: logging.LogRecord) -> bool:
        if not self.rate or logging.getLogger(record.name).getEffectiveLevel() == logging.DEBUG:
            return True

        key = (record.pathname, record.lineno)
        with self._lock:
            bucket = self.buckets.get(key)
            if bucket is None:
                bucket = self.buckets[key] = LoggingBucket(float("-inf"), 0)
            return bucket.is_sampled(record, self.rate)


log_filter = RateLimitFilter()

_buckets = log_filter.buckets


def set_rate_limit(rate: int) -> None:
    log_filter.rate = rate


class LLMTraceFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        skipped = getattr(record, "skipped", 0)
        skip_str = f" [{skipped} skipped]" if skipped else ""
        return f"{record.levelname} {super().format(record)}{skip_str}"
