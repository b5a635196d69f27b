# tgbatch/infra/metrics.py
"""
In-process batch metrics.

Counters and request timings are kept per label set and dumped by the
CLI runner when a batch ends.  Call sites go through ``BatchMetrics``
rather than naming metrics themselves.
"""
from __future__ import annotations

import time
from collections import defaultdict
from threading import Lock
from typing import Dict, List

from tgbatch.infra.logging_config import get_logger

logger = get_logger(__name__)


def metric_key(name: str, labels: dict | None = None) -> str:
    """``name{k=v,...}`` with labels in sorted order."""
    if not labels:
        return name
    label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
    return f"{name}{{{label_str}}}"


def summarize(samples: List[float]) -> dict:
    """count/min/max/avg/p95 of a list of durations."""
    if not samples:
        return {"count": 0, "min": 0, "max": 0, "avg": 0, "p95": 0}

    ordered = sorted(samples)
    count = len(ordered)
    return {
        "count": count,
        "min": ordered[0],
        "max": ordered[-1],
        "avg": sum(ordered) / count,
        "p95": ordered[min(int(count * 0.95), count - 1)],
    }


class MetricsCollector:
    def __init__(self):
        self._counts: Dict[str, int] = defaultdict(int)
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()

    def count(self, name: str, labels: dict | None = None, amount: int = 1) -> None:
        key = metric_key(name, labels)
        with self._lock:
            self._counts[key] += amount

    def observe(self, name: str, seconds: float, labels: dict | None = None) -> None:
        key = metric_key(name, labels)
        with self._lock:
            self._timings[key].append(seconds)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "counters": dict(self._counts),
                "histograms": {k: summarize(v) for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._timings.clear()
        logger.debug("Metrics reset")


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def _enabled() -> bool:
    from tgbatch.config import settings
    return settings.enable_metrics


class RequestTimer:
    """Records ``telegram_request_seconds`` for the ``with`` block, errors included."""

    def __init__(self, endpoint: str, encoding: str):
        self.labels = {"endpoint": endpoint, "encoding": encoding}
        self.started: float | None = None

    def __enter__(self):
        self.started = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.started is not None and _enabled():
            _metrics.observe("telegram_request_seconds", time.monotonic() - self.started, self.labels)


class BatchMetrics:
    """Named batch and transport metrics."""

    @staticmethod
    def item_succeeded(operation: str) -> None:
        _count("batch_items_succeeded", operation=operation)

    @staticmethod
    def item_failed(operation: str) -> None:
        _count("batch_items_failed", operation=operation)

    @staticmethod
    def batch_aborted(operation: str) -> None:
        _count("batch_aborted", operation=operation)

    @staticmethod
    def request_sent(endpoint: str, encoding: str) -> None:
        _count("telegram_requests_sent", endpoint=endpoint, encoding=encoding)

    @staticmethod
    def request_failed(endpoint: str, status: int) -> None:
        _count("telegram_request_errors", endpoint=endpoint, status=status)

    @staticmethod
    def track_request(endpoint: str, encoding: str) -> RequestTimer:
        return RequestTimer(endpoint, encoding)


def _count(name: str, **labels) -> None:
    if _enabled():
        _metrics.count(name, labels)
