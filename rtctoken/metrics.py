"""
RTC Token Metrics.

Prometheus metrics for credential issuance and verification, plus a small
in-process counter store for quick inspection in tests and debug endpoints.
"""

import threading
import time
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)


class CredentialMetrics:
    """
    Metrics collector for credential operations.

    Each instance registers its collectors in its own CollectorRegistry
    unless one is passed in, so several instances can coexist in one process.

    Example:
        >>> metrics = CredentialMetrics()
        >>> with metrics.issuance_timer():
        ...     token = issuer.issue("u-42")
        >>> metrics.record_issued("blob")
        >>> print(metrics.get_stats())
    """

    def __init__(self, namespace: str = "rtctoken", registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics collector.

        Args:
            namespace: Metric name prefix.
            registry: Optional Prometheus registry (a private one if None).
        """
        self._namespace = namespace
        self._lock = threading.Lock()
        self._counters: Dict[str, float] = {}
        self._durations: list = []
        self.registry = registry or CollectorRegistry()

        self._issued = Counter(
            f"{namespace}_credentials_issued_total",
            "Total number of credentials issued",
            ["variant"],
            registry=self.registry,
        )
        self._issue_failures = Counter(
            f"{namespace}_issue_failures_total",
            "Total number of failed issuances by error kind",
            ["kind"],
            registry=self.registry,
        )
        self._verifications = Counter(
            f"{namespace}_verifications_total",
            "Total verification attempts by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self._issue_duration = Histogram(
            f"{namespace}_issue_duration_seconds",
            "Issuance latency in seconds",
            buckets=(0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.05),
            registry=self.registry,
        )

    def _bump(self, key: str) -> None:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + 1

    def record_issued(self, variant: str) -> None:
        """Record a successful issuance."""
        self._bump("issued")
        self._issued.labels(variant=str(variant)).inc()

    def record_issue_failure(self, kind: str) -> None:
        """Record a failed issuance (configuration, caller or internal)."""
        self._bump(f"issue_failures_{kind}")
        self._issue_failures.labels(kind=kind).inc()

    def record_verification(self, outcome: str) -> None:
        """Record a verification outcome ("ok" or the error class name)."""
        self._bump(f"verifications_{outcome}")
        self._verifications.labels(outcome=outcome).inc()

    def record_issue_duration(self, duration_seconds: float) -> None:
        with self._lock:
            self._durations.append(duration_seconds)
        self._issue_duration.observe(duration_seconds)

    @contextmanager
    def issuance_timer(self):
        """Context manager for timing issuances."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_issue_duration(time.perf_counter() - start)

    def get_stats(self) -> Dict[str, Any]:
        """Get current counters as a dictionary."""
        with self._lock:
            stats: Dict[str, Any] = dict(self._counters)
            if self._durations:
                stats["issue_duration_avg"] = sum(self._durations) / len(self._durations)
                stats["issue_duration_count"] = len(self._durations)
            return stats

    def get_prometheus_metrics(self) -> bytes:
        """Get metrics in Prometheus text format."""
        return generate_latest(self.registry)


# Global metrics instance
_global_metrics: Optional[CredentialMetrics] = None


def get_metrics() -> CredentialMetrics:
    """Get or create the global metrics instance."""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = CredentialMetrics()
    return _global_metrics
