from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.recon.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._sync_push_total = Counter(
            "sync_push_total",
            "Sync push batches by result.",
            ["result"],
            registry=self._registry,
        )
        self._sync_reset_total = Counter(
            "sync_reset_total",
            "Data reset requests by result.",
            ["result"],
            registry=self._registry,
        )
        self._sync_records_total = Counter(
            "sync_records_total",
            "Records upserted or deleted by sync push.",
            ["collection", "operation"],
            registry=self._registry,
        )
        self._notifications_total = Counter(
            "notifications_total",
            "Notification dispatch outcomes.",
            ["result"],
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._invariants_violation_total = Counter(
            "invariants_violation_total",
            "Integrity invariant violations.",
            ["check_id"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def record_sync_push(self, result: str) -> None:
        if not self.enabled:
            return
        self._sync_push_total.labels(result=result).inc()

    def record_sync_reset(self, result: str) -> None:
        if not self.enabled:
            return
        self._sync_reset_total.labels(result=result).inc()

    def record_sync_records(self, collection: str, operation: str, count: int) -> None:
        if not self.enabled or count <= 0:
            return
        self._sync_records_total.labels(collection=collection, operation=operation).inc(count)

    def record_notification(self, result: str) -> None:
        if not self.enabled:
            return
        self._notifications_total.labels(result=result).inc()

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def increment_invariant_violation(self, check_id: str, count: int = 1) -> None:
        if not self.enabled:
            return
        self._invariants_violation_total.labels(check_id=check_id).inc(count)

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
