from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import requests

from app.recon.core.config import settings
from app.recon.core.logging import log_json
from app.recon.core.metrics import metrics

logger = logging.getLogger("recon.notifications")

_STOP = object()


@dataclass(frozen=True)
class Notification:
    title: str
    message: str


class NotificationProvider(Protocol):
    def send(self, notification: Notification) -> None: ...


class LogNotificationProvider:
    """Used when no push provider is configured."""

    def send(self, notification: Notification) -> None:
        log_json(logger, {"event": "notification_logged", "title": notification.title, "message": notification.message})


class OneSignalProvider:
    def __init__(
        self,
        app_id: str,
        api_key: str,
        *,
        api_url: str,
        timeout_seconds: float,
        session: requests.Session | None = None,
    ) -> None:
        self.app_id = app_id
        self.api_key = api_key
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def send(self, notification: Notification) -> None:
        response = self._session.post(
            self.api_url,
            json={
                "app_id": self.app_id,
                "included_segments": ["All"],
                "headings": {"en": notification.title},
                "contents": {"en": notification.message},
            },
            headers={"Authorization": f"Basic {self.api_key}"},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()

    def close(self) -> None:
        self._session.close()


class NotificationDispatcher:
    """Bounded queue drained by one background worker thread.

    ``enqueue`` never blocks and never raises: when the queue is full the
    notification is dropped and counted. Delivery is retried with linear
    backoff; exhausted retries are logged and counted as failed.
    """

    def __init__(
        self,
        provider: NotificationProvider,
        *,
        enabled: bool = True,
        queue_size: int = 100,
        max_attempts: int = 3,
        backoff_ms: int = 500,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.provider = provider
        self.enabled = enabled
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, queue_size))
        self._max_attempts = max(1, max_attempts)
        self._backoff_ms = max(0, backoff_ms)
        self._sleep = sleep
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        if settings.ONESIGNAL_APP_ID and settings.ONESIGNAL_REST_API_KEY:
            provider: NotificationProvider = OneSignalProvider(
                settings.ONESIGNAL_APP_ID,
                settings.ONESIGNAL_REST_API_KEY,
                api_url=settings.ONESIGNAL_API_URL,
                timeout_seconds=settings.NOTIFY_TIMEOUT_SECONDS,
            )
        else:
            provider = LogNotificationProvider()
        return cls(
            provider,
            enabled=settings.NOTIFY_ENABLED,
            queue_size=settings.NOTIFY_QUEUE_SIZE,
            max_attempts=settings.NOTIFY_MAX_ATTEMPTS,
            backoff_ms=settings.NOTIFY_BACKOFF_MS,
        )

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._thread = threading.Thread(target=self._run, name="notification-worker", daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.warning("Notification queue full on shutdown; pending notifications discarded")
            thread.join(timeout)
            self._thread = None
        close = getattr(self.provider, "close", None)
        if close is not None:
            close()

    def enqueue(self, notification: Notification) -> bool:
        if not self.enabled:
            logger.debug("Notifications disabled; skipping %r", notification.title)
            return False
        try:
            self._queue.put_nowait(notification)
        except queue.Full:
            metrics.record_notification("dropped")
            log_json(
                logger,
                {"event": "notification_dropped", "reason": "queue_full", "title": notification.title},
                level=logging.WARNING,
            )
            return False
        return True

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every queued notification has been processed."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._deliver(item)
            finally:
                self._queue.task_done()

    def _deliver(self, notification: Notification) -> None:
        for attempt in range(1, self._max_attempts + 1):
            try:
                self.provider.send(notification)
            except Exception as exc:  # delivery is best-effort; the worker must survive
                if attempt >= self._max_attempts:
                    metrics.record_notification("failed")
                    log_json(
                        logger,
                        {
                            "event": "notification_failed",
                            "title": notification.title,
                            "attempts": attempt,
                            "error": str(exc),
                            "error_class": exc.__class__.__name__,
                        },
                        level=logging.ERROR,
                    )
                    return
                logger.warning("Notification attempt %s failed: %s", attempt, exc)
                self._sleep((self._backoff_ms * attempt) / 1000)
                continue
            metrics.record_notification("sent")
            return
