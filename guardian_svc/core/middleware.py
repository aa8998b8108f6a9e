"""
Request logging middleware and the in-process activity counters behind /metrics.

Counters cover what the service is for: exports per reading kind (and how
many of them had to fall back to a partial QR), photo recognition outcomes,
and sync pushes. HTTP traffic is counted per status class with a running
duration total, enough for a Prometheus ``rate(sum)/rate(count)`` average.

Middleware Stack Order (in main.py):
    1. LoggingMiddleware (outermost)
    2. CORS Middleware
    3. Application routes
"""

import logging
import threading
import time
import uuid
from collections import Counter
from typing import Callable, Dict, List

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging_config import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

STATUS_CLASSES = ("2xx", "3xx", "4xx", "5xx")
READING_KINDS = ("bp", "glucose")
OCR_OUTCOMES = ("success", "partial_fail", "mismatch", "fail")


# =============================================================================
# ACTIVITY COUNTERS
# =============================================================================

class MetricsCollector:
    """
    Totals since process start.

    Sync results are recorded by Celery tasks, which may run in other
    threads, so every update holds the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.requests: Counter = Counter()
        self.request_duration_ms_sum = 0.0
        self.exports: Counter = Counter()
        self.qr_partial = 0
        self.ocr_outcomes: Counter = Counter()
        self.sync_success = 0
        self.sync_failure = 0

    def record_request(self, status_code: int, duration_ms: float) -> None:
        with self._lock:
            self.requests[f"{status_code // 100}xx"] += 1
            self.request_duration_ms_sum += duration_ms

    def record_export(self, kind: str, qr_partial: bool) -> None:
        """Count a finished export of one reading kind."""
        with self._lock:
            self.exports[kind] += 1
            if qr_partial:
                self.qr_partial += 1

    def record_ocr(self, outcome: str) -> None:
        with self._lock:
            self.ocr_outcomes[outcome] += 1

    def record_sync_push(self, success: bool) -> None:
        """Count a sync push that published, or gave up after its last retry."""
        with self._lock:
            if success:
                self.sync_success += 1
            else:
                self.sync_failure += 1

    def get_summary(self) -> Dict:
        with self._lock:
            summary = {
                "http_requests_total": sum(self.requests.values()),
                "http_request_duration_ms_sum": round(self.request_duration_ms_sum, 2),
                "exports_qr_partial_total": self.qr_partial,
                "sync_push_success_total": self.sync_success,
                "sync_push_failure_total": self.sync_failure,
            }
            for status_class in STATUS_CLASSES:
                summary[f"http_requests_{status_class}_total"] = self.requests[status_class]
            for kind in READING_KINDS:
                summary[f"exports_{kind}_total"] = self.exports[kind]
            for outcome in OCR_OUTCOMES:
                summary[f"ocr_{outcome}_total"] = self.ocr_outcomes[outcome]
        return summary

    def get_prometheus_format(self) -> str:
        """Export the counters in Prometheus text format."""
        summary = self.get_summary()
        lines: List[str] = [
            "# HELP http_requests_total HTTP requests by status class",
            "# TYPE http_requests_total counter",
        ]
        lines += [
            f'http_requests_total{{status="{c}"}} {summary[f"http_requests_{c}_total"]}'
            for c in STATUS_CLASSES
        ]
        lines += [
            "",
            "# HELP http_request_duration_ms Request duration in milliseconds",
            "# TYPE http_request_duration_ms summary",
            f'http_request_duration_ms_sum {summary["http_request_duration_ms_sum"]}',
            f'http_request_duration_ms_count {summary["http_requests_total"]}',
            "",
            "# HELP guardian_exports_total Document exports by reading kind",
            "# TYPE guardian_exports_total counter",
        ]
        lines += [f'guardian_exports_total{{kind="{k}"}} {summary[f"exports_{k}_total"]}' for k in READING_KINDS]
        lines += [
            "",
            "# HELP guardian_qr_partial_total Exports whose QR payload kept only the newest observations",
            "# TYPE guardian_qr_partial_total counter",
            f'guardian_qr_partial_total {summary["exports_qr_partial_total"]}',
            "",
            "# HELP guardian_ocr_total Photo recognitions by outcome",
            "# TYPE guardian_ocr_total counter",
        ]
        lines += [f'guardian_ocr_total{{outcome="{o}"}} {summary[f"ocr_{o}_total"]}' for o in OCR_OUTCOMES]
        lines += [
            "",
            "# HELP sync_push_total Bundle sync push completions",
            "# TYPE sync_push_total counter",
            f'sync_push_total{{result="success"}} {summary["sync_push_success_total"]}',
            f'sync_push_total{{result="failure"}} {summary["sync_push_failure_total"]}',
        ]
        return "\n".join(lines) + "\n"


metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return metrics_collector


# =============================================================================
# LOGGING MIDDLEWARE
# =============================================================================

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a short id, logs it and counts it.

    The id is returned in the X-Request-ID header and attached to every log
    line written while the request runs.
    """

    QUIET_PATHS = {"/health", "/ready", "/metrics", "/metrics/json", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        set_request_id(request_id)
        path = request.url.path
        quiet = path in self.QUIET_PATHS
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", extra={"method": request.method, "path": path})
            metrics_collector.record_request(500, (time.perf_counter() - start_time) * 1000)
            raise
        finally:
            clear_request_id()

        duration_ms = (time.perf_counter() - start_time) * 1000
        metrics_collector.record_request(response.status_code, duration_ms)

        if not quiet:
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                f"{request.method} {path} -> {response.status_code}",
                extra={"request_id": request_id, "duration_ms": round(duration_ms, 2)}
            )

        response.headers["X-Request-ID"] = request_id
        return response
