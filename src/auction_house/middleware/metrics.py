"""Prometheus metrics middleware and auction-specific instruments."""
import re
import time
from typing import Callable

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

# Request metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
)

# Bid metrics
BID_COUNTER = Counter(
    "bids_total",
    "Bid attempts by outcome",
    ["outcome"],  # accepted, or the rejecting error code
)

BID_LATENCY = Histogram(
    "bid_latency_seconds",
    "Bid processing latency in seconds, lock wait included",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

# Closer metrics
AUCTIONS_CLOSED = Counter(
    "auctions_closed_total",
    "Auctions closed by the closer",
    ["result"],  # won, no_bids
)

CLOSER_CYCLE_LATENCY = Histogram(
    "auction_closer_cycle_seconds",
    "Duration of one closing cycle",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

CLOSER_TICKS_SKIPPED = Counter(
    "auction_closer_ticks_skipped_total",
    "Closer ticks skipped because the previous cycle was still running",
)


# =============================================================================
# Metrics Middleware
# =============================================================================

class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all HTTP requests."""

    # Path templates, checked in order (reduce cardinality)
    ENDPOINT_PATTERNS = [
        (re.compile(r"^/api/v1/auctions/[^/]+/bids/?$"), "/api/v1/auctions/{id}/bids"),
        (re.compile(r"^/api/v1/auctions/[^/]+/?$"), "/api/v1/auctions/{id}"),
        (re.compile(r"^/api/v1/auctions/?$"), "/api/v1/auctions"),
    ]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            ACTIVE_REQUESTS.dec()
            latency = time.perf_counter() - start_time
            endpoint = self._normalize_endpoint(request.url.path)

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()

            REQUEST_LATENCY.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(latency)

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce metric cardinality."""
        for pattern, normalized in self.ENDPOINT_PATTERNS:
            if pattern.match(path):
                return normalized

        if path in ("/health", "/ws", "/metrics"):
            return path

        return "/other"


# =============================================================================
# Metrics Endpoint
# =============================================================================

async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics scrape endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# =============================================================================
# Helper Functions for Manual Metric Recording
# =============================================================================

def record_bid(outcome: str, duration: float) -> None:
    """Record a bid attempt and how long it took."""
    BID_COUNTER.labels(outcome=outcome).inc()
    BID_LATENCY.observe(duration)


def record_auction_closed(has_winner: bool) -> None:
    AUCTIONS_CLOSED.labels(result="won" if has_winner else "no_bids").inc()


def record_closer_cycle(duration: float) -> None:
    CLOSER_CYCLE_LATENCY.observe(duration)


def record_closer_skipped() -> None:
    CLOSER_TICKS_SKIPPED.inc()
