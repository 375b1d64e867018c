"""HTTP endpoint registry with rate limiting, retries and performance tracking."""

from __future__ import annotations

import asyncio
import base64
import json
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

DEFAULT_MAX_REQUESTS = 100
DEFAULT_TIME_WINDOW = 60.0
FAILURE_RATE_THRESHOLD = 0.1
SLOW_RESPONSE_THRESHOLD = 0.5
SYSTEM_LOAD_THRESHOLD = 0.8

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


_BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


class BackoffStrategy(Enum):
    LINEAR = "Linear"
    EXPONENTIAL = "Exponential"
    CONSTANT = "Constant"


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str


@dataclass(frozen=True)
class BearerAuth:
    token: str


@dataclass(frozen=True)
class OAuthAuth:
    """OAuth client credentials; not applied to outgoing requests."""

    client_id: str
    client_secret: str
    token_url: str


Authentication = BasicAuth | BearerAuth | OAuthAuth


@dataclass(frozen=True)
class RetryConfiguration:
    """How often and how patiently a failing request is retried.

    ``base_delay`` is in seconds.
    """

    max_retries: int = 3
    base_delay: float = 0.1
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL

    def delay_for(self, attempt: int) -> float:
        """Delay before the next try after a transport failure on ``attempt``."""
        if self.backoff_strategy is BackoffStrategy.LINEAR:
            return self.base_delay * (attempt + 1)
        if self.backoff_strategy is BackoffStrategy.EXPONENTIAL:
            return self.base_delay * 2**attempt
        return self.base_delay


@dataclass(frozen=True)
class APIEndpoint:
    name: str
    url: str
    method: HttpMethod = HttpMethod.GET
    authentication: Authentication | None = None
    retry_config: RetryConfiguration = field(default_factory=RetryConfiguration)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


class RateLimitExceeded(Exception):
    """Raised when the rate limiter refuses a request."""


class APIRequestError(Exception):
    """Raised when a request fails or runs out of retries."""


class RateLimiter:
    """Fixed-window limiter allowing ``max_requests`` per ``time_window`` seconds."""

    def __init__(
        self,
        max_requests: int,
        time_window: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.time_window = time_window
        self.current_requests = 0
        self._clock = clock
        self._last_reset = clock()

    def check_request(self) -> bool:
        """Count a request and report whether it is allowed."""
        now = self._clock()
        if now - self._last_reset > self.time_window:
            self.current_requests = 0
            self._last_reset = now
        if self.current_requests < self.max_requests:
            self.current_requests += 1
            return True
        return False


@dataclass
class EndpointMetrics:
    """Per-endpoint counters; times are in seconds."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    avg_response_time: float = 0.0
    peak_response_time: float = 0.0
    last_request_time: float | None = None

    @property
    def failure_rate(self) -> float:
        return self.failed_requests / self.total_requests if self.total_requests else 0.0


@dataclass
class GlobalPerformanceStats:
    total_requests: int = 0
    successful_requests: int = 0
    system_load: float = 0.0
    peak_concurrent_connections: int = 0


class RecommendationType(Enum):
    HIGH_FAILURE_RATE = "HighFailureRate"
    SLOW_RESPONSE_TIME = "SlowResponseTime"
    HIGH_SYSTEM_LOAD = "HighSystemLoad"


@dataclass(frozen=True)
class PerformanceRecommendation:
    endpoint: str
    recommendation_type: RecommendationType
    description: str


class APIPerformanceTracker:
    """Collects request outcomes and turns them into recommendations."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.endpoint_metrics: dict[str, EndpointMetrics] = {}
        self.global_stats = GlobalPerformanceStats()
        self._clock = clock

    def record_request(self, endpoint: str, success: bool, response_time: float) -> None:
        """Record one request; ``response_time`` is in seconds."""
        metrics = self.endpoint_metrics.setdefault(endpoint, EndpointMetrics())
        metrics.total_requests += 1
        if success:
            metrics.successful_requests += 1
            count = metrics.successful_requests
            metrics.avg_response_time = (
                metrics.avg_response_time * (count - 1) + response_time
            ) / count
            metrics.peak_response_time = max(metrics.peak_response_time, response_time)
        else:
            metrics.failed_requests += 1
        metrics.last_request_time = self._clock()

        self.global_stats.total_requests += 1
        if success:
            self.global_stats.successful_requests += 1

    def analyze_performance(self) -> list[PerformanceRecommendation]:
        recommendations = []
        for endpoint, metrics in self.endpoint_metrics.items():
            rate = metrics.failure_rate
            if rate > FAILURE_RATE_THRESHOLD:
                recommendations.append(
                    PerformanceRecommendation(
                        endpoint,
                        RecommendationType.HIGH_FAILURE_RATE,
                        f"High failure rate detected: {rate * 100:.2f}%",
                    )
                )
            if metrics.avg_response_time > SLOW_RESPONSE_THRESHOLD:
                recommendations.append(
                    PerformanceRecommendation(
                        endpoint,
                        RecommendationType.SLOW_RESPONSE_TIME,
                        f"Slow average response time: {metrics.avg_response_time:.3f}s",
                    )
                )
        load = self.global_stats.system_load
        if load > SYSTEM_LOAD_THRESHOLD:
            recommendations.append(
                PerformanceRecommendation(
                    "system",
                    RecommendationType.HIGH_SYSTEM_LOAD,
                    f"High system load detected: {load * 100:.2f}%",
                )
            )
        return recommendations


def _auth_headers(auth: Authentication | None) -> dict[str, str]:
    if isinstance(auth, BearerAuth):
        return {"Authorization": f"Bearer {auth.token}"}
    if isinstance(auth, BasicAuth):
        raw = f"{auth.username}:{auth.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}
    return {}


class APIManager:
    """Registers endpoints and calls them with rate limiting and retries."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self.rate_limiter = rate_limiter or RateLimiter(
            DEFAULT_MAX_REQUESTS, DEFAULT_TIME_WINDOW
        )
        self.performance_tracker = APIPerformanceTracker()
        self._endpoints: dict[str, APIEndpoint] = {}
        self._sleep = sleep
        self._limiter_lock = asyncio.Lock()
        self._endpoints_lock = asyncio.Lock()
        self._tracker_lock = asyncio.Lock()

    async def __aenter__(self) -> APIManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def endpoints(self) -> dict[str, APIEndpoint]:
        return dict(self._endpoints)

    async def register_endpoint(self, endpoint: APIEndpoint) -> None:
        async with self._endpoints_lock:
            self._endpoints[str(endpoint.id)] = endpoint

    async def execute_request(
        self, endpoint_id: str, payload: Any = None
    ) -> httpx.Response:
        """Call a registered endpoint and return its successful response."""
        async with self._limiter_lock:
            if not self.rate_limiter.check_request():
                raise RateLimitExceeded("Rate limit exceeded")

        async with self._endpoints_lock:
            endpoint = self._endpoints.get(endpoint_id)
        if endpoint is None:
            raise LookupError("Endpoint not found")

        headers = _auth_headers(endpoint.authentication)
        content: bytes | None = None
        if payload is not None and endpoint.method in _BODY_METHODS:
            headers["Content-Type"] = "application/json"
            content = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        start = time.monotonic()
        response = await self._execute_with_retry(
            endpoint, headers, content, endpoint.retry_config
        )
        elapsed = time.monotonic() - start

        async with self._tracker_lock:
            self.performance_tracker.record_request(
                endpoint_id, response.is_success, elapsed
            )
        return response

    async def _execute_with_retry(
        self,
        endpoint: APIEndpoint,
        headers: dict[str, str],
        content: bytes | None,
        retry_config: RetryConfiguration,
    ) -> httpx.Response:
        last_error: Exception | None = None
        for attempt in range(retry_config.max_retries + 1):
            try:
                response = await self._client.request(
                    endpoint.method.value, endpoint.url, headers=headers, content=content
                )
            except httpx.RequestError as error:
                last_error = error
                await self._sleep(retry_config.delay_for(attempt))
                continue
            if response.is_success:
                return response
            if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
                await self._sleep(float(2**attempt))
                continue
            raise APIRequestError(
                f"Request failed with status: {response.status_code}"
            )
        raise APIRequestError(
            f"Failed after {retry_config.max_retries} retries. "
            f"Last error: {last_error!r}"
        )

    async def analyze_performance(self) -> list[PerformanceRecommendation]:
        async with self._tracker_lock:
            return self.performance_tracker.analyze_performance()

    async def record_api_call(
        self, endpoint: str, duration: float, status_code: int
    ) -> None:
        """Record an externally made call; only status 200 counts as success."""
        async with self._tracker_lock:
            self.performance_tracker.record_request(
                endpoint, status_code == 200, duration
            )