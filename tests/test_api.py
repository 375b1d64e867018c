import base64
import json

import httpx
import pytest
import respx

from devforge.api import (
    APIEndpoint,
    APIManager,
    APIPerformanceTracker,
    APIRequestError,
    BackoffStrategy,
    BasicAuth,
    BearerAuth,
    HttpMethod,
    RateLimiter,
    RateLimitExceeded,
    RecommendationType,
    RetryConfiguration,
)

URL = "https://api.example.com/test"


class FakeSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_endpoint(**kwargs):
    kwargs.setdefault("name", "Test Endpoint")
    kwargs.setdefault("url", URL)
    return APIEndpoint(**kwargs)


@pytest.mark.asyncio
async def test_api_endpoint_registration():
    endpoint = make_endpoint(
        authentication=BearerAuth("token"),
        retry_config=RetryConfiguration(3, 0.1, BackoffStrategy.EXPONENTIAL),
    )
    async with APIManager() as manager:
        await manager.register_endpoint(endpoint)
        assert manager.endpoints == {str(endpoint.id): endpoint}


def test_rate_limiter():
    limiter = RateLimiter(5, 1.0)
    assert all(limiter.check_request() for _ in range(5))
    assert not limiter.check_request()


def test_rate_limiter_resets_after_window():
    now = [0.0]
    limiter = RateLimiter(1, 1.0, clock=lambda: now[0])
    assert limiter.check_request()
    assert not limiter.check_request()
    now[0] = 1.5
    assert limiter.check_request()
    assert limiter.current_requests == 1


def test_performance_tracking():
    tracker = APIPerformanceTracker()
    tracker.record_request("/test", True, 0.1)
    tracker.record_request("/test", False, 0.2)
    recommendations = tracker.analyze_performance()
    assert recommendations
    assert recommendations[0].recommendation_type is RecommendationType.HIGH_FAILURE_RATE
    assert recommendations[0].description == "High failure rate detected: 50.00%"


def test_performance_recommendations():
    tracker = APIPerformanceTracker()
    for _ in range(20):
        tracker.record_request("/slow-endpoint", False, 0.6)
    recommendations = tracker.analyze_performance()
    assert any(
        r.recommendation_type
        in (RecommendationType.HIGH_FAILURE_RATE, RecommendationType.SLOW_RESPONSE_TIME)
        for r in recommendations
    )


def test_average_and_peak_only_count_successes():
    tracker = APIPerformanceTracker()
    tracker.record_request("/a", True, 0.1)
    tracker.record_request("/a", True, 0.3)
    tracker.record_request("/a", False, 5.0)
    metrics = tracker.endpoint_metrics["/a"]
    assert metrics.avg_response_time == pytest.approx(0.2)
    assert metrics.peak_response_time == pytest.approx(0.3)
    assert (metrics.total_requests, metrics.successful_requests, metrics.failed_requests) == (3, 2, 1)
    assert tracker.global_stats.total_requests == 3
    assert tracker.global_stats.successful_requests == 2


def test_slow_response_recommendation():
    tracker = APIPerformanceTracker()
    tracker.record_request("/slow", True, 0.7)
    kinds = [r.recommendation_type for r in tracker.analyze_performance()]
    assert kinds == [RecommendationType.SLOW_RESPONSE_TIME]


def test_high_system_load_recommendation():
    tracker = APIPerformanceTracker()
    tracker.global_stats.system_load = 0.9
    recommendations = tracker.analyze_performance()
    assert len(recommendations) == 1
    assert recommendations[0].endpoint == "system"
    assert recommendations[0].description == "High system load detected: 90.00%"


@pytest.mark.asyncio
async def test_execute_get_with_bearer_auth_records_metrics():
    endpoint = make_endpoint(authentication=BearerAuth("token"))
    with respx.mock:
        route = respx.get(URL).mock(return_value=httpx.Response(200, json={"ok": True}))
        async with APIManager() as manager:
            await manager.register_endpoint(endpoint)
            response = await manager.execute_request(str(endpoint.id), {"ignored": 1})
            metrics = manager.performance_tracker.endpoint_metrics[str(endpoint.id)]
    assert response.json() == {"ok": True}
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer token"
    assert request.content == b""
    assert metrics.successful_requests == 1


@pytest.mark.asyncio
async def test_post_sends_json_with_basic_auth():
    password = "password"
    endpoint = make_endpoint(
        method=HttpMethod.POST, authentication=BasicAuth(username="user", password=password)
    )
    with respx.mock:
        route = respx.post(URL).mock(return_value=httpx.Response(201))
        async with APIManager() as manager:
            await manager.register_endpoint(endpoint)
            response = await manager.execute_request(str(endpoint.id), {"a": 1})
    assert response.status_code == 201
    request = route.calls.last.request
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"a": 1}
    scheme, encoded = request.headers["Authorization"].split(" ")
    assert scheme == "Basic"
    assert base64.b64decode(encoded) == b"user:password"


@pytest.mark.asyncio
async def test_unknown_endpoint_raises():
    async with APIManager() as manager:
        with pytest.raises(LookupError, match="Endpoint not found"):
            await manager.execute_request("missing")


@pytest.mark.asyncio
async def test_rate_limit_exceeded():
    async with APIManager(rate_limiter=RateLimiter(1, 60.0)) as manager:
        with pytest.raises(LookupError):
            await manager.execute_request("missing")
        with pytest.raises(RateLimitExceeded):
            await manager.execute_request("missing")


@pytest.mark.asyncio
async def test_transport_errors_retry_with_exponential_backoff():
    sleep = FakeSleep()
    endpoint = make_endpoint(
        retry_config=RetryConfiguration(3, 0.1, BackoffStrategy.EXPONENTIAL)
    )
    with respx.mock:
        route = respx.get(URL).mock(
            side_effect=[httpx.ConnectError, httpx.ConnectError, httpx.Response(200)]
        )
        async with APIManager(sleep=sleep) as manager:
            await manager.register_endpoint(endpoint)
            response = await manager.execute_request(str(endpoint.id))
    assert response.status_code == 200
    assert route.call_count == 3
    assert sleep.calls == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_retries_exhausted_with_linear_backoff():
    sleep = FakeSleep()
    endpoint = make_endpoint(retry_config=RetryConfiguration(2, 0.5, BackoffStrategy.LINEAR))
    with respx.mock:
        route = respx.get(URL).mock(side_effect=httpx.ConnectError)
        async with APIManager(sleep=sleep) as manager:
            await manager.register_endpoint(endpoint)
            with pytest.raises(APIRequestError, match="Failed after 2 retries"):
                await manager.execute_request(str(endpoint.id))
    assert route.call_count == 3
    assert sleep.calls == pytest.approx([0.5, 1.0, 1.5])


@pytest.mark.asyncio
async def test_too_many_requests_backs_off_then_succeeds():
    sleep = FakeSleep()
    endpoint = make_endpoint(retry_config=RetryConfiguration(3, 0.1, BackoffStrategy.CONSTANT))
    with respx.mock:
        respx.get(URL).mock(side_effect=[httpx.Response(429), httpx.Response(429), httpx.Response(200)])
        async with APIManager(sleep=sleep) as manager:
            await manager.register_endpoint(endpoint)
            response = await manager.execute_request(str(endpoint.id))
    assert response.status_code == 200
    assert sleep.calls == [1.0, 2.0]


@pytest.mark.asyncio
async def test_server_error_fails_without_retry():
    sleep = FakeSleep()
    endpoint = make_endpoint()
    with respx.mock:
        route = respx.get(URL).mock(return_value=httpx.Response(500))
        async with APIManager(sleep=sleep) as manager:
            await manager.register_endpoint(endpoint)
            with pytest.raises(APIRequestError, match="status: 500"):
                await manager.execute_request(str(endpoint.id))
            assert manager.performance_tracker.endpoint_metrics == {}
    assert route.call_count == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_record_api_call_and_analyze():
    async with APIManager() as manager:
        await manager.record_api_call("/x", 0.1, 200)
        await manager.record_api_call("/x", 0.1, 404)
        metrics = manager.performance_tracker.endpoint_metrics["/x"]
        recommendations = await manager.analyze_performance()
    assert (metrics.successful_requests, metrics.failed_requests) == (1, 1)
    assert [r.recommendation_type for r in recommendations] == [
        RecommendationType.HIGH_FAILURE_RATE
    ]


def test_retry_delay_strategies():
    assert RetryConfiguration(3, 1.0, BackoffStrategy.CONSTANT).delay_for(4) == 1.0
    assert RetryConfiguration(3, 1.0, BackoffStrategy.LINEAR).delay_for(2) == 3.0
    assert RetryConfiguration(3, 1.0, BackoffStrategy.EXPONENTIAL).delay_for(3) == 8.0