"""Unit tests for the retrying HTTP client."""
import asyncio
import json

import httpx
import pytest

from factories import RecordingSleep, failing_handler
from workout_plan_api.client.http import (
    DEFAULT_MAX_ATTEMPTS,
    HttpRequest,
    HttpSuccess,
    RetryingHttpClient,
    normalize_base_url,
    truncate_body,
)
from workout_plan_api.models import ErrorReport, ErrorType


BASE_URL = "https://api.example.com/prod"


def make_client(handler, base_delay: float = 1.0):
    sleep = RecordingSleep()
    client = RetryingHttpClient(
        BASE_URL,
        base_delay=base_delay,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
    )
    return client, sleep


class TestHttpRequest:
    """Request field checks."""

    def test_defaults(self):
        request = HttpRequest(endpoint="/quote")
        assert request.method == "GET"
        assert request.max_attempts == DEFAULT_MAX_ATTEMPTS == 3
        assert request.timeout > 0

    @pytest.mark.parametrize("max_attempts", [0, -1])
    def test_max_attempts_must_be_positive(self, max_attempts):
        with pytest.raises(ValueError, match="max_attempts"):
            HttpRequest(endpoint="/quote", max_attempts=max_attempts)

    @pytest.mark.parametrize("timeout", [0, -5.0])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValueError, match="timeout"):
            HttpRequest(endpoint="/quote", timeout=timeout)

    def test_get_cannot_carry_body(self):
        with pytest.raises(ValueError):
            HttpRequest(endpoint="/quote", method="GET", body={"a": 1})


class TestUrlHandling:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("https://x.example.com/prod", "https://x.example.com/prod"),
            ("https://x.example.com/prod/", "https://x.example.com/prod"),
            ("https://x.example.com/prod/plan", "https://x.example.com/prod"),
            ("https://x.example.com/prod/plan/", "https://x.example.com/prod"),
        ],
    )
    def test_normalize_base_url(self, raw, expected):
        assert normalize_base_url(raw) == expected

    def test_build_url_adds_leading_slash(self):
        client = RetryingHttpClient(BASE_URL + "/")
        assert client.build_url("quote") == f"{BASE_URL}/quote"
        assert client.build_url("/quote") == f"{BASE_URL}/quote"

    def test_truncate_body(self):
        assert truncate_body("short") == "short"
        long_body = "x" * 600
        truncated = truncate_body(long_body)
        assert truncated == "x" * 500 + "..."


class TestRetrySchedule:
    """Attempt counts and linear backoff."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
    async def test_always_failing_transport_makes_exactly_n_attempts(self, max_attempts):
        calls = []
        client, sleep = make_client(failing_handler(calls))

        result = await client.execute(HttpRequest(endpoint="/quote", max_attempts=max_attempts))

        assert isinstance(result, ErrorReport)
        assert len(calls) == max_attempts
        # Waits are 1, 2, ..., N-1 backoff units; nothing after the last attempt
        assert sleep.delays == [float(i) for i in range(1, max_attempts)]
        assert sleep.total == max_attempts * (max_attempts - 1) / 2

    @pytest.mark.asyncio
    async def test_backoff_scales_with_base_delay(self):
        calls = []
        client, sleep = make_client(failing_handler(calls), base_delay=0.5)

        await client.execute(HttpRequest(endpoint="/quote", max_attempts=4))

        assert sleep.delays == [0.5, 1.0, 1.5]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [200, 404, 500, 503])
    async def test_first_response_returns_immediately_for_any_status(self, status_code):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(status_code, json={"status": status_code})

        client, sleep = make_client(handler)
        result = await client.execute(HttpRequest(endpoint="/quote"))

        assert isinstance(result, HttpSuccess)
        assert result.status_code == status_code
        assert result.ok is (status_code == 200)
        assert len(calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_eventual_success_after_failures(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("Connection reset by peer", request=request)
            return httpx.Response(200, json={"quote": "Keep going", "author": "Coach"})

        client, sleep = make_client(handler)
        result = await client.execute(HttpRequest(endpoint="/quote", max_attempts=3))

        assert isinstance(result, HttpSuccess)
        assert result.json() == {"quote": "Keep going", "author": "Coach"}
        assert len(calls) == 3
        assert sleep.delays == [1.0, 2.0]


class TestFailureReports:
    """Terminal ErrorReport shape after retries are exhausted."""

    @pytest.mark.asyncio
    async def test_transport_failures_become_network_error(self):
        calls = []
        client, _ = make_client(failing_handler(calls))

        result = await client.post("/plan", {"age": 30}, max_attempts=2)

        assert isinstance(result, ErrorReport)
        assert result.error_type == ErrorType.NETWORK_ERROR
        assert result.error == "All POST retry attempts failed"
        assert "Connection refused" in result.details["exception"]
        assert result.details["attempts"] == 2
        assert result.details["last_response"] is None
        assert result.details["request_details"] == {
            "method": "POST",
            "url": f"{BASE_URL}/plan",
            "body": {"age": 30},
        }

    @pytest.mark.asyncio
    async def test_timeouts_become_timeout_report(self):
        calls = []

        async def slow_handler(request):
            calls.append(request)
            await asyncio.sleep(5)
            return httpx.Response(200)

        client, sleep = make_client(slow_handler)
        result = await client.get("/image", timeout=0.01, max_attempts=2)

        assert isinstance(result, ErrorReport)
        assert result.error_type == ErrorType.TIMEOUT
        assert len(calls) == 2
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_httpx_timeout_counts_as_timeout(self):
        calls = []
        client, _ = make_client(failing_handler(calls, error_cls=httpx.ReadTimeout))

        result = await client.get("/quote", max_attempts=1)

        assert result.error_type == ErrorType.TIMEOUT
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_get_report_has_no_body(self):
        calls = []
        client, _ = make_client(failing_handler(calls))

        result = await client.get("/quote", max_attempts=1)

        assert result.details["request_details"] == {"method": "GET", "url": f"{BASE_URL}/quote"}


class TestRequestShape:
    @pytest.mark.asyncio
    async def test_post_sends_json_body_and_user_agent(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["user_agent"] = request.headers.get("user-agent")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"pushups": 10})

        client, _ = make_client(handler)
        result = await client.post("plan", {"age": 24, "allowedWorkouts": ["pushups"]})

        assert result.status_code == 200
        assert seen["method"] == "POST"
        assert seen["url"] == f"{BASE_URL}/plan"
        assert seen["user_agent"].startswith("WorkoutPlan-Client/")
        assert seen["body"] == {"age": 24, "allowedWorkouts": ["pushups"]}


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_non_transport_exception_is_retried_and_reported(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise RuntimeError("socket exploded")

        client, sleep = make_client(handler)

        result = await client.execute(HttpRequest(endpoint="/plan", method="POST", body={}, max_attempts=3))

        assert isinstance(result, ErrorReport)
        assert result.error_type == ErrorType.NETWORK_ERROR
        assert "socket exploded" in result.details["exception"]
        assert len(calls) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_failed_attempt_log_names_url(self, caplog):
        calls = []
        client, _ = make_client(failing_handler(calls))

        with caplog.at_level("WARNING", logger="workout_plan_api.client.http"):
            await client.get("/quote", max_attempts=1)

        assert any(f"GET {BASE_URL}/quote" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", [0, -1.0])
    async def test_explicit_non_positive_timeout_is_rejected(self, timeout):
        client, _ = make_client(failing_handler([]))

        with pytest.raises(ValueError, match="timeout"):
            await client.get("/quote", timeout=timeout)

