"""Tests for the client facade against a mocked backend."""
import json

import httpx
import pytest

from factories import RecordingSleep
from workout_plan_api.client.http import RetryingHttpClient
from workout_plan_api.client.service import PLAN_MAX_ATTEMPTS, PlanApiClient


def make_api_client(handler, plan_config):
    http = RetryingHttpClient(
        "https://api.example.com/prod/plan",
        transport=httpx.MockTransport(handler),
        sleep=RecordingSleep(),
    )
    return PlanApiClient(http=http, plan_config=plan_config)


class TestGenerateFitnessPlan:
    @pytest.mark.asyncio
    async def test_success_returns_plan(self, sample_demographics, plan_config):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"pushups": 10, "squats": 15})

        progress = []
        api = make_api_client(handler, plan_config)
        result = await api.generate_fitness_plan(sample_demographics, on_progress=progress.append)

        assert result == {"pushups": 10, "squats": 15}
        assert seen["url"] == "https://api.example.com/prod/plan"
        assert seen["body"]["allowedWorkouts"] == ["pushups", "situps", "squats", "lunges"]
        assert seen["body"]["minWorkouts"] == 2
        assert "dateOfBirth" not in seen["body"]
        assert progress == [
            "Validating demographic data...",
            "Sending request to server...",
            "Processing server response...",
        ]

    @pytest.mark.asyncio
    async def test_validation_failure_short_circuits(self, sample_demographics, plan_config):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        del sample_demographics["sex"]
        api = make_api_client(handler, plan_config)
        result = await api.generate_fitness_plan(sample_demographics)

        assert result["error_type"] == "validation"
        assert "sex is required" in result["details"]
        assert calls == []

    @pytest.mark.asyncio
    async def test_embedded_error_is_passed_through(self, sample_demographics, plan_config):
        body = {"error": "Invalid AI response", "error_type": "ai_response_error"}
        api = make_api_client(lambda request: httpx.Response(200, json=body), plan_config)

        assert await api.generate_fitness_plan(sample_demographics) == body

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self, sample_demographics, plan_config):
        api = make_api_client(lambda request: httpx.Response(200, text="<html>oops</html>"), plan_config)

        result = await api.generate_fitness_plan(sample_demographics)

        assert result["error_type"] == "parse_error"
        assert result["response_body"] == "<html>oops</html>"

    @pytest.mark.asyncio
    async def test_non_200_with_error_body_is_http_error(self, sample_demographics, plan_config):
        body = {
            "error": "Service temporarily unavailable",
            "error_type": "rate_limit",
            "message": "Too many requests. Please try again in a few minutes.",
        }
        api = make_api_client(lambda request: httpx.Response(429, json=body), plan_config)

        result = await api.generate_fitness_plan(sample_demographics)

        assert result == {
            "error": "Service temporarily unavailable",
            "message": "Too many requests. Please try again in a few minutes.",
            "status_code": 429,
            "error_type": "http_error",
        }

    @pytest.mark.asyncio
    async def test_non_200_with_plain_body(self, sample_demographics, plan_config):
        api = make_api_client(lambda request: httpx.Response(502, text="Bad Gateway"), plan_config)

        result = await api.generate_fitness_plan(sample_demographics)

        assert result["error"] == "HTTP Error 502"
        assert result["status_code"] == 502
        assert result["error_type"] == "http_error"
        assert api.should_retry(result) is True

    @pytest.mark.asyncio
    async def test_transport_failure_is_network_error_after_plan_retries(
        self, sample_demographics, plan_config
    ):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("Connection refused", request=request)

        api = make_api_client(handler, plan_config)
        result = await api.generate_fitness_plan(sample_demographics)

        assert result["error_type"] == "network_error"
        assert len(calls) == PLAN_MAX_ATTEMPTS
        assert api.display_error_message(result) == "Network error. Please check your internet connection."

    @pytest.mark.asyncio
    async def test_unexpected_error_is_unhandled_exception(self, sample_demographics, plan_config):
        api = make_api_client(lambda request: httpx.Response(200, json={}), plan_config)

        async def broken_post(*args, **kwargs):
            raise RuntimeError("kaboom")

        api.http.post = broken_post
        result = await api.generate_fitness_plan(sample_demographics)

        assert result["error_type"] == "unhandled_exception"
        assert result["details"] == "kaboom"


class TestMotivationEndpoints:
    @pytest.mark.asyncio
    async def test_quote(self, plan_config):
        api = make_api_client(
            lambda request: httpx.Response(200, json={"quote": "Start small.", "author": ""}),
            plan_config,
        )
        assert await api.fetch_motivational_quote() == {"quote": "Start small.", "author": "Unknown"}

    @pytest.mark.asyncio
    async def test_empty_quote_is_none(self, plan_config):
        api = make_api_client(
            lambda request: httpx.Response(200, json={"quote": "", "author": ""}),
            plan_config,
        )
        assert await api.fetch_motivational_quote() is None

    @pytest.mark.asyncio
    async def test_quote_transport_failure_is_none(self, plan_config):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        api = make_api_client(handler, plan_config)
        assert await api.fetch_motivational_quote() is None

    @pytest.mark.asyncio
    async def test_image_url(self, plan_config):
        api = make_api_client(
            lambda request: httpx.Response(200, json={"imageUrl": "https://img.example.com/a.jpg"}),
            plan_config,
        )
        assert await api.fetch_motivation_image_url() == "https://img.example.com/a.jpg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"imageUrl": ""}),
            httpx.Response(500, json={"error": "x"}),
            httpx.Response(200, text="not json"),
        ],
    )
    async def test_image_failures_are_none(self, plan_config, response):
        api = make_api_client(lambda request: response, plan_config)
        assert await api.fetch_motivation_image_url() is None


class TestConnectivity:
    @pytest.mark.asyncio
    async def test_connected(self, plan_config):
        api = make_api_client(lambda request: httpx.Response(200, json={}), plan_config)
        assert await api.check_connectivity() is True

    @pytest.mark.asyncio
    async def test_single_attempt_when_down(self, plan_config):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("down", request=request)

        api = make_api_client(handler, plan_config)

        assert await api.check_connectivity() is False
        assert len(calls) == 1
