"""Retrying HTTP client with per-attempt timeouts and linear backoff."""
import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Literal, Mapping, Optional, Union

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from workout_plan_api.models import ErrorReport, ErrorType


logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0

# Bodies longer than this are cut in logs and error reports
MAX_LOGGED_BODY_CHARS = 500

USER_AGENT = "WorkoutPlan-Client/1.0"

HttpMethod = Literal["GET", "POST"]

_PLAN_SUFFIX = re.compile(r"/plan/?$")


def truncate_body(body: str, limit: int = MAX_LOGGED_BODY_CHARS) -> str:
    """Cut ``body`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(body) > limit:
        return f"{body[:limit]}..."
    return body


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes and a trailing ``/plan`` segment from a base URL."""
    stripped = _PLAN_SUFFIX.sub("", base_url.strip())
    return stripped.rstrip("/")


@dataclass(frozen=True)
class HttpRequest:
    """A single logical call; may be attempted up to ``max_attempts`` times."""

    endpoint: str
    method: HttpMethod = "GET"
    body: Optional[Mapping[str, Any]] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self):
        if self.method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.method == "GET" and self.body is not None:
            raise ValueError("GET requests cannot carry a body")


@dataclass(frozen=True)
class HttpSuccess:
    """A response was received. Any status code counts, including 4xx/5xx."""

    status_code: int
    headers: Mapping[str, str]
    body: str
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a response (DNS, refused, reset, ...)."""

    kind: str
    message: str


@dataclass(frozen=True)
class AttemptTimeout:
    """The attempt did not complete within its timeout."""

    timeout: float
    message: str


AttemptOutcome = Union[HttpSuccess, TransportFailure, AttemptTimeout]
SleepFunc = Callable[[float], Awaitable[None]]


def _is_failure(outcome: AttemptOutcome) -> bool:
    return not isinstance(outcome, HttpSuccess)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _last_outcome(retry_state: RetryCallState) -> AttemptOutcome:
    # Hand the final failed outcome back instead of raising RetryError
    return retry_state.outcome.result()


class RetryingHttpClient:
    """
    Async HTTP client that retries transport failures and timeouts.

    Attempts are strictly sequential. After failed attempt ``n`` (1-based) the
    client waits ``n * base_delay`` seconds; there is no wait after the last
    attempt. The first attempt that yields a response is returned as is, and
    the caller decides what a non-2xx status means.

    Args:
        base_url: Backend root URL; a trailing ``/plan`` is stripped
        default_timeout: Per-attempt timeout used when a request omits one
        base_delay: Linear backoff unit in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        sleep: Awaitable sleep used between attempts
    """

    def __init__(
        self,
        base_url: str,
        *,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")
        self.base_url = normalize_base_url(base_url)
        self.default_timeout = default_timeout
        self.base_delay = base_delay
        self._transport = transport
        self._sleep = sleep
        logger.info(f"RetryingHttpClient initialized with base_url: {self.base_url}")

    def build_url(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}{endpoint}"

    async def get(
        self,
        endpoint: str,
        *,
        timeout: Optional[float] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> Union[HttpSuccess, ErrorReport]:
        request = HttpRequest(
            endpoint=endpoint,
            method="GET",
            timeout=self.default_timeout if timeout is None else timeout,
            max_attempts=max_attempts,
        )
        return await self.execute(request)

    async def post(
        self,
        endpoint: str,
        body: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> Union[HttpSuccess, ErrorReport]:
        request = HttpRequest(
            endpoint=endpoint,
            method="POST",
            body=body,
            timeout=self.default_timeout if timeout is None else timeout,
            max_attempts=max_attempts,
        )
        return await self.execute(request)

    async def execute(self, request: HttpRequest) -> Union[HttpSuccess, ErrorReport]:
        """
        Run ``request`` with retries.

        Returns:
            HttpSuccess for the first attempt that got a response, otherwise an
            ErrorReport of type ``timeout`` or ``network_error``. Transport
            failures are never raised to the caller.
        """
        url = self.build_url(request.endpoint)
        attempt_number = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(request.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_result(_is_failure),
            retry_error_callback=_last_outcome,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
        )

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=request.timeout,
            headers={"User-Agent": USER_AGENT},
        ) as client:

            async def attempt_once() -> AttemptOutcome:
                nonlocal attempt_number
                attempt_number += 1
                return await self._attempt(client, request, url, attempt_number)

            outcome = await retrying(attempt_once)

        if isinstance(outcome, HttpSuccess):
            return outcome

        report = self._failure_report(request, url, outcome)
        logger.error(f"All {request.method} retries failed: {json.dumps(report.to_dict())}")
        return report

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        request: HttpRequest,
        url: str,
        attempt_number: int,
    ) -> AttemptOutcome:
        logger.info(
            f"HTTP {request.method} attempt {attempt_number}/{request.max_attempts} to: {url}"
        )
        if request.body is not None:
            logger.debug(f"Request body: {truncate_body(json.dumps(request.body, default=str))}")

        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.request(
                    request.method,
                    url,
                    json=dict(request.body) if request.body is not None else None,
                ),
                timeout=request.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                f"Request timeout on attempt {attempt_number} ({_elapsed_ms(started)}ms) "
                f"{request.method} {url}: {e!r}"
            )
            return AttemptTimeout(
                timeout=request.timeout,
                message=f"Request timed out after {request.timeout}s",
            )
        except httpx.RequestError as e:
            logger.warning(
                f"HTTP client error on attempt {attempt_number} ({_elapsed_ms(started)}ms) "
                f"{request.method} {url}: {e!r}"
            )
            return TransportFailure(kind=type(e).__name__, message=str(e) or type(e).__name__)
        except Exception as e:
            # Anything else still counts as a failed attempt
            logger.warning(
                f"Unexpected error on attempt {attempt_number} ({_elapsed_ms(started)}ms) "
                f"{request.method} {url}: {e!r}"
            )
            return TransportFailure(kind=type(e).__name__, message=str(e) or type(e).__name__)

        elapsed_ms = _elapsed_ms(started)
        body = response.text
        logger.info(
            f"Response received ({elapsed_ms}ms) {request.method} {url} "
            f"status={response.status_code} body={truncate_body(body)}"
        )
        return HttpSuccess(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=body,
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _failure_report(
        request: HttpRequest,
        url: str,
        outcome: Union[TransportFailure, AttemptTimeout],
    ) -> ErrorReport:
        request_details: Dict[str, Any] = {"method": request.method, "url": url}
        if request.body is not None:
            request_details["body"] = dict(request.body)

        if isinstance(outcome, AttemptTimeout):
            error_type = ErrorType.TIMEOUT
        else:
            error_type = ErrorType.NETWORK_ERROR

        return ErrorReport(
            error=f"All {request.method} retry attempts failed",
            error_type=error_type,
            details={
                "exception": outcome.message,
                "attempts": request.max_attempts,
                # Any response ends the retry loop, so only failures reach here
                "last_response": None,
                "request_details": request_details,
            },
        )
