"""Client-side facade for the workout plan backend."""
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from workout_plan_api.client.errors import display_message, should_retry
from workout_plan_api.client.http import (
    DEFAULT_TIMEOUT_SECONDS,
    HttpSuccess,
    RetryingHttpClient,
    truncate_body,
)
from workout_plan_api.client.normalizer import PlanValidationError, normalize
from workout_plan_api.config import PlanConfig, settings
from workout_plan_api.models import ErrorReport, ErrorType


logger = logging.getLogger(__name__)

PLAN_TIMEOUT_SECONDS = 45.0
PLAN_MAX_ATTEMPTS = 2
MOTIVATION_TIMEOUT_SECONDS = 15.0
CONNECTIVITY_TIMEOUT_SECONDS = 10.0

ProgressCallback = Callable[[str], None]


class PlanApiClient:
    """
    What the mobile app calls: plan generation, quote, image, connectivity.

    None of the public methods raise; failures come back as error dicts
    (plan) or None (quote, image).
    """

    def __init__(
        self,
        http: Optional[RetryingHttpClient] = None,
        plan_config: Optional[PlanConfig] = None,
    ):
        self.http = http or RetryingHttpClient(
            settings.API_BASE_URL,
            default_timeout=DEFAULT_TIMEOUT_SECONDS,
        )
        self.plan_config = plan_config or PlanConfig.from_settings(settings)

    async def generate_fitness_plan(
        self,
        demographics: Mapping[str, Any],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Generate a workout plan for ``demographics``.

        Returns:
            The plan mapping (workout name -> reps) on success, otherwise an
            error dict carrying ``error`` and ``error_type``.
        """

        def progress(message: str) -> None:
            if on_progress is not None:
                on_progress(message)

        try:
            progress("Validating demographic data...")
            try:
                plan_request = normalize(demographics, self.plan_config)
            except PlanValidationError as e:
                return e.report.to_dict()

            progress("Sending request to server...")
            body = plan_request.model_dump(by_alias=True)
            result = await self.http.post(
                "/plan",
                body,
                timeout=PLAN_TIMEOUT_SECONDS,
                max_attempts=PLAN_MAX_ATTEMPTS,
            )

            if isinstance(result, ErrorReport):
                return result.to_dict()

            progress("Processing server response...")
            return self._plan_from_response(result)
        except Exception as e:
            logger.exception(f"Unexpected error in generate_fitness_plan: {e}")
            return ErrorReport(
                error="Unexpected error",
                error_type=ErrorType.UNHANDLED_EXCEPTION,
                details=str(e),
            ).to_dict()

    @staticmethod
    def _plan_from_response(response: HttpSuccess) -> Dict[str, Any]:
        if response.status_code == 200:
            try:
                data = response.json()
            except ValueError as e:
                logger.error(f"Error parsing plan response: {e}")
                return {
                    "error": "Invalid response format",
                    "details": f"Failed to parse JSON: {e}",
                    "response_body": truncate_body(response.body),
                    "error_type": ErrorType.PARSE_ERROR.value,
                }

            if not isinstance(data, dict):
                return {
                    "error": "Invalid response format",
                    "details": "Expected a JSON object",
                    "response_body": truncate_body(response.body),
                    "error_type": ErrorType.PARSE_ERROR.value,
                }

            if "error" in data:
                logger.warning(f"Server returned error: {data['error']}")
                return data

            logger.info(f"Successfully generated fitness plan: {', '.join(data.keys())}")
            return data

        logger.error(f"HTTP Error {response.status_code}: {truncate_body(response.body)}")
        try:
            error_data = response.json()
        except ValueError:
            error_data = None

        if isinstance(error_data, dict):
            return {
                "error": error_data.get("error") or f"HTTP Error {response.status_code}",
                "message": error_data.get("message") or response.body,
                "status_code": response.status_code,
                "error_type": ErrorType.HTTP_ERROR.value,
            }
        return {
            "error": f"HTTP Error {response.status_code}",
            "status_code": response.status_code,
            "response_body": truncate_body(response.body),
            "error_type": ErrorType.HTTP_ERROR.value,
        }

    async def fetch_motivational_quote(self) -> Optional[Dict[str, str]]:
        """Fetch a quote as ``{quote, author}``, or None when unavailable."""
        try:
            result = await self.http.get("/quote", timeout=MOTIVATION_TIMEOUT_SECONDS)
            if isinstance(result, ErrorReport):
                logger.warning(f"Quote request failed: {result.error}")
                return None
            if result.status_code != 200:
                logger.warning(f"Failed to fetch quote - Status: {result.status_code}")
                return None

            data = result.json()
            quote = data.get("quote") if isinstance(data, dict) else None
            if not quote:
                logger.info("Empty or null quote received")
                return None
            return {"quote": quote, "author": data.get("author") or "Unknown"}
        except Exception as e:
            logger.warning(f"Error fetching motivational quote: {e}")
            return None

    async def fetch_motivation_image_url(self) -> Optional[str]:
        """Fetch a motivational image URL, or None when unavailable."""
        try:
            result = await self.http.get("/image", timeout=MOTIVATION_TIMEOUT_SECONDS)
            if isinstance(result, ErrorReport):
                logger.warning(f"Image request failed: {result.error}")
                return None
            if result.status_code != 200:
                logger.warning(f"Failed to fetch image URL - Status: {result.status_code}")
                return None

            data = result.json()
            image_url = data.get("imageUrl") if isinstance(data, dict) else None
            if not image_url:
                logger.info("Empty or null image URL received")
                return None
            return image_url
        except Exception as e:
            logger.warning(f"Error fetching motivational image: {e}")
            return None

    async def check_connectivity(self) -> bool:
        """Single quick GET /quote; True when the backend answers 200."""
        try:
            result = await self.http.get(
                "/quote",
                timeout=CONNECTIVITY_TIMEOUT_SECONDS,
                max_attempts=1,
            )
        except Exception as e:
            logger.warning(f"Connectivity check failed: {e}")
            return False
        if isinstance(result, ErrorReport):
            logger.warning(f"Connectivity check failed: {result.error}")
            return False
        return result.status_code == 200

    @staticmethod
    def display_error_message(report: Any) -> str:
        return display_message(report)

    @staticmethod
    def should_retry(report: Any) -> bool:
        return should_retry(report)
