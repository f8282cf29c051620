"""OpenAI-backed workout plan generation."""
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import openai
from pydantic import ValidationError

from workout_plan_api.ai import AIClientFactory, CompletionParams
from workout_plan_api.client.http import truncate_body
from workout_plan_api.config import PlanConfig, settings
from workout_plan_api.credentials import get_credentials
from workout_plan_api.models import ErrorType, PlanRequest


logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```json\n?|\n?```")

SYSTEM_PROMPT_TEMPLATE = """You are a professional fitness assistant. Generate a safe, balanced fitness workout plan for the user's demographic and fitness goal, focusing on their selected body area.

- Only use the allowed workouts: {allowed_workouts}
- For low weight or age, make the plan beginner-friendly.
- Avoid overworking the same muscle groups.
- Each workout must include: name, and recommended reps.
- The plan must include between {min_workouts} and {max_workouts} workouts.
- Reply with ONLY valid JSON as shown in the example.
"""

USER_PROMPT_TEMPLATE = """
Generate a fitness workout plan in JSON for a user with the following information:
Age is {age} years old,
Sex is {sex},
Weighing {weight} kg,
Height of {height} cm,
Fitness level of {fitness_level},
Goal of {goal},
Focusing on {body_focus},

- Only use these workouts: {allowed_workouts}.
- The intensity is set to {intensity}. The intensity range is from {min_intensity} to {max_intensity}.
- Ensure a minimum of {min_reps} reps and maximum of {max_reps} reps for each workout. Do not use 0 reps.
- The plan must be safe and suitable for the user's demographic.
- The plan must be concise and focused on the user's goal.
- The intensity and fitness level directly affects the number of reps.
- Do not guess the number of reps, use the intensity and fitness level to determine it.

Reply with ONLY this JSON format, no explanation, no extra text:
{{
  "pushups": 10,
  "situps": 15
}}"""


class PlanServiceError(RuntimeError):
    """Plan generation failed; carries the HTTP status and error body fields."""

    def __init__(
        self,
        status_code: int,
        error_type: ErrorType,
        error: str,
        message: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message or error)
        self.status_code = status_code
        self.error_type = error_type
        self.error = error
        self.message = message
        self.details = details


def _format_validation_errors(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_plan_body(raw: Any, plan_config: PlanConfig) -> PlanRequest:
    """
    Validate an inbound /plan payload.

    A payload wrapped as ``{"user_data": {...}}`` is unwrapped. Bounds and
    intensity missing from the payload default to ``plan_config``; a missing
    ``allowedWorkouts`` defaults to the whole catalog.

    Raises:
        PlanServiceError: 400 ``validation`` when the payload is not an object
            or fails schema validation.
    """
    if not isinstance(raw, dict):
        raise PlanServiceError(
            400,
            ErrorType.VALIDATION,
            "Invalid request body",
            "The request body must be a JSON object",
        )

    data: Dict[str, Any] = dict(raw)
    if isinstance(data.get("user_data"), dict):
        logger.info("Extracting user_data from request")
        data = dict(data["user_data"])

    defaults = {
        "intensity": plan_config.default_intensity,
        "minWorkouts": plan_config.min_workouts,
        "maxWorkouts": plan_config.max_workouts,
        "minRepsPerWorkout": plan_config.min_reps_per_workout,
        "maxRepsPerWorkout": plan_config.max_reps_per_workout,
        "minIntensity": plan_config.min_intensity,
        "maxIntensity": plan_config.max_intensity,
        "allowedWorkouts": list(plan_config.workout_catalog),
    }
    for key, value in defaults.items():
        if data.get(key) is None:
            data[key] = value

    try:
        return PlanRequest.model_validate(data)
    except ValidationError as e:
        raise PlanServiceError(
            400,
            ErrorType.VALIDATION,
            "Invalid plan request",
            "One or more fields are missing or invalid",
            details=_format_validation_errors(e),
        ) from e


def build_messages(plan: PlanRequest) -> List[Dict[str, str]]:
    """Render the system and user prompts for ``plan``."""
    allowed_workouts = ", ".join(plan.allowed_workouts)
    system_prompt = SYSTEM_PROMPT_TEMPLATE.format(
        allowed_workouts=allowed_workouts,
        min_workouts=plan.min_workouts,
        max_workouts=plan.max_workouts,
    )
    user_prompt = USER_PROMPT_TEMPLATE.format(
        age=plan.age,
        sex=plan.sex,
        weight=plan.weight,
        height=plan.height,
        fitness_level=plan.fitness_level,
        goal=plan.goal,
        body_focus=plan.body_focus,
        allowed_workouts=allowed_workouts,
        intensity=plan.intensity,
        min_intensity=plan.min_intensity,
        max_intensity=plan.max_intensity,
        min_reps=plan.min_reps_per_workout,
        max_reps=plan.max_reps_per_workout,
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def extract_plan(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse the model's reply into a ``{workout: reps}`` mapping.

    Markdown code fences around the JSON are tolerated.

    Raises:
        PlanServiceError: 500 ``ai_response_error`` for empty or non-object replies.
    """
    content = (content or "").strip()
    if not content:
        raise PlanServiceError(
            500,
            ErrorType.AI_RESPONSE_ERROR,
            "Invalid AI response",
            "The AI service returned an empty response",
        )

    cleaned = _CODE_FENCE.sub("", content).strip()
    try:
        plan = json.loads(cleaned)
    except ValueError as e:
        logger.error(f"AI response parse error: {e}; content={truncate_body(content)}")
        raise PlanServiceError(
            500,
            ErrorType.AI_RESPONSE_ERROR,
            "Failed to parse AI response",
            "The AI service returned an invalid JSON format",
        ) from e

    if not isinstance(plan, dict):
        logger.error(f"AI response is not an object: {truncate_body(content)}")
        raise PlanServiceError(
            500,
            ErrorType.AI_RESPONSE_ERROR,
            "Failed to parse AI response",
            "The AI service returned an invalid JSON format",
        )
    return plan


def _completion_content(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


class PlanService:
    """Builds the OpenAI request for a PlanRequest and shapes the reply."""

    def __init__(
        self,
        plan_config: Optional[PlanConfig] = None,
        credentials: Callable[[], Awaitable[Mapping[str, str]]] = get_credentials,
        params: Optional[CompletionParams] = None,
    ):
        self.plan_config = plan_config or PlanConfig.from_settings(settings)
        self._credentials = credentials
        self.params = params or CompletionParams()
        self._client: Optional[openai.AsyncOpenAI] = None
        self._client_key: Optional[str] = None

    async def _get_client(self) -> openai.AsyncOpenAI:
        try:
            credentials = await self._credentials()
        except Exception as e:
            logger.error(f"Error retrieving secrets: {e}")
            raise PlanServiceError(
                500,
                ErrorType.CONFIGURATION_ERROR,
                "Configuration error",
                "Unable to retrieve API configuration",
            ) from e

        api_key = credentials.get("OPENAI_API_KEY")
        if not api_key:
            raise PlanServiceError(
                500,
                ErrorType.CONFIGURATION_ERROR,
                "OpenAI API key not found",
                "API configuration is incomplete",
            )

        if self._client is None or self._client_key != api_key:
            self._client = AIClientFactory.create_openai_client(
                api_key, timeout=settings.PROVIDER_TIMEOUT
            )
            self._client_key = api_key
        return self._client

    async def generate_plan(self, plan: PlanRequest) -> Dict[str, Any]:
        """
        Ask the model for a plan.

        Returns:
            Mapping of workout name to reps

        Raises:
            PlanServiceError: for configuration, upstream or reply failures
        """
        logger.info(
            f"Generating fitness plan: allowed={plan.allowed_workouts}, "
            f"workouts={plan.min_workouts}-{plan.max_workouts}, "
            f"reps={plan.min_reps_per_workout}-{plan.max_reps_per_workout}, "
            f"intensity={plan.intensity} ({plan.min_intensity}-{plan.max_intensity})"
        )
        client = await self._get_client()

        try:
            completion = await client.chat.completions.create(
                messages=build_messages(plan),
                **self.params.to_request_kwargs(),
            )
        except openai.RateLimitError as e:
            logger.error(f"OpenAI API error: 429 {e}")
            raise PlanServiceError(
                429,
                ErrorType.RATE_LIMIT,
                "Service temporarily unavailable",
                "Too many requests. Please try again in a few minutes.",
            ) from e
        except openai.AuthenticationError as e:
            logger.error(f"OpenAI API error: 401 {e}")
            raise PlanServiceError(
                500,
                ErrorType.AUTHENTICATION_ERROR,
                "Authentication failed",
                "API configuration error",
            ) from e
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API error: {e.status_code} {truncate_body(str(e))}")
            raise PlanServiceError(
                500,
                ErrorType.EXTERNAL_API_ERROR,
                "AI service error",
                f"OpenAI API returned status {e.status_code}",
            ) from e
        except openai.APIConnectionError as e:
            logger.error(f"OpenAI API request failed: {e}")
            raise PlanServiceError(
                500,
                ErrorType.EXTERNAL_API_ERROR,
                "AI service unavailable",
                "Unable to generate workout plan at this time. Please try again later.",
            ) from e

        result = extract_plan(_completion_content(completion))
        logger.info(f"Successfully generated fitness plan: {list(result.keys())}")
        return result
