"""Data models shared by the plan client and the backend."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

APP_VERSION = "1.0.0"


def utc_timestamp() -> str:
    """Current instant as an ISO-8601 UTC string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ErrorType(str, Enum):
    """Failure taxonomy shared by the client and the backend."""

    VALIDATION = "validation"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION_ERROR = "authentication_error"
    EXTERNAL_API_ERROR = "external_api_error"
    CONFIGURATION_ERROR = "configuration_error"
    AI_RESPONSE_ERROR = "ai_response_error"
    UNHANDLED_EXCEPTION = "unhandled_exception"
    NOT_FOUND = "not_found"


class ErrorReport(BaseModel):
    """Terminal, structured failure handed back to a caller."""

    error: str
    error_type: ErrorType
    message: Optional[str] = None
    details: Optional[Any] = None
    status_code: Optional[int] = None
    timestamp: str = Field(default_factory=utc_timestamp)

    class Config:
        frozen = True

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: optional keys are left out when unset."""
        data: Dict[str, Any] = {
            "error": self.error,
            "error_type": self.error_type.value,
            "timestamp": self.timestamp,
        }
        if self.message:
            data["message"] = self.message
        if self.details is not None:
            data["details"] = self.details
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class PlanRequest(BaseModel):
    """
    Fully resolved plan payload sent from the client to POST /plan.

    Field names are snake_case in Python and camelCase on the wire; use
    ``model_dump(by_alias=True)`` to serialize.
    """

    age: int
    sex: str
    height: float
    weight: float
    fitness_level: str = Field(alias="fitnessLevel")
    goal: str
    body_focus: str = Field(alias="bodyFocus")
    intensity: int
    min_workouts: int = Field(alias="minWorkouts")
    max_workouts: int = Field(alias="maxWorkouts")
    allowed_workouts: List[str] = Field(alias="allowedWorkouts")
    min_reps_per_workout: int = Field(alias="minRepsPerWorkout")
    max_reps_per_workout: int = Field(alias="maxRepsPerWorkout")
    min_intensity: int = Field(alias="minIntensity")
    max_intensity: int = Field(alias="maxIntensity")

    # Metadata for debugging
    timestamp: str = Field(default_factory=utc_timestamp)
    app_version: str = APP_VERSION

    class Config:
        extra = "ignore"
        populate_by_name = True

    @field_validator("allowed_workouts", mode="before")
    @classmethod
    def _split_workout_string(cls, value: Any) -> Any:
        # GET /plan carries the list as a comma-separated query parameter
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        if value is None:
            return []
        return value


class QuoteResult(BaseModel):
    """Payload of GET /quote."""
    quote: str = ""
    author: str = ""


class ImageResult(BaseModel):
    """Payload of GET /image."""
    image_url: str = Field(alias="imageUrl")
    alt: str
    photographer: str
    photographer_url: str = Field(default="", alias="photographerUrl")

    class Config:
        populate_by_name = True
