"""Client side of the workout plan API: retrying HTTP, normalization, errors."""
from .errors import ErrorDisplay, classify, display_message, should_retry
from .http import (
    AttemptTimeout,
    HttpRequest,
    HttpSuccess,
    RetryingHttpClient,
    TransportFailure,
)
from .normalizer import (
    PlanValidationError,
    calculate_age,
    normalize,
    parse_excluded_workouts,
    resolve_allowed_workouts,
)
from .service import PlanApiClient

__all__ = [
    "AttemptTimeout",
    "ErrorDisplay",
    "HttpRequest",
    "HttpSuccess",
    "PlanApiClient",
    "PlanValidationError",
    "RetryingHttpClient",
    "TransportFailure",
    "calculate_age",
    "classify",
    "display_message",
    "normalize",
    "parse_excluded_workouts",
    "resolve_allowed_workouts",
    "should_retry",
]
