"""Error classification for user-facing messages and retry hints."""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from workout_plan_api.models import ErrorReport


RETRYABLE_ERROR_TYPES = frozenset({"timeout", "network_error", "unhandled_exception"})
RETRYABLE_STATUS_CODES = frozenset({408, 500, 502, 503})

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."

# Canned, user-facing messages keyed by error_type.
# validation and http_error depend on the report and are handled separately.
DISPLAY_MESSAGES: Dict[str, str] = {
    "timeout": "Request timed out. Please check your connection and try again.",
    "network_error": "Network error. Please check your internet connection.",
    "parse_error": "Received invalid response from server. Please try again.",
    "rate_limit": "Too many requests. Please try again in a few minutes.",
    "authentication_error": "Service configuration error. Please try again later.",
    "external_api_error": "The workout service is temporarily unavailable. Please try again later.",
    "configuration_error": "Service configuration error. Please try again later.",
    "ai_response_error": "We couldn't generate a plan this time. Please try again.",
    "not_found": "The requested service could not be found.",
    "unhandled_exception": "Something went wrong. Please try again later.",
}

ReportLike = Union[ErrorReport, Mapping[str, Any], None]


@dataclass(frozen=True)
class ErrorDisplay:
    display_message: str
    retryable: bool


def _as_mapping(report: ReportLike) -> Optional[Mapping[str, Any]]:
    if report is None:
        return None
    if isinstance(report, ErrorReport):
        return report.to_dict()
    return report


def _status_code(report: Mapping[str, Any]) -> Optional[int]:
    status = report.get("status_code", report.get("statusCode"))
    if isinstance(status, bool):
        return None
    if isinstance(status, int):
        return status
    return None


def _error_type(report: Mapping[str, Any]) -> Optional[str]:
    value = report.get("error_type", report.get("errorType"))
    return getattr(value, "value", value)


def display_message(report: ReportLike) -> str:
    """Message suitable for showing to the user."""
    data = _as_mapping(report)
    if data is None:
        return UNKNOWN_ERROR_MESSAGE

    error = data.get("error")
    message = data.get("message")
    if isinstance(message, str) and message and message != error:
        return message

    error_type = _error_type(data)

    if error_type == "validation":
        details = data.get("details")
        if isinstance(details, list):
            return f"Validation error: {', '.join(str(d) for d in details)}"
        return error or "Please check your input data and try again."

    if error_type == "http_error":
        status = _status_code(data)
        if status == 400:
            return error or "Invalid request. Please check your input data."
        if status == 500:
            return error or "Server error. Please try again later."
        return error or f"Server error ({status if status is not None else 'unknown'}). Please try again."

    if error_type in DISPLAY_MESSAGES:
        return DISPLAY_MESSAGES[error_type]

    return error or GENERIC_ERROR_MESSAGE


def should_retry(report: ReportLike) -> bool:
    """Whether the failure looks temporary enough to offer a retry."""
    data = _as_mapping(report)
    if data is None:
        return False

    error_type = _error_type(data)
    # Validation never improves on retry, whatever the status code says
    if error_type == "validation":
        return False

    return error_type in RETRYABLE_ERROR_TYPES or _status_code(data) in RETRYABLE_STATUS_CODES


def classify(report: ReportLike) -> ErrorDisplay:
    return ErrorDisplay(display_message=display_message(report), retryable=should_retry(report))
