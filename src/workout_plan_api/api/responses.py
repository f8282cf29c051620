"""JSON response helpers for the backend: CORS headers and error bodies."""
import logging
from typing import Any, Optional

from fastapi.responses import JSONResponse, Response

from workout_plan_api.client.http import truncate_body
from workout_plan_api.models import ErrorReport, ErrorType

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token,User-Agent"
    ),
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def json_response(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=payload, status_code=status_code, headers=CORS_HEADERS)


def preflight_response() -> Response:
    """Empty 200 for OPTIONS requests."""
    return Response(content=b"", status_code=200, headers=CORS_HEADERS)


def error_response(
    status_code: int,
    error_type: ErrorType,
    error: str,
    message: Optional[str] = None,
    details: Optional[Any] = None,
) -> JSONResponse:
    """
    Build an error response with body ``{error, error_type, timestamp, message?, details?}``.
    """
    report = ErrorReport(error=error, error_type=error_type, message=message, details=details)
    body = report.to_dict()
    logger.error(f"Responding {status_code} {error_type.value}: {truncate_body(str(body))}")
    return json_response(body, status_code=status_code)
