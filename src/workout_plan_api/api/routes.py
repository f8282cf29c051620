"""
Backend routes.

A single catch-all route dispatches on a lower-cased substring of the path,
so stage-prefixed paths such as ``/prod/plan`` reach the plan handler.
"""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from workout_plan_api.api.responses import (
    error_response,
    json_response,
    preflight_response,
)
from workout_plan_api.models import ErrorType
from workout_plan_api.services.image_service import ImageService
from workout_plan_api.services.plan_service import (
    PlanService,
    PlanServiceError,
    parse_plan_body,
)
from workout_plan_api.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter()

AVAILABLE_ENDPOINTS = ["/plan", "/quote", "/image"]

# Every method reaches the dispatcher so each response carries CORS headers
DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

# Service singletons, created on first use
_plan_service: Optional[PlanService] = None
_quote_service: Optional[QuoteService] = None
_image_service: Optional[ImageService] = None


def get_plan_service() -> PlanService:
    global _plan_service
    if _plan_service is None:
        _plan_service = PlanService()
    return _plan_service


def get_quote_service() -> QuoteService:
    global _quote_service
    if _quote_service is None:
        _quote_service = QuoteService()
    return _quote_service


def get_image_service() -> ImageService:
    global _image_service
    if _image_service is None:
        _image_service = ImageService()
    return _image_service


async def _read_plan_payload(request: Request) -> Any:
    """GET takes query parameters; anything else takes a JSON body."""
    if request.method == "GET" and request.query_params:
        return dict(request.query_params)

    raw = await request.body()
    if not raw.strip():
        return {}
    return json.loads(raw)


async def handle_plan(request: Request, service: PlanService) -> Response:
    try:
        payload = await _read_plan_payload(request)
    except ValueError as e:
        logger.error(f"JSON parse error: {e}")
        return error_response(
            400,
            ErrorType.VALIDATION,
            "Invalid JSON in request body",
            "The request body contains invalid JSON format",
        )

    try:
        plan_request = parse_plan_body(payload, service.plan_config)
        plan = await service.generate_plan(plan_request)
    except PlanServiceError as e:
        return error_response(e.status_code, e.error_type, e.error, e.message, e.details)

    return json_response(plan)


async def handle_quote(service: QuoteService) -> Response:
    quote = await service.fetch_quote()
    return json_response(quote.model_dump())


async def handle_image(service: ImageService) -> Response:
    image = await service.fetch_image()
    return json_response(image.model_dump(by_alias=True))


@router.api_route("/{path:path}", methods=DISPATCH_METHODS)
async def dispatch(
    request: Request,
    path: str,
    plan_service: PlanService = Depends(get_plan_service),
    quote_service: QuoteService = Depends(get_quote_service),
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Route a request to the plan, quote or image handler."""
    if request.method == "OPTIONS":
        return preflight_response()

    route = request.url.path.lower()
    logger.info(f"Processing {request.method} request to path: {route}")

    try:
        if "/plan" in route:
            return await handle_plan(request, plan_service)
        if "/quote" in route:
            return await handle_quote(quote_service)
        if "/image" in route:
            return await handle_image(image_service)
    except Exception as e:
        logger.exception(f"Handler error: {e}")
        return error_response(
            500,
            ErrorType.UNHANDLED_EXCEPTION,
            "Internal Server Error",
            str(e),
        )

    return error_response(
        404,
        ErrorType.NOT_FOUND,
        "Endpoint not found",
        f"Path '{route}' is not available",
        {"path": route, "availableEndpoints": AVAILABLE_ENDPOINTS},
    )
