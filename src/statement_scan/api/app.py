from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from ..config import Settings, load_settings
from ..errors import ConfigurationError, ImageDecodeError, ProviderChainError
from ..logging import get_logger
from ..service import ExtractionService

LOG = get_logger("api")

ALLOWED_METHODS = "GET, POST, OPTIONS"
_ROUTE_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE"]


def _failure(error: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error}
    body.update(extra)
    body.update({"success": False, "transactions": []})
    return body


def _members_field(value: Any) -> Optional[List[Any]]:
    if value is None:
        return None
    if isinstance(value, list):
        return value
    LOG.warning("Ignoring non-list members field: %r", type(value).__name__)
    return None


def create_app(
    settings: Optional[Settings] = None,
    *,
    service: Optional[ExtractionService] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create the Starlette app exposing the image analysis endpoint."""

    if service is None:
        settings = settings or load_settings()
        service = ExtractionService.from_settings(settings)
    origins = allow_origins or (settings.allow_origins if settings else None) or ["*"]
    LOG.info("Providers configured: %d; CORS origins: %s", len(service.providers), ", ".join(origins))

    def cors_headers(request: Request) -> Dict[str, str]:
        if "*" in origins:
            allow_origin = "*"
        else:
            origin = request.headers.get("origin")
            allow_origin = origin if origin in origins else origins[0]
        headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": "Content-Type",
        }
        if allow_origin != "*":
            headers["Vary"] = "Origin"
        return headers

    def reply(request: Request, body: Dict[str, Any], status_code: int = 200) -> JSONResponse:
        return JSONResponse(body, status_code=status_code, headers=cors_headers(request))

    async def handle_post(request: Request) -> JSONResponse:
        try:
            service.ensure_configured()
        except ConfigurationError as exc:
            return reply(request, _failure(str(exc)), 500)

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return reply(request, {"error": "Invalid JSON body"}, 400)
        if not isinstance(body, dict):
            return reply(request, {"error": "Request body must be a JSON object"}, 400)
        if not body.get("image"):
            return reply(request, {"error": "No image provided"}, 400)

        try:
            result = await run_in_threadpool(
                service.analyze,
                body.get("image"),
                prompt=body.get("prompt"),
                members=_members_field(body.get("members")),
                currency=body.get("currency"),
            )
        except ImageDecodeError as exc:
            return reply(request, {"error": str(exc)}, 400)
        except ProviderChainError as exc:
            status_code = 503 if service.uses_fallback else 500
            error = "All AI providers failed" if service.uses_fallback else str(exc)
            return reply(request, _failure(error, details=exc.details), status_code)

        return reply(request, result.to_dict())

    async def analyze_image(request: Request) -> Response:
        method = request.method.upper()
        if method == "OPTIONS":
            return Response(status_code=200, headers=cors_headers(request))
        try:
            if method in ("GET", "HEAD"):
                return reply(request, service.status())
            if method != "POST":
                return reply(request, {"error": "Method not allowed"}, 405)
            return await handle_post(request)
        except Exception as exc:
            LOG.exception("Unhandled error while processing %s %s", method, request.url.path)
            return reply(request, _failure(str(exc)), 500)

    routes = [
        Route("/", analyze_image, methods=_ROUTE_METHODS),
        Route("/api/analyze-image", analyze_image, methods=_ROUTE_METHODS),
    ]
    return Starlette(debug=False, routes=routes)


__all__ = ["create_app"]
