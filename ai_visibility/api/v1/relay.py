"""Relay endpoint: forwards chat-completion requests to OpenAI.

The caller embeds its API key in the JSON body as ``apiKey``; the relay
strips it, forwards the rest with a Bearer header and a hard time budget,
and passes the upstream status and JSON body straight back.
"""

import logging

import httpx
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from ai_visibility.core.config import settings
from ai_visibility.core.metrics import RELAY_REQUESTS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _reply(status_code: int, content: dict) -> JSONResponse:
    RELAY_REQUESTS.labels(status=str(status_code)).inc()
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


@router.options("/relay")
async def relay_preflight():
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


@router.api_route("/relay", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def relay_method_not_allowed():
    return _reply(405, {"error": "Method not allowed"})


@router.post("/relay")
async def relay(request: Request):
    """Forward one chat-completions request upstream."""
    try:
        body = await request.json()
    except ValueError as e:
        logger.error("Relay received a non-JSON body: %s", e)
        return _reply(500, {"error": "Internal server error", "message": "Request body is not valid JSON"})

    if not isinstance(body, dict) or not body.get("apiKey"):
        return _reply(400, {"error": "API key is required"})

    api_key = body.pop("apiKey")
    timeout = settings.relay_timeout_seconds

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            upstream = await client.post(
                settings.relay_upstream_url,
                json=body,
                headers={"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"},
            )
    except httpx.TimeoutException:
        logger.warning("Relay upstream call exceeded %.0fs", timeout)
        return _reply(
            504,
            {
                "error": {
                    "message": "Request timeout - the API call took too long. "
                    "Try processing queries one at a time or reduce the number of queries.",
                    "type": "timeout_error",
                }
            },
        )
    except httpx.HTTPError as e:
        logger.error("Relay upstream error: %s", e)
        return _reply(500, {"error": "Internal server error", "message": str(e) or type(e).__name__})

    try:
        data = upstream.json()
    except ValueError:
        logger.error("Relay upstream returned non-JSON (status %d)", upstream.status_code)
        return _reply(
            500,
            {
                "error": {
                    "message": "Invalid response from upstream API",
                    "type": "invalid_response",
                    "response": upstream.text[:500],
                }
            },
        )

    return _reply(upstream.status_code, data)
