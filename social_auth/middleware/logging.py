"""
Request Logging Middleware

Logs method, path, status and duration of every request. JSON bodies are
logged at DEBUG level with password-like fields masked.
"""

import json
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = {
    "password",
    "password_confirm",
    "current_password",
    "new_password",
    "code",
}


def mask_sensitive_fields(data):
    """Replace sensitive values in a decoded JSON body."""
    if isinstance(data, list):
        return [mask_sensitive_fields(item) for item in data]
    if not isinstance(data, dict):
        return data

    masked = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            masked[key] = "***MASKED***"
        else:
            masked[key] = mask_sensitive_fields(value)
    return masked


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request and its outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        if request.method in ("POST", "PUT", "PATCH") and logger.isEnabledFor(logging.DEBUG):
            body_bytes = await request.body()
            if body_bytes:
                try:
                    body = mask_sensitive_fields(json.loads(body_bytes.decode("utf-8")))
                    logger.debug(f"[REQUEST BODY] {request.method} {request.url.path} | {json.dumps(body)}")
                except (json.JSONDecodeError, UnicodeDecodeError):
                    logger.debug(f"[REQUEST BODY] <binary data: {len(body_bytes)} bytes>")

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                f"[RESPONSE] {request.method} {request.url.path} | "
                f"Status: 500 (Exception) | Duration: {duration:.3f}s | Error: {e}"
            )
            raise

        duration = time.perf_counter() - start_time
        logger.info(
            f"[RESPONSE] {request.method} {request.url.path} | "
            f"Status: {response.status_code} | Duration: {duration:.3f}s"
        )
        return response
