"""
Request logging middleware and scope helpers.

Scope claims come from the token. Every router pulls the class or
department it may touch through these helpers and filters its queries by it.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.exceptions import AuthorizationError
from app.schemas.auth import RowId, TokenClaims

logger = logging.getLogger(__name__)

# Paths not worth a log line
QUIET_PATHS = {"/", "/docs", "/redoc", "/openapi.json", "/api/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if path in QUIET_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, path, response.status_code, elapsed_ms)
        return response


def get_class_id(user: TokenClaims) -> RowId:
    """
    Extract class_id from the caller's claims.
    Only class_teacher, faculty and student tokens carry one.
    """
    class_id = getattr(user, "class_id", None)
    if class_id is None:
        raise AuthorizationError("Class ID missing in token.")
    return class_id


def get_department_id(user: TokenClaims) -> RowId:
    """Extract department_id from an HOD's claims."""
    department_id = getattr(user, "department_id", None)
    if department_id is None:
        raise AuthorizationError("Department ID missing in token.")
    return department_id


def same_id(a, b) -> bool:
    """Compare row ids that may arrive as int or str."""
    if a is None or b is None:
        return False
    return str(a) == str(b)
