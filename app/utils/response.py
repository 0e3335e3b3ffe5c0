"""
Standard API response format and utility functions.

Every response body is {"success": bool, ...}. Payload keys sit at the top
level next to "success"; failures carry a single "error" string.
"""

from typing import Any, Optional


def success_response(message: Optional[str] = None, **payload: Any) -> dict:
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    body.update(payload)
    return body


def error_response(error: str = "Something went wrong") -> dict:
    return {"success": False, "error": error}
