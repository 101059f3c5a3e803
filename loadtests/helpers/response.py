"""Response error extraction for load test observability.

Parses API error responses into human-readable messages. Handles three
response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Cart rejections (400): {"error": {"reason": "...", "message": "...", ...}}
- Stock and domain errors (400/404/409/503): {"error": "code", "message": "..."}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    """
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            if "reason" in error:
                return f"{error['reason']}: {error.get('message', '')}"
            return " | ".join(f"{k}: {v}" for k, v in error.items())
        message = body.get("message")
        return f"{error}: {message}" if message else str(error)

    return str(body)[:300]


def is_insufficient_stock(response: Response) -> bool:
    """A 409 that reports too little stock is an expected outcome under contention."""
    if response.status_code != 409:
        return False
    try:
        return response.json().get("error") == "insufficient_stock"
    except ValueError:
        return False
