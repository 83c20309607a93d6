"""
JSON envelopes shared by every public endpoint.

Success: {success: true, message, data, cached?, timestamp}
Error:   {success: false, message, errors?, error_code?, timestamp}
"""
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from gateway.cache.core import CacheMeta


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def success(
    data: Any = None,
    message: str = "Success",
    status_code: int = 200,
    meta: Optional[CacheMeta] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "success": True,
        "message": message,
        "data": data,
    }
    headers = {}
    if meta is not None:
        body["cached"] = meta.cached
        headers["X-Cache"] = "HIT" if meta.cached else "MISS"
        if meta.ttl_seconds:
            headers["Cache-Control"] = f"public, max-age={meta.ttl_seconds}"
    body["timestamp"] = _timestamp()
    return JSONResponse(content=body, status_code=status_code, headers=headers)


def error(
    message: str,
    status_code: int = 400,
    errors: Any = None,
    error_code: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
    }
    if errors is not None:
        body["errors"] = errors
    if error_code:
        body["error_code"] = error_code
    body["timestamp"] = _timestamp()
    return JSONResponse(content=body, status_code=status_code, headers=headers)
