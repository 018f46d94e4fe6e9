"""JSON response envelopes shared by all API routes."""

from typing import Any

from fastapi.responses import JSONResponse


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    """Wrap data as ``{"success": true, "data": ...}``."""
    return JSONResponse(status_code=status_code, content={"success": True, "data": data})


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    """Wrap an error as ``{"success": false, "error": {message, status}}``."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"message": message, "status": status_code},
        },
    )
