"""
Response helpers shared by routes.
"""
from fastapi.responses import JSONResponse


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """``{"success": false, "error": message, ...}`` with the given status."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )
