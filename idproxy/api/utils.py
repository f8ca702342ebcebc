from __future__ import annotations

from fastapi.responses import JSONResponse


def error_response(code: str, message: str, status_code: int, corr_id: str, details: dict | None = None) -> JSONResponse:
    body = {"error": {"code": code, "message": message, "corr_id": corr_id}}
    if details:
        body["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=body)
