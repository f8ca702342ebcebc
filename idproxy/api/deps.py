from __future__ import annotations

from fastapi import HTTPException, Request, status

from idproxy.core import session_broker
from idproxy.core.security import correlation_id
from idproxy.providers.base import Provider


async def require_internal_call(request: Request) -> None:
    if request.headers.get("X-Internal-Call", "").lower() != "true":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "FORBIDDEN", "message": "Internal access required", "corr_id": correlation_id()},
        )


def get_provider() -> Provider:
    return session_broker.get_provider()
