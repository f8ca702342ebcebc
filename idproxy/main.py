# idproxy Main Application - identity-provider adapter service for an authenticating proxy
# Core functions: FastAPI app setup, structlog configuration, correlation ID middleware
# Flow: startup -> load config -> build provider -> register routes -> handle internal auth calls

from __future__ import annotations

import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from idproxy.api.routes_internal import router as internal_router
from idproxy.api.routes_session import router as session_router
from idproxy.core import session_broker
from idproxy.core.config import get_settings
from idproxy.core.security import correlation_id


def configure_logging() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(),
    )


settings = get_settings()
configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")

app.include_router(internal_router)
app.include_router(session_router)


@app.on_event("startup")
async def on_startup() -> None:
    # Fail fast on an incomplete provider configuration.
    session_broker.get_provider()


@app.middleware("http")
async def correlation_middleware(request: Request, call_next):
    inbound = request.headers.get("X-Correlation-ID")
    if inbound:
        corr = correlation_id(value=inbound)
    else:
        corr = correlation_id(force_new=True)
    request.state.correlation_id = corr
    structlog.contextvars.bind_contextvars(corr_id=corr)
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover - safety net
        logging.exception("Request failed", exc_info=exc)
        body = {"error": {"code": "INTERNAL", "message": "Internal server error", "corr_id": corr}}
        response = JSONResponse(status_code=500, content=body)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Correlation-ID"] = corr
    return response
