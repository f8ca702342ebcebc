# Session API - validation, enrichment and login completion for the proxy core
# Main functions: redeem_session() on OAuth callback, validate_session() per request, enrich_session()
# Flow: internal call validation -> provider contract -> auth event log -> JSON or error envelope

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from idproxy.api.deps import get_provider, require_internal_call
from idproxy.api.utils import error_response
from idproxy.core import session_broker
from idproxy.core.errors import ProviderError
from idproxy.core.security import correlation_id
from idproxy.models.session import SessionState
from idproxy.providers.base import Provider


router = APIRouter(prefix="/auth/session", tags=["session"], dependencies=[Depends(require_internal_call)])


class RedeemRequest(BaseModel):
    code: str
    redirect_uri: str
    code_verifier: Optional[str] = None


class TokenRequest(BaseModel):
    access_token: str


def _upstream_error(exc: ProviderError):
    return error_response("UPSTREAM_AUTH_FAILED", str(exc), 502, correlation_id(), {"kind": exc.__class__.__name__})


@router.post("/redeem")
async def redeem_session(payload: RedeemRequest, provider: Provider = Depends(get_provider)):
    try:
        session = await session_broker.complete_login(
            provider,
            payload.redirect_uri,
            payload.code,
            payload.code_verifier,
        )
    except session_broker.LoginDenied as exc:
        return error_response("FORBIDDEN", str(exc), 403, correlation_id())
    except ProviderError as exc:
        return _upstream_error(exc)

    # Tokens go back to the caller's session store; nothing is persisted here.
    return {
        "session": session.redacted(),
        "tokens": {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "id_token": session.id_token,
        },
    }


@router.post("/validate")
async def validate_session(payload: TokenRequest, provider: Provider = Depends(get_provider)) -> dict:
    valid = await session_broker.check_session(provider, SessionState(access_token=payload.access_token))
    return {"valid": valid}


@router.post("/enrich")
async def enrich_session(payload: TokenRequest, provider: Provider = Depends(get_provider)):
    session = SessionState(access_token=payload.access_token)
    try:
        await session_broker.enrich(provider, session)
    except ProviderError as exc:
        return _upstream_error(exc)
    return {"session": session.redacted()}
