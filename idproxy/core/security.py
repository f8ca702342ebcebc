from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Dict, Optional


TOKEN_TYPE_BEARER = "Bearer"
TOKEN_TYPE_TOKEN = "token"

_correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

_TOKEN_PARAM = re.compile(r"(access_token=)[^&]*")


def correlation_id(force_new: bool = False, value: str | None = None) -> str:
    """Return correlation id for current context, creating one if missing."""
    if value:
        _correlation_id_ctx.set(value)
        return value
    current = "" if force_new else _correlation_id_ctx.get()
    if current:
        return current
    new_id = uuid.uuid4().hex
    _correlation_id_ctx.set(new_id)
    return new_id


def make_authorization_header(
    prefix: str, token: str, extra_headers: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    headers = {"Authorization": f"{prefix} {token}"}
    for key, value in (extra_headers or {}).items():
        headers[key] = value
    return headers


def make_oidc_header(token: str) -> Dict[str, str]:
    return make_authorization_header(TOKEN_TYPE_BEARER, token, {"Accept": "application/json"})


def validation_headers(mode: str, token: str) -> Optional[Dict[str, str]]:
    """Map a header construction mode to request headers.

    ``None`` means the token travels as an ``access_token`` query parameter.
    """
    if mode == "query":
        return None
    if mode == "token":
        return make_authorization_header(TOKEN_TYPE_TOKEN, token, {"Accept": "application/json"})
    return make_oidc_header(token)


def strip_token(endpoint: str) -> str:
    """Mask an access_token query parameter so URLs are safe to log."""
    def _mask(match: re.Match[str]) -> str:
        value = match.group(0)[len(match.group(1)):]
        if len(value) <= 3:
            return match.group(1) + "..."
        return match.group(1) + value[:3] + "..."

    return _TOKEN_PARAM.sub(_mask, endpoint)
