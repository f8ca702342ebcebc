# Enrichment helpers - profile endpoint resolution and typed field extraction
# Main functions: resolve_profile_url(), fetch_profile(), require_string(), optional_string()
# Flow: profile_url or validate_url -> GET with bearer -> JSON object -> per-field checks

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from structlog import get_logger

from idproxy.core.errors import MalformedResponse, MissingRequiredField
from idproxy.core.security import TOKEN_TYPE_BEARER, make_authorization_header
from idproxy.models.provider_data import ProviderData
from idproxy.models.session import SessionState

if TYPE_CHECKING:
    from .base import Provider


logger = get_logger(__name__)


def resolve_profile_url(data: ProviderData) -> str:
    # Fall back to the validate URL when no profile URL is set for legacy compatibility.
    return data.profile_url or data.validate_url


async def fetch_profile(provider: Provider, session: SessionState) -> Dict[str, Any]:
    """GET the profile document; transport and upstream errors propagate."""
    profile_url = resolve_profile_url(provider.data)
    headers = make_authorization_header(TOKEN_TYPE_BEARER, session.access_token)
    try:
        document = await provider.transport.request_json("GET", profile_url, headers=headers)
    except Exception as exc:
        logger.error(
            "provider.fetch_profile.failed",
            provider=provider.provider_name,
            endpoint=profile_url,
            error=str(exc),
        )
        raise
    if not isinstance(document, dict):
        raise MalformedResponse(f"expected a JSON object from {profile_url}, got {type(document).__name__}")
    return document


def require_string(document: Dict[str, Any], key: str) -> str:
    if key not in document:
        raise MissingRequiredField(key, "field missing")
    value = document[key]
    if not isinstance(value, str):
        raise MissingRequiredField(key, f"expected a string, got {type(value).__name__}")
    if not value:
        raise MissingRequiredField(key, "field is empty")
    return value


def optional_string(document: Dict[str, Any], key: str) -> Optional[str]:
    value = document.get(key)
    if isinstance(value, str):
        return value
    return None


def optional_string_list(document: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = document.get(key)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None
