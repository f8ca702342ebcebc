# Session broker - proxy-core side of the provider contract
# Main functions: get_provider() singleton, check_session() per request, complete_login() on callback
# Flow: callback -> redeem -> enrich -> authorize -> auth log; request -> validate -> auth log on denial

from __future__ import annotations

from typing import Optional

from structlog import get_logger

from idproxy.core.config import get_settings, provider_data_from_settings
from idproxy.core.errors import ProviderError
from idproxy.core.transport import HttpTransport
from idproxy.models.auth_event import AuthEvent
from idproxy.models.session import SessionState
from idproxy.providers.base import Provider, new_provider
from idproxy.providers import jupyterhub_provider  # noqa: F401 - ensure registration
from idproxy.providers import oauth2_provider  # noqa: F401 - ensure registration
from idproxy.utils.auth_logger import log_auth_event


logger = get_logger(__name__)


class LoginDenied(ProviderError):
    """Enriched principal is not a member of any allowed group."""


_provider: Optional[Provider] = None


def build_provider() -> Provider:
    settings = get_settings()
    data = provider_data_from_settings(settings)
    transport = HttpTransport(timeout=settings.HTTP_TIMEOUT_SEC)
    provider = new_provider(settings.PROVIDER_TYPE, data, transport=transport)
    logger.info(
        "session_broker.provider_ready",
        provider=provider.provider_name,
        provider_type=settings.PROVIDER_TYPE,
        scope=provider.data.scope,
    )
    return provider


def get_provider() -> Provider:
    global _provider
    if _provider is None:
        _provider = build_provider()
    return _provider


async def check_session(provider: Provider, session: SessionState) -> bool:
    valid = await provider.validate_session(session)
    if not valid:
        await log_auth_event(
            AuthEvent(
                provider=provider.provider_name,
                action="session.validate",
                status="AuthFailure",
                user=session.user or None,
                message="upstream did not accept the access token",
            )
        )
    return valid


async def enrich(provider: Provider, session: SessionState) -> SessionState:
    try:
        await provider.enrich_session(session)
    except ProviderError as exc:
        await log_auth_event(
            AuthEvent(
                provider=provider.provider_name,
                action="session.enrich",
                status="AuthError",
                message=str(exc),
            )
        )
        raise
    return session


async def complete_login(
    provider: Provider,
    redirect_uri: str,
    code: str,
    code_verifier: Optional[str] = None,
) -> SessionState:
    """Exchange the code, enrich the new session and enforce group policy."""
    try:
        session = await provider.redeem(redirect_uri, code, code_verifier)
    except ProviderError as exc:
        await log_auth_event(
            AuthEvent(
                provider=provider.provider_name,
                action="session.redeem",
                status="AuthError",
                message=str(exc),
            )
        )
        raise

    await enrich(provider, session)

    if not provider.authorize(session):
        await log_auth_event(
            AuthEvent(
                provider=provider.provider_name,
                action="session.authorize",
                status="AuthFailure",
                user=session.user,
                message="user is not a member of an allowed group",
            )
        )
        raise LoginDenied(f"{session.user} is not authorized")

    await log_auth_event(
        AuthEvent(
            provider=provider.provider_name,
            action="session.login",
            status="AuthSuccess",
            user=session.user,
        )
    )
    return session
