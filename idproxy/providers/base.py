# Provider contract - the capability set every identity-provider adapter satisfies
# Main functions: Provider (validate/enrich/login URL/redeem/refresh/authorize), adapter registry
# Flow: new_provider(type, data) -> adapter merges its defaults -> proxy core calls the contract

from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Type

import httpx
from structlog import get_logger

from idproxy.core.errors import ProviderConfigError, RedeemFailed
from idproxy.core.security import validation_headers
from idproxy.core.transport import HttpTransport
from idproxy.models.provider_data import ProviderData, ProviderDefaults, set_provider_defaults
from idproxy.models.session import SessionState

from .enrichment import optional_string
from .validation import validate_token


logger = get_logger(__name__)


class Provider(ABC):
    """An adapter translating one vendor's OAuth2 dialect into SessionState.

    Adapters hold their ``ProviderData`` rather than extending it. The data is
    merged with ``defaults`` once at construction and only read afterwards.
    """

    defaults: ClassVar[ProviderDefaults]

    def __init__(self, data: ProviderData, transport: Optional[HttpTransport] = None) -> None:
        set_provider_defaults(data, self.defaults)
        for field in ("login_url", "redeem_url", "validate_url"):
            if not getattr(data, field):
                raise ProviderConfigError(f"{data.provider_name or 'provider'}: {field} must be configured")
        self._data = data
        self.transport = transport or HttpTransport()

    @property
    def data(self) -> ProviderData:
        return self._data

    @property
    def provider_name(self) -> str:
        return self._data.provider_name

    async def validate_session(self, session: SessionState) -> bool:
        headers = validation_headers(self._data.header_mode, session.access_token)
        return await validate_token(self, session.access_token, headers)

    @abstractmethod
    async def enrich_session(self, session: SessionState) -> None:
        """Populate identity fields on ``session`` or raise EnrichmentFailed."""

    def email_for_profile(self, name: str, profile: Dict[str, Any]) -> Optional[str]:
        """Email policy: use the profile's own ``email`` claim when it has one."""
        return optional_string(profile, "email")

    def get_login_url(self, redirect_uri: str, state: str, extra_params: Optional[Dict[str, str]] = None) -> str:
        params: Dict[str, str] = {}
        if self._data.approval_prompt:
            params["approval_prompt"] = self._data.approval_prompt
        params.update(
            {
                "client_id": self._data.client_id,
                "redirect_uri": redirect_uri,
                "response_type": "code",
                "scope": self._data.scope,
                "state": state,
            }
        )
        params.update(extra_params or {})
        return str(httpx.URL(self._data.login_url).copy_merge_params(params))

    async def redeem(self, redirect_uri: str, code: str, code_verifier: Optional[str] = None) -> SessionState:
        if not code:
            raise RedeemFailed("missing authorization code")
        form = {
            "client_id": self._data.client_id,
            "client_secret": self._data.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }
        if code_verifier:
            form["code_verifier"] = code_verifier
        payload = await self.transport.request_json(
            "POST",
            self._data.redeem_url,
            headers={"Accept": "application/json"},
            data=form,
        )
        session = SessionState()
        self._apply_token_response(session, payload)
        logger.info("provider.redeem", provider=self.provider_name, has_refresh_token=bool(session.refresh_token))
        return session

    async def refresh_session(self, session: SessionState) -> bool:
        if not session.refresh_token:
            return False
        form = {
            "client_id": self._data.client_id,
            "client_secret": self._data.client_secret,
            "refresh_token": session.refresh_token,
            "grant_type": "refresh_token",
        }
        payload = await self.transport.request_json(
            "POST",
            self._data.redeem_url,
            headers={"Accept": "application/json"},
            data=form,
        )
        self._apply_token_response(session, payload)
        logger.info("provider.refresh_session", provider=self.provider_name, user=session.user)
        return True

    def authorize(self, session: SessionState) -> bool:
        allowed = set(self._data.allowed_groups)
        if not allowed:
            return True
        return bool(allowed.intersection(session.groups))

    def _apply_token_response(self, session: SessionState, payload: Any) -> None:
        if not isinstance(payload, dict):
            raise RedeemFailed("token endpoint returned a non-object body")
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise RedeemFailed("no access_token in token endpoint response")

        now = dt.datetime.now(dt.timezone.utc)
        session.access_token = access_token
        refresh_token = payload.get("refresh_token")
        if isinstance(refresh_token, str) and refresh_token:
            session.refresh_token = refresh_token
        id_token = payload.get("id_token")
        if isinstance(id_token, str) and id_token:
            session.id_token = id_token
        session.created_at = now
        expires_in = payload.get("expires_in")
        if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool) and expires_in > 0:
            session.expires_on = now + dt.timedelta(seconds=expires_in)
        else:
            session.expires_on = None


_registry: Dict[str, Type[Provider]] = {}


def register_provider(provider_type: str, provider_cls: Type[Provider]) -> None:
    _registry[provider_type.lower()] = provider_cls


def new_provider(provider_type: str, data: ProviderData, transport: Optional[HttpTransport] = None) -> Provider:
    provider_cls = _registry.get(provider_type.lower())
    if not provider_cls:
        raise KeyError(f"provider {provider_type} not registered")
    return provider_cls(data, transport=transport)


def list_provider_types() -> list[str]:
    return list(_registry.keys())


def provider_type_of(provider: Provider) -> str:
    """Registry key of the adapter class ``provider`` is an instance of."""
    for provider_type, provider_cls in _registry.items():
        if type(provider) is provider_cls:
            return provider_type
    for provider_type, provider_cls in _registry.items():
        if isinstance(provider, provider_cls):
            return provider_type
    raise KeyError(f"{type(provider).__name__} is not a registered provider")
