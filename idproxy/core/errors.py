from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """Base class for identity-provider adapter failures."""


class ProviderConfigError(ProviderError):
    """Adapter configuration is incomplete or malformed."""


class TransportFailure(ProviderError):
    """Network, DNS or timeout failure talking to the identity provider."""


class UpstreamRejected(ProviderError):
    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"upstream responded with status {status_code}")
        self.status_code = status_code
        self.body = body


class MalformedResponse(ProviderError):
    """Response body is not the structured document we expected."""


class EnrichmentFailed(ProviderError):
    """Session identity fields could not be populated."""


class MissingRequiredField(EnrichmentFailed):
    def __init__(self, field: str, reason: Optional[str] = None) -> None:
        message = f"unable to extract {field} from userinfo endpoint"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.field = field


class RedeemFailed(ProviderError):
    """Authorization code or refresh token exchange did not yield a usable token."""
