# Provider configuration - shared ProviderData model and the defaults merger
# Main functions: ProviderData (URL validation), set_provider_defaults() to fill unset fields
# Flow: settings -> ProviderData -> adapter constructor merges its defaults -> shared read-only

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderData(BaseModel):
    provider_name: str = ""
    client_id: str = ""
    client_secret: str = ""
    login_url: str = ""
    redeem_url: str = ""
    validate_url: str = ""
    profile_url: str = ""
    scope: str = ""
    approval_prompt: str = "force"
    header_mode: Literal["bearer", "token", "query"] = "bearer"
    allowed_groups: List[str] = Field(default_factory=list)
    user_claim: str = ""
    placeholder_email_domain: str = "example.com"

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    @field_validator("login_url", "redeem_url", "validate_url", "profile_url")
    @classmethod
    def ensure_absolute_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            return value
        parts = urlsplit(value)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ValueError(f"expected an absolute http(s) URL, got {value!r}")
        return value


@dataclass(frozen=True)
class ProviderDefaults:
    name: str
    login_url: str = ""
    redeem_url: str = ""
    profile_url: str = ""
    validate_url: str = ""
    scope: str = ""


def set_provider_defaults(data: ProviderData, defaults: ProviderDefaults) -> None:
    """Fill every field the caller left unset with the adapter's default.

    Explicit values are never overwritten, so merging an already complete
    configuration is a no-op.
    """
    if not data.provider_name:
        data.provider_name = defaults.name
    if not data.login_url:
        data.login_url = defaults.login_url
    if not data.redeem_url:
        data.redeem_url = defaults.redeem_url
    if not data.profile_url:
        data.profile_url = defaults.profile_url
    if not data.validate_url:
        data.validate_url = defaults.validate_url
    if not data.scope:
        data.scope = defaults.scope
