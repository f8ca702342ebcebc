from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from idproxy.models.provider_data import ProviderData


class Settings(BaseSettings):
    APP_NAME: str = "idproxy"
    PROVIDER_TYPE: str = "jupyterhub"
    PROVIDER_NAME: str = ""
    CLIENT_ID: str = ""
    CLIENT_SECRET: str = ""
    LOGIN_URL: str = ""
    REDEEM_URL: str = ""
    VALIDATE_URL: str = ""
    PROFILE_URL: str = ""
    SCOPE: str = ""
    APPROVAL_PROMPT: str = "force"
    HEADER_MODE: Literal["bearer", "token", "query"] = "bearer"
    ALLOWED_GROUPS: Annotated[List[str], NoDecode] = []
    USER_CLAIM: str = ""
    PLACEHOLDER_EMAIL_DOMAIN: str = "example.com"
    HTTP_TIMEOUT_SEC: float = 10.0
    AUTH_LOG_DIR: str = ".auth-log"

    model_config = SettingsConfigDict(env_prefix="IDPROXY_", env_file=".env", case_sensitive=False)

    @field_validator("ALLOWED_GROUPS", mode="before")
    @classmethod
    def split_groups(cls, value: Any) -> Any:
        # Accept both `staff,admins` and a JSON list from the environment.
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [group.strip() for group in value.split(",") if group.strip()]
        return value

    @property
    def auth_log_path(self) -> Path:
        return Path(self.AUTH_LOG_DIR)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def provider_data_from_settings(settings: Settings) -> ProviderData:
    """Build the unmerged provider configuration; adapters fill in their defaults."""
    return ProviderData(
        provider_name=settings.PROVIDER_NAME,
        client_id=settings.CLIENT_ID,
        client_secret=settings.CLIENT_SECRET,
        login_url=settings.LOGIN_URL,
        redeem_url=settings.REDEEM_URL,
        validate_url=settings.VALIDATE_URL,
        profile_url=settings.PROFILE_URL,
        scope=settings.SCOPE,
        approval_prompt=settings.APPROVAL_PROMPT,
        header_mode=settings.HEADER_MODE,
        allowed_groups=list(settings.ALLOWED_GROUPS),
        user_claim=settings.USER_CLAIM,
        placeholder_email_domain=settings.PLACEHOLDER_EMAIL_DOMAIN,
    )
