# JupyterHub Provider - adapter for JupyterHub's OAuth2 service
# Main functions: enrich_session() from /hub/api/user, validate_session() with OIDC bearer header
# Note: JupyterHub has no email concept, so emails are synthesized from the user name

from __future__ import annotations

from typing import Any, Dict, Optional

from structlog import get_logger

from idproxy.core.security import make_oidc_header
from idproxy.models.provider_data import ProviderDefaults
from idproxy.models.session import SessionState

from .base import Provider, register_provider
from .enrichment import fetch_profile, optional_string, require_string
from .validation import validate_token


logger = get_logger(__name__)


JUPYTERHUB_DEFAULTS = ProviderDefaults(
    name="JupyterHub",
    login_url="https://jupyterhub.example.com/hub/api/oauth2/authorize",
    redeem_url="http://internal.jupyterhub.example.com:8000/hub/api/oauth2/token",
    profile_url="",
    validate_url="http://internal.jupyterhub.example.com:8000/hub/api/user",
    scope="identify",
)


class JupyterHubProvider(Provider):
    defaults = JUPYTERHUB_DEFAULTS

    def email_for_profile(self, name: str, profile: Dict[str, Any]) -> Optional[str]:
        # Placeholder policy; subclass and override when real addresses are required.
        return f"{name}@{self.data.placeholder_email_domain}"

    async def enrich_session(self, session: SessionState) -> None:
        profile = await fetch_profile(self, session)

        name = require_string(profile, "name")
        email = self.email_for_profile(name, profile)
        preferred_username = optional_string(profile, "preferred_username")

        session.user = name
        if email:
            session.email = email
        if preferred_username is not None:
            session.preferred_username = preferred_username
        logger.info("jupyterhub_provider.enrich_session", user=name)

    async def validate_session(self, session: SessionState) -> bool:
        return await validate_token(self, session.access_token, make_oidc_header(session.access_token))


register_provider("jupyterhub", JupyterHubProvider)
