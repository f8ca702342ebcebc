from __future__ import annotations

from structlog import get_logger

from idproxy.models.provider_data import ProviderDefaults
from idproxy.models.session import SessionState

from .base import Provider, register_provider
from .enrichment import fetch_profile, optional_string, optional_string_list, require_string


logger = get_logger(__name__)


OAUTH2_DEFAULTS = ProviderDefaults(name="OAuth2", scope="openid email profile")

DEFAULT_USER_CLAIM = "sub"


class OAuth2Provider(Provider):
    """Generic OAuth2 adapter; every endpoint comes from configuration."""

    defaults = OAUTH2_DEFAULTS

    async def enrich_session(self, session: SessionState) -> None:
        profile = await fetch_profile(self, session)

        user = require_string(profile, self.data.user_claim or DEFAULT_USER_CLAIM)
        email = self.email_for_profile(user, profile)
        preferred_username = optional_string(profile, "preferred_username")
        groups = optional_string_list(profile, "groups")

        session.user = user
        if email:
            session.email = email
        if preferred_username is not None:
            session.preferred_username = preferred_username
        if groups is not None:
            session.groups = groups
        logger.info("oauth2_provider.enrich_session", user=user, groups_count=len(session.groups))


register_provider("oauth2", OAuth2Provider)
