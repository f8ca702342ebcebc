from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

import httpx
from structlog import get_logger

from idproxy.core.errors import ProviderError, UpstreamRejected
from idproxy.core.security import strip_token

if TYPE_CHECKING:
    from .base import Provider


logger = get_logger(__name__)


def _with_token_param(endpoint: str, access_token: str) -> str:
    return str(httpx.URL(endpoint).copy_merge_params({"access_token": access_token}))


async def validate_token(provider: Provider, access_token: str, headers: Optional[Dict[str, str]]) -> bool:
    """Return whether the identity provider still accepts ``access_token``.

    This is a boolean decision: every failure (transport, non-2xx status,
    unparseable body) is logged and collapses to ``False``.
    """
    endpoint = provider.data.validate_url
    if not access_token or not endpoint:
        return False

    if headers is None:
        endpoint = _with_token_param(endpoint, access_token)

    try:
        await provider.transport.request_json("GET", endpoint, headers=headers)
    except UpstreamRejected as exc:
        logger.warning(
            "provider.validate_token.rejected",
            provider=provider.provider_name,
            endpoint=strip_token(endpoint),
            status=exc.status_code,
        )
        return False
    except ProviderError as exc:
        logger.warning(
            "provider.validate_token.failed",
            provider=provider.provider_name,
            endpoint=strip_token(endpoint),
            error=str(exc),
        )
        return False
    except Exception as exc:
        # Injected transports may raise anything; the decision still fails closed.
        logger.error(
            "provider.validate_token.error",
            provider=provider.provider_name,
            endpoint=strip_token(endpoint),
            error=f"{exc.__class__.__name__}: {exc}",
        )
        return False

    logger.info("provider.validate_token.ok", provider=provider.provider_name, endpoint=strip_token(endpoint))
    return True
