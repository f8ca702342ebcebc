# Internal Service API - Health checks, metrics, and provider discovery for the proxy core
# Main functions: health() status, metrics() for monitoring, providers() and login_url()
# Flow: internal call validation -> provider contract accessors -> JSON

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from idproxy.api.deps import get_provider, require_internal_call
from idproxy.providers.base import Provider, list_provider_types, provider_type_of


router = APIRouter(tags=["internal"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/metrics")
async def metrics() -> PlainTextResponse:
    return PlainTextResponse("idproxy_ready 1\n")


@router.get("/auth/providers", dependencies=[Depends(require_internal_call)])
async def providers(provider: Provider = Depends(get_provider)) -> dict:
    return {
        "provider": {
            "name": provider.provider_name,
            "type": provider_type_of(provider),
            "scope": provider.data.scope,
        },
        "registered_types": list_provider_types(),
    }


@router.get("/auth/login-url", dependencies=[Depends(require_internal_call)])
async def login_url(redirect_uri: str, state: str, provider: Provider = Depends(get_provider)) -> dict:
    return {"login_url": provider.get_login_url(redirect_uri, state)}
