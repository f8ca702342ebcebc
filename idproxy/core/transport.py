from __future__ import annotations

import json
from typing import Any, Dict, Optional

import httpx
from structlog import get_logger

from .errors import MalformedResponse, TransportFailure, UpstreamRejected


logger = get_logger(__name__)


class HttpTransport:
    """Single-attempt JSON requests against an identity provider.

    A fresh ``httpx.AsyncClient`` is opened per call so one instance can be
    shared by every concurrent request. ``transport`` lets callers inject an
    ``httpx.AsyncBaseTransport`` (e.g. ``httpx.MockTransport``).
    """

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.timeout = timeout
        self._transport = transport

    async def request_json(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, data=data)
        except httpx.HTTPError as exc:
            raise TransportFailure(f"{method} request failed: {exc.__class__.__name__}: {exc}") from exc

        if not response.is_success:
            raise UpstreamRejected(response.status_code, response.text)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponse(f"response body is not valid JSON: {exc}") from exc
