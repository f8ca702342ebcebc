from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from idproxy.api.deps import get_provider
from idproxy.core.transport import HttpTransport
from idproxy.main import app
from idproxy.models.provider_data import ProviderData
from idproxy.providers.jupyterhub_provider import JupyterHubProvider
from idproxy.providers.oauth2_provider import OAuth2Provider
from idproxy.utils import auth_logger


Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeIdentityProvider:
    """Routes requests by (method, host, path) and records everything it sees."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str, str], Reply] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, url: str, reply: Reply) -> None:
        parsed = httpx.URL(url)
        self.routes[(method.upper(), parsed.host, parsed.path)] = reply

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.host, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


@pytest.fixture
def fake_idp():
    return FakeIdentityProvider()


@pytest.fixture
def transport(fake_idp):
    return HttpTransport(timeout=2.0, transport=httpx.MockTransport(fake_idp.handler))


@pytest.fixture
def jupyterhub(transport):
    return JupyterHubProvider(ProviderData(client_id="proxy", client_secret="s3cret"), transport=transport)


@pytest.fixture
def oauth2(transport):
    data = ProviderData(
        client_id="proxy",
        client_secret="s3cret",
        login_url="https://idp.example.org/authorize",
        redeem_url="https://idp.example.org/token",
        validate_url="https://idp.example.org/introspect",
        profile_url="https://idp.example.org/userinfo",
    )
    return OAuth2Provider(data, transport=transport)


@pytest.fixture(autouse=True)
def auth_log(tmp_path, monkeypatch):
    log = auth_logger.AuthEventLogger(base_path=tmp_path / "auth-log")
    monkeypatch.setattr(auth_logger, "_auth_logger", log)
    return log


@pytest.fixture
def read_auth_log(auth_log):
    def _read() -> List[dict]:
        import json

        lines: List[dict] = []
        for path in sorted(auth_log.base_path.glob("auth-*.jsonl")):
            lines.extend(json.loads(line) for line in path.read_text().splitlines() if line)
        return lines

    return _read


@pytest.fixture
def client(jupyterhub):
    app.dependency_overrides[get_provider] = lambda: jupyterhub
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def internal_header():
    return {"X-Internal-Call": "true"}
