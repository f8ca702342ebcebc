import httpx
import pytest

from idproxy.core.errors import MalformedResponse, MissingRequiredField, TransportFailure, UpstreamRejected
from idproxy.models.provider_data import ProviderData
from idproxy.models.session import SessionState
from idproxy.providers.jupyterhub_provider import JupyterHubProvider
from idproxy.providers.oauth2_provider import OAuth2Provider


@pytest.mark.asyncio
async def test_enrich_populates_identity(jupyterhub, fake_idp):
    fake_idp.on(
        "GET",
        jupyterhub.data.validate_url,
        httpx.Response(200, json={"name": "alice", "preferred_username": "a.liu"}),
    )
    session = SessionState(access_token="tok-123")

    await jupyterhub.enrich_session(session)

    assert session.user == "alice"
    assert session.email == "alice@example.com"
    assert session.preferred_username == "a.liu"
    assert fake_idp.requests[0].headers["Authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_missing_name_leaves_session_untouched(jupyterhub, fake_idp):
    fake_idp.on("GET", jupyterhub.data.validate_url, httpx.Response(200, json={"preferred_username": "ghost"}))
    session = SessionState(access_token="tok-123", user="previous", email="previous@corp.example")

    with pytest.raises(MissingRequiredField) as excinfo:
        await jupyterhub.enrich_session(session)

    assert excinfo.value.field == "name"
    assert session.user == "previous"
    assert session.email == "previous@corp.example"
    assert session.preferred_username == ""


@pytest.mark.asyncio
async def test_non_string_name_is_missing(jupyterhub, fake_idp):
    fake_idp.on("GET", jupyterhub.data.validate_url, httpx.Response(200, json={"name": 42}))

    with pytest.raises(MissingRequiredField):
        await jupyterhub.enrich_session(SessionState(access_token="tok-123"))


@pytest.mark.asyncio
async def test_missing_preferred_username_keeps_prior_value(jupyterhub, fake_idp):
    fake_idp.on("GET", jupyterhub.data.validate_url, httpx.Response(200, json={"name": "bob"}))
    session = SessionState(access_token="tok-123", preferred_username="bobby")

    await jupyterhub.enrich_session(session)

    assert session.user == "bob"
    assert session.email == "bob@example.com"
    assert session.preferred_username == "bobby"


@pytest.mark.asyncio
async def test_profile_url_takes_precedence(transport, fake_idp):
    provider = JupyterHubProvider(
        ProviderData(profile_url="https://hub.example.org/hub/api/user/profile"),
        transport=transport,
    )
    fake_idp.on("GET", "https://hub.example.org/hub/api/user/profile", httpx.Response(200, json={"name": "carol"}))

    await provider.enrich_session(SessionState(access_token="tok-123"))

    assert str(fake_idp.requests[0].url) == "https://hub.example.org/hub/api/user/profile"


@pytest.mark.asyncio
async def test_falls_back_to_validate_url(jupyterhub, fake_idp):
    fake_idp.on("GET", jupyterhub.data.validate_url, httpx.Response(200, json={"name": "dave"}))

    await jupyterhub.enrich_session(SessionState(access_token="tok-123"))

    assert str(fake_idp.requests[0].url) == "http://internal.jupyterhub.example.com:8000/hub/api/user"


@pytest.mark.asyncio
async def test_placeholder_domain_is_configurable(transport, fake_idp):
    provider = JupyterHubProvider(ProviderData(placeholder_email_domain="hub.corp.example"), transport=transport)
    fake_idp.on("GET", provider.data.validate_url, httpx.Response(200, json={"name": "erin"}))
    session = SessionState(access_token="tok-123")

    await provider.enrich_session(session)

    assert session.email == "erin@hub.corp.example"


@pytest.mark.asyncio
async def test_email_policy_can_be_overridden(transport, fake_idp):
    class DirectoryHub(JupyterHubProvider):
        def email_for_profile(self, name, profile):
            return None

    provider = DirectoryHub(ProviderData(), transport=transport)
    fake_idp.on("GET", provider.data.validate_url, httpx.Response(200, json={"name": "frank"}))
    session = SessionState(access_token="tok-123", email="frank@directory.example")

    await provider.enrich_session(session)

    assert session.user == "frank"
    assert session.email == "frank@directory.example"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply, error",
    [
        (httpx.ConnectError("connection refused"), TransportFailure),
        (httpx.Response(403, json={"error": "forbidden"}), UpstreamRejected),
        (httpx.Response(200, text="not json"), MalformedResponse),
        (httpx.Response(200, json=["alice"]), MalformedResponse),
    ],
)
async def test_upstream_failures_propagate(jupyterhub, fake_idp, reply, error):
    fake_idp.on("GET", jupyterhub.data.validate_url, reply)
    session = SessionState(access_token="tok-123")

    with pytest.raises(error):
        await jupyterhub.enrich_session(session)

    assert session.user == ""
    assert session.email == ""


@pytest.mark.asyncio
async def test_oauth2_enrichment_reads_claims(oauth2, fake_idp):
    fake_idp.on(
        "GET",
        "https://idp.example.org/userinfo",
        httpx.Response(
            200,
            json={"sub": "user-1", "email": "gina@corp.example", "preferred_username": "gina", "groups": ["eng"]},
        ),
    )
    session = SessionState(access_token="tok-123")

    await oauth2.enrich_session(session)

    assert session.user == "user-1"
    assert session.email == "gina@corp.example"
    assert session.preferred_username == "gina"
    assert session.groups == ["eng"]


@pytest.mark.asyncio
async def test_oauth2_custom_user_claim_and_malformed_groups(transport, fake_idp):
    provider = OAuth2Provider(
        ProviderData(
            login_url="https://idp.example.org/authorize",
            redeem_url="https://idp.example.org/token",
            validate_url="https://idp.example.org/userinfo",
            user_claim="login",
        ),
        transport=transport,
    )
    fake_idp.on(
        "GET",
        "https://idp.example.org/userinfo",
        httpx.Response(200, json={"sub": "user-9", "login": "zed", "groups": "notalist"}),
    )
    session = SessionState(access_token="tok-123", groups=["keep"])

    await provider.enrich_session(session)

    assert session.user == "zed"
    assert session.groups == ["keep"]


@pytest.mark.asyncio
async def test_empty_preferred_username_is_assigned(jupyterhub, fake_idp):
    fake_idp.on(
        "GET",
        jupyterhub.data.validate_url,
        httpx.Response(200, json={"name": "hank", "preferred_username": ""}),
    )
    session = SessionState(access_token="tok-123", preferred_username="old")

    await jupyterhub.enrich_session(session)

    assert session.preferred_username == ""
