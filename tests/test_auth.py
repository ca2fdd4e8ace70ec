import asyncio
import logging

import httpx
import pytest

from seitrace_mcp.auth import CredentialStore, SecurityNegotiator, TokenCache
from seitrace_mcp.metrics import default_metrics
from seitrace_mcp.types import OAuthFlow, OutboundRequest, SecurityRequirement, SecurityScheme

TOKEN_URL = "https://auth.example/token"

SCHEMES = {
    "bearerAuth": SecurityScheme(kind="http", http_scheme="bearer"),
    "apiKey": SecurityScheme(kind="apiKey", location="header", parameter_name="x-api-key"),
    "queryKey": SecurityScheme(kind="apiKey", location="query", parameter_name="api_key"),
    "cookieKey": SecurityScheme(kind="apiKey", location="cookie", parameter_name="session"),
    "basicAuth": SecurityScheme(kind="http", http_scheme="basic"),
    "oauth": SecurityScheme(kind="oauth2", flows={"clientCredentials": OAuthFlow(token_url=TOKEN_URL)}),
}


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_credential_key_transformation():
    assert CredentialStore.key_for("api-key.v2") == "API_KEY_V2"


def test_credential_blank_value_counts_as_absent():
    store = CredentialStore({"SECRET_APIKEY": "   "})
    assert store.get("SECRET", "apiKey") is None


def test_credential_file_companion(tmp_path):
    secret_file = tmp_path / "secret.txt"
    secret_file.write_text("from-file\n", encoding="utf-8")
    store = CredentialStore({"SECRET_API_KEY_FILE": str(secret_file)})
    assert store.get("SECRET", "api-key") == "from-file"


def test_credential_env_wins_over_file(tmp_path):
    secret_file = tmp_path / "secret.txt"
    secret_file.write_text("from-file", encoding="utf-8")
    store = CredentialStore({"SECRET_APIKEY": "from-env", "SECRET_APIKEY_FILE": str(secret_file)})
    assert store.get("SECRET", "apiKey") == "from-env"


@pytest.mark.asyncio
async def test_first_satisfiable_requirement_wins():
    negotiator = SecurityNegotiator(CredentialStore({"SECRET_APIKEY": "k1", "SECRET_QUERYKEY": "k2"}))
    requirements = [
        SecurityRequirement.of({"bearerAuth": []}),
        SecurityRequirement.of({"apiKey": []}),
        SecurityRequirement.of({"queryKey": []}),
    ]
    request = OutboundRequest()
    async with _client(lambda r: httpx.Response(500)) as client:
        selected = await negotiator.apply(requirements, SCHEMES, request, client)
    assert selected == requirements[1]
    assert request.headers == {"x-api-key": "k1"}
    assert request.params == {}


@pytest.mark.asyncio
async def test_and_group_needs_every_scheme():
    negotiator = SecurityNegotiator(CredentialStore({"SECRET_APIKEY": "k1"}))
    requirements = [SecurityRequirement.of({"apiKey": [], "queryKey": []})]
    request = OutboundRequest()
    async with _client(lambda r: httpx.Response(500)) as client:
        assert await negotiator.apply(requirements, SCHEMES, request, client) is None
    assert request.headers == {}


@pytest.mark.asyncio
async def test_unsatisfiable_requirement_logs_and_proceeds(caplog):
    negotiator = SecurityNegotiator(CredentialStore({}))
    requirements = [SecurityRequirement.of({"apiKey": []}), SecurityRequirement.of({"bearerAuth": []})]
    request = OutboundRequest()
    with caplog.at_level(logging.WARNING, logger="seitrace_mcp.auth"):
        async with _client(lambda r: httpx.Response(500)) as client:
            assert await negotiator.apply(requirements, SCHEMES, request, client, tool_name="x.y") is None
    assert "[apiKey] OR [bearerAuth]" in caplog.text
    assert request.headers == {}


@pytest.mark.asyncio
async def test_apikey_locations_and_basic_auth():
    env = {
        "SECRET_QUERYKEY": "q",
        "SECRET_COOKIEKEY": "c",
        "BASIC_USERNAME_BASICAUTH": "user",
        "BASIC_PASSWORD_BASICAUTH": "pass",
    }
    negotiator = SecurityNegotiator(CredentialStore(env))
    request = OutboundRequest()
    requirement = SecurityRequirement.of({"queryKey": [], "cookieKey": [], "basicAuth": []})
    async with _client(lambda r: httpx.Response(500)) as client:
        await negotiator.apply([requirement], SCHEMES, request, client)
    assert request.params == {"api_key": "q"}
    assert request.cookie_header() == "session=c"
    assert request.headers["Authorization"] == "Basic dXNlcjpwYXNz"


@pytest.mark.asyncio
async def test_oauth_token_cached_until_expiry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"access_token": f"tok-{len(calls)}", "expires_in": 3600})

    clock = FakeClock()
    cache = TokenCache()
    negotiator = SecurityNegotiator(
        CredentialStore({"OAUTH_CLIENT_ID_OAUTH": "id", "OAUTH_CLIENT_SECRET_OAUTH": "secret"}),
        cache,
        clock=clock,
    )
    requirement = [SecurityRequirement.of({"oauth": []})]

    async with _client(handler) as client:
        first = OutboundRequest()
        await negotiator.apply(requirement, SCHEMES, first, client)
        clock.now += 3000
        second = OutboundRequest()
        await negotiator.apply(requirement, SCHEMES, second, client)
        # Past expires_in minus the 60 second safety margin.
        clock.now += 600
        third = OutboundRequest()
        await negotiator.apply(requirement, SCHEMES, third, client)

    assert first.headers["Authorization"] == "Bearer tok-1"
    assert second.headers["Authorization"] == "Bearer tok-1"
    assert third.headers["Authorization"] == "Bearer tok-2"
    assert len(calls) == 2
    assert calls[0].url == TOKEN_URL
    assert b"grant_type=client_credentials" in calls[0].content
    snapshot = default_metrics.snapshot()
    assert snapshot["oauth_tokens_acquired"] == 2
    assert snapshot["oauth_cache_hits"] == 1


@pytest.mark.asyncio
async def test_oauth_acquisition_failure_proceeds_without_token():
    negotiator = SecurityNegotiator(
        CredentialStore({"OAUTH_CLIENT_ID_OAUTH": "id", "OAUTH_CLIENT_SECRET_OAUTH": "secret"}),
        TokenCache(),
    )
    request = OutboundRequest()
    async with _client(lambda r: httpx.Response(401, json={"error": "denied"})) as client:
        await negotiator.apply([SecurityRequirement.of({"oauth": []})], SCHEMES, request, client)
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_preissued_oauth_token_skips_token_endpoint():
    negotiator = SecurityNegotiator(CredentialStore({"OAUTH_TOKEN_OAUTH": "static"}))
    request = OutboundRequest()
    async with _client(lambda r: httpx.Response(500)) as client:
        await negotiator.apply([SecurityRequirement.of({"oauth": []})], SCHEMES, request, client)
    assert request.headers["Authorization"] == "Bearer static"


def test_token_cache_respects_expiry():
    cache = TokenCache()
    cache.put(("oauth", "id"), "tok", expires_at=100.0)
    assert cache.get(("oauth", "id"), now=99.0) == "tok"
    assert cache.get(("oauth", "id"), now=100.0) is None
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_bearer_and_openid_connect_tokens():
    schemes = {**SCHEMES, "oidc": SecurityScheme(kind="openIdConnect")}
    negotiator = SecurityNegotiator(CredentialStore({"BEARER_TOKEN_BEARERAUTH": "b-tok", "OPENID_TOKEN_OIDC": "id-tok"}))
    async with _client(lambda r: httpx.Response(500)) as client:
        bearer = OutboundRequest()
        await negotiator.apply([SecurityRequirement.of({"bearerAuth": []})], schemes, bearer, client)
        oidc = OutboundRequest()
        await negotiator.apply([SecurityRequirement.of({"oidc": []})], schemes, oidc, client)
    assert bearer.headers == {"Authorization": "Bearer b-tok"}
    assert oidc.headers == {"Authorization": "Bearer id-tok"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "flows, expected_url",
    [
        (
            {
                "password": OAuthFlow(token_url="https://auth.example/password"),
                "clientCredentials": OAuthFlow(token_url="https://auth.example/client"),
            },
            "https://auth.example/client",
        ),
        (
            {
                "clientCredentials": OAuthFlow(),
                "password": OAuthFlow(token_url="https://auth.example/password"),
            },
            "https://auth.example/password",
        ),
    ],
)
async def test_oauth_flow_preference(flows, expected_url):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"access_token": "tok"})

    schemes = {"oauth": SecurityScheme(kind="oauth2", flows=flows)}
    negotiator = SecurityNegotiator(
        CredentialStore({"OAUTH_CLIENT_ID_OAUTH": "id", "OAUTH_CLIENT_SECRET_OAUTH": "secret"}), TokenCache()
    )
    request = OutboundRequest()
    async with _client(handler) as client:
        await negotiator.apply([SecurityRequirement.of({"oauth": []})], schemes, request, client)
    assert seen == [expected_url]
    assert request.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_oauth_without_usable_flow_falls_through_to_next_requirement():
    schemes = {
        **SCHEMES,
        "implicitOnly": SecurityScheme(kind="oauth2", flows={"implicit": OAuthFlow(token_url=TOKEN_URL)}),
        "noTokenUrl": SecurityScheme(kind="oauth2", flows={"clientCredentials": OAuthFlow()}),
    }
    env = {
        "OAUTH_CLIENT_ID_IMPLICITONLY": "id",
        "OAUTH_CLIENT_SECRET_IMPLICITONLY": "secret",
        "OAUTH_CLIENT_ID_NOTOKENURL": "id",
        "OAUTH_CLIENT_SECRET_NOTOKENURL": "secret",
        "SECRET_APIKEY": "k1",
    }
    negotiator = SecurityNegotiator(CredentialStore(env))
    requirements = [
        SecurityRequirement.of({"implicitOnly": []}),
        SecurityRequirement.of({"noTokenUrl": []}),
        SecurityRequirement.of({"apiKey": []}),
    ]
    assert not negotiator.is_satisfiable(requirements[0], schemes)
    assert not negotiator.is_satisfiable(requirements[1], schemes)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("token endpoint must not be called")

    request = OutboundRequest()
    async with _client(handler) as client:
        selected = await negotiator.apply(requirements, schemes, request, client)
    assert selected == requirements[2]
    assert request.headers == {"x-api-key": "k1"}


@pytest.mark.asyncio
async def test_concurrent_oauth_acquisition_shares_cache():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"access_token": f"tok-{len(calls)}", "expires_in": 3600})

    cache = TokenCache()
    negotiator = SecurityNegotiator(
        CredentialStore({"OAUTH_CLIENT_ID_OAUTH": "id", "OAUTH_CLIENT_SECRET_OAUTH": "secret"}),
        cache,
        clock=FakeClock(),
    )
    requirement = [SecurityRequirement.of({"oauth": []})]
    requests = [OutboundRequest() for _ in range(2)]

    async with _client(handler) as client:
        await asyncio.gather(*(negotiator.apply(requirement, SCHEMES, request, client) for request in requests))
        acquired = len(calls)
        later = OutboundRequest()
        await negotiator.apply(requirement, SCHEMES, later, client)

    assert 1 <= acquired <= 2
    assert all(request.headers["Authorization"].startswith("Bearer tok-") for request in requests)
    assert len(cache) == 1
    # The cached token is reused; no further acquisition.
    assert len(calls) == acquired
    assert later.headers["Authorization"] in {request.headers["Authorization"] for request in requests}
