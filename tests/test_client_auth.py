"""
Client Authentication Tests (RFC 6749 section 2.3, RFC 7523).

Tests:
1. HTTP Basic authentication
2. Body (client_secret_post) authentication
3. Mixed or duplicated credentials
4. Public clients
5. client_secret_jwt assertions
"""

import base64

import pytest
from jose import jwt
from pydantic import ValidationError

from oauth_test_helpers import ADMIN_CLIENT, APP_CLIENT, JWT_CLIENT, NOW, PUBLIC_CLIENT
from tokenforge.auth.client_auth import (
    MALFORMED_CREDENTIALS,
    authenticate_client,
    parse_basic_auth,
    secrets_match,
)
from tokenforge.auth.models import Client, ClientAuthMethod
from tokenforge.core.constants import JWT_BEARER_ASSERTION_TYPE
from tokenforge.core.exceptions import InvalidClient, InvalidClient401, InvalidRequest

TOKEN_ENDPOINT = "https://auth.example.com/token"


def basic(client_id: str, secret: str) -> str:
    return "Basic " + base64.b64encode(f"{client_id}:{secret}".encode()).decode()


def form(**params: str) -> dict[str, list[str]]:
    return {k: [v] for k, v in params.items()}


def assertion_for(client_id=JWT_CLIENT.client_id, secret=JWT_CLIENT.client_secret, **claims):
    values = {"iss": client_id, "sub": client_id, "aud": TOKEN_ENDPOINT, "exp": NOW + 60}
    values.update(claims)
    return jwt.encode(values, secret, algorithm="HS256")


def assertion_form(assertion: str, **params: str) -> dict[str, list[str]]:
    return form(
        client_assertion_type=JWT_BEARER_ASSERTION_TYPE,
        client_assertion=assertion,
        **params,
    )


@pytest.fixture
def authenticate(client_store):
    """Run authenticate_client against the fake client store."""

    async def _authenticate(params, header=None):
        return await authenticate_client(
            params,
            header,
            NOW,
            client_store.get_client,
            audience=TOKEN_ENDPOINT,
            realm="test-realm",
        )

    return _authenticate


class TestSecretComparison:
    def test_equal_secrets_match(self):
        assert secrets_match("appsecret", "appsecret")

    def test_different_secrets_do_not_match(self):
        assert not secrets_match("appsecret", "appsecreT")

    def test_empty_values_never_match(self):
        assert not secrets_match("", "")
        assert not secrets_match(None, None)
        assert not secrets_match("appsecret", "")


class TestBasicAuthentication:
    """Test 1: HTTP Basic authentication."""

    def test_parse_header(self):
        assert parse_basic_auth(basic("app", "app:secret")) == ("app", "app:secret")

    def test_parse_header_without_colon(self):
        header = "Basic " + base64.b64encode(b"appsecret").decode()
        with pytest.raises(InvalidClient401):
            parse_basic_auth(header)

    def test_parse_header_not_base64(self):
        with pytest.raises(InvalidClient401):
            parse_basic_auth("Basic !!not-base64!!")

    def test_parse_other_scheme(self):
        with pytest.raises(InvalidClient401):
            parse_basic_auth("Bearer sometoken")

    @pytest.mark.asyncio
    async def test_valid_credentials(self, authenticate):
        client = await authenticate({}, basic("app", "appsecret"))
        assert client == APP_CLIENT

    @pytest.mark.asyncio
    async def test_matching_body_client_id(self, authenticate):
        client = await authenticate(form(client_id="app"), basic("app", "appsecret"))
        assert client == APP_CLIENT

    @pytest.mark.asyncio
    async def test_wrong_secret(self, authenticate):
        with pytest.raises(InvalidClient401) as exc_info:
            await authenticate({}, basic("app", "wrongsecret"))

        error = exc_info.value
        assert error.status_code == 401
        assert error.to_dict() == {"error": "invalid_client"}
        assert error.headers == {"WWW-Authenticate": 'Basic realm="test-realm"'}

    @pytest.mark.asyncio
    async def test_empty_secret(self, authenticate):
        with pytest.raises(InvalidClient401):
            await authenticate({}, basic("app", ""))

    @pytest.mark.asyncio
    async def test_unknown_client(self, authenticate):
        with pytest.raises(InvalidClient401):
            await authenticate({}, basic("nobody", "secret"))

    @pytest.mark.asyncio
    async def test_malformed_header(self, authenticate):
        with pytest.raises(InvalidClient401):
            await authenticate({}, "Basic %%%")


class TestPostAuthentication:
    """Test 2: Body (client_secret_post) authentication."""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, authenticate):
        client = await authenticate(form(client_id="admin", client_secret="adminsecret"))
        assert client == ADMIN_CLIENT

    @pytest.mark.asyncio
    async def test_wrong_secret(self, authenticate):
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(form(client_id="app", client_secret="wrong"))

        error = exc_info.value
        assert type(error) is InvalidClient
        assert error.status_code == 400
        assert error.headers == {}

    @pytest.mark.asyncio
    async def test_unknown_client(self, authenticate):
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(form(client_id="nobody", client_secret="secret"))
        assert type(exc_info.value) is InvalidClient

    @pytest.mark.asyncio
    async def test_client_id_without_secret(self, authenticate):
        """A confidential client must present its secret."""
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(form(client_id="app"))
        assert type(exc_info.value) is InvalidClient

    @pytest.mark.asyncio
    async def test_no_credentials(self, authenticate, client_store):
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate({})

        assert exc_info.value == InvalidClient()
        assert client_store.lookups == []


class TestMixedCredentials:
    """Test 3: Only one authentication mechanism per request."""

    @pytest.mark.asyncio
    async def test_basic_and_body_secret(self, authenticate):
        with pytest.raises(InvalidRequest) as exc_info:
            await authenticate(
                form(client_id="app", client_secret="appsecret"),
                basic("app", "appsecret"),
            )
        assert exc_info.value == InvalidRequest(MALFORMED_CREDENTIALS)

    @pytest.mark.asyncio
    async def test_basic_and_different_body_client_id(self, authenticate):
        with pytest.raises(InvalidRequest):
            await authenticate(form(client_id="admin"), basic("app", "appsecret"))

    @pytest.mark.asyncio
    async def test_basic_and_assertion(self, authenticate):
        with pytest.raises(InvalidRequest):
            await authenticate(assertion_form(assertion_for()), basic("app", "appsecret"))

    @pytest.mark.asyncio
    async def test_secret_and_assertion(self, authenticate):
        params = assertion_form(assertion_for(), client_secret=JWT_CLIENT.client_secret)
        with pytest.raises(InvalidRequest):
            await authenticate(params)

    @pytest.mark.asyncio
    async def test_duplicate_client_id(self, authenticate):
        params = {"client_id": ["app", "app"], "client_secret": ["appsecret"]}
        with pytest.raises(InvalidRequest) as exc_info:
            await authenticate(params)
        assert exc_info.value == InvalidRequest(MALFORMED_CREDENTIALS)

    @pytest.mark.asyncio
    async def test_duplicate_client_secret(self, authenticate):
        params = {"client_id": ["app"], "client_secret": ["appsecret", "appsecret"]}
        with pytest.raises(InvalidRequest):
            await authenticate(params)


class TestPublicClient:
    """Test 4: Clients registered with auth method none."""

    @pytest.mark.asyncio
    async def test_client_id_alone(self, authenticate):
        client = await authenticate(form(client_id="public"))
        assert client == PUBLIC_CLIENT

    @pytest.mark.asyncio
    async def test_public_client_with_secret(self, authenticate):
        with pytest.raises(InvalidClient):
            await authenticate(form(client_id="public", client_secret="guess"))


class TestClientAssertion:
    """Test 5: client_secret_jwt assertions."""

    @pytest.mark.asyncio
    async def test_valid_assertion(self, authenticate):
        client = await authenticate(assertion_form(assertion_for()))
        assert client == JWT_CLIENT

    @pytest.mark.asyncio
    async def test_valid_assertion_with_client_id(self, authenticate):
        params = assertion_form(assertion_for(), client_id="jwtclient")
        assert await authenticate(params) == JWT_CLIENT

    @pytest.mark.asyncio
    async def test_client_id_differs_from_issuer(self, authenticate):
        params = assertion_form(assertion_for(), client_id="app")
        with pytest.raises(InvalidClient):
            await authenticate(params)

    @pytest.mark.asyncio
    async def test_wrong_signing_secret(self, authenticate):
        params = assertion_form(assertion_for(secret="another-secret-entirely"))
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(params)
        assert exc_info.value == InvalidClient("Invalid client assertion")

    @pytest.mark.asyncio
    async def test_wrong_audience(self, authenticate):
        params = assertion_form(assertion_for(aud="https://elsewhere.example.com/token"))
        with pytest.raises(InvalidClient):
            await authenticate(params)

    @pytest.mark.asyncio
    async def test_expired_assertion(self, authenticate):
        params = assertion_form(assertion_for(exp=NOW - 1))
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(params)
        assert exc_info.value == InvalidClient("Client assertion has expired")

    @pytest.mark.asyncio
    async def test_long_lived_assertion(self, authenticate):
        params = assertion_form(assertion_for(exp=NOW + 3600))
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(params)
        assert exc_info.value == InvalidClient("Client assertion lifetime is too long")

    @pytest.mark.asyncio
    async def test_sub_differs_from_iss(self, authenticate):
        params = assertion_form(assertion_for(sub="someone"))
        with pytest.raises(InvalidClient):
            await authenticate(params)

    @pytest.mark.asyncio
    async def test_client_not_registered_for_assertions(self, authenticate):
        params = assertion_form(assertion_for("app", APP_CLIENT.client_secret))
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(params)
        assert exc_info.value == InvalidClient(
            "Client is not registered for client_secret_jwt"
        )

    @pytest.mark.asyncio
    async def test_unsupported_assertion_type(self, authenticate):
        params = form(client_assertion_type="urn:example:saml", client_assertion="x")
        with pytest.raises(InvalidRequest):
            await authenticate(params)

    @pytest.mark.asyncio
    async def test_assertion_without_type(self, authenticate):
        with pytest.raises(InvalidRequest):
            await authenticate(form(client_assertion=assertion_for()))

    @pytest.mark.asyncio
    async def test_garbage_assertion(self, authenticate):
        with pytest.raises(InvalidClient) as exc_info:
            await authenticate(assertion_form("not.a.jwt"))
        assert exc_info.value == InvalidClient("Malformed client assertion")


class TestClientRegistration:
    """Registration rejects methods no request could ever satisfy."""

    def test_private_key_jwt_rejected(self):
        with pytest.raises(ValidationError, match="private_key_jwt"):
            Client(
                client_id="keys",
                token_endpoint_auth_method=ClientAuthMethod.PRIVATE_KEY_JWT,
            )

    def test_secret_required_for_secret_methods(self):
        with pytest.raises(ValidationError, match="client_secret is required"):
            Client(
                client_id="nosecret",
                token_endpoint_auth_method=ClientAuthMethod.CLIENT_SECRET_POST,
            )

    def test_public_client_needs_no_secret(self):
        assert Client(client_id="pub", token_endpoint_auth_method=ClientAuthMethod.NONE)
