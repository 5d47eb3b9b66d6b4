"""Client authentication at the token endpoint (RFC 6749 section 2.3).

Supports:
- HTTP Basic (client_secret_basic), failures answered with 401
- Body credentials (client_secret_post and public clients with method none)
- Signed client assertions (client_secret_jwt, RFC 7523)

A request may use exactly one mechanism.
"""

import base64
import binascii
import hmac
import logging
from collections.abc import Awaitable, Callable

from jose import JWTError, jwt

from tokenforge.auth.models import Client, ClientAuthMethod
from tokenforge.auth.params import FormParams, optional_param
from tokenforge.core.constants import (
    CLIENT_ASSERTION_MAX_AGE_DEFAULT,
    JWT_BEARER_ASSERTION_TYPE,
    SUPPORTED_JWT_ALGORITHMS,
)
from tokenforge.core.exceptions import InvalidClient, InvalidClient401, InvalidRequest

logger = logging.getLogger(__name__)

MALFORMED_CREDENTIALS = (
    "Multiple authentication credentials/mechanisms or malformed authentication data"
)

LoadClient = Callable[[str], Awaitable[Client | None]]


def secrets_match(expected: str | None, supplied: str | None) -> bool:
    """Constant-time secret comparison; empty values never match."""
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def parse_basic_auth(header: str, realm: str = "tokenforge") -> tuple[str, str]:
    """Split an ``Authorization: Basic`` header into (client_id, client_secret).

    Raises:
        InvalidClient401: If the header is not valid Basic credentials
    """
    if not header.startswith("Basic "):
        raise InvalidClient401(realm=realm)
    try:
        decoded = base64.b64decode(header[6:].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise InvalidClient401(realm=realm) from None

    client_id, sep, client_secret = decoded.partition(":")
    if not sep:
        raise InvalidClient401(realm=realm)
    return client_id, client_secret


async def authenticate_client(
    params: FormParams,
    authorization_header: str | None,
    now: int,
    load_client: LoadClient,
    *,
    audience: str | None = None,
    realm: str = "tokenforge",
    max_assertion_age: int = CLIENT_ASSERTION_MAX_AGE_DEFAULT,
) -> Client:
    """Resolve and verify the client making a token request.

    Only one mechanism may carry credentials. A body ``client_id`` next to a
    Basic header is accepted when it names the same client (RFC 6749 section
    2.3.1 lets clients repeat it); a different id, or a body secret or
    assertion next to the header, is ``InvalidRequest``.

    Args:
        params: Token request form parameters
        authorization_header: Value of the Authorization header, if any
        now: Current time (POSIX seconds)
        load_client: Client lookup by id
        audience: Token endpoint URL that client assertions must name
        realm: Realm for the Basic challenge of 401 errors
        max_assertion_age: Longest remaining lifetime accepted for assertions

    Returns:
        The authenticated client

    Raises:
        InvalidRequest: Multiple or malformed credentials
        InvalidClient401: Basic authentication failed
        InvalidClient: Body or assertion authentication failed, or no
            credentials were supplied
    """
    try:
        client_id = optional_param(params, "client_id")
        client_secret = optional_param(params, "client_secret")
        assertion_type = optional_param(params, "client_assertion_type")
        assertion = optional_param(params, "client_assertion")
    except InvalidRequest:
        raise InvalidRequest(MALFORMED_CREDENTIALS) from None

    uses_assertion = assertion is not None or assertion_type is not None

    if authorization_header:
        if client_secret is not None or uses_assertion:
            raise InvalidRequest(MALFORMED_CREDENTIALS)
        basic_id, basic_secret = parse_basic_auth(authorization_header, realm)
        if client_id is not None and client_id != basic_id:
            raise InvalidRequest(MALFORMED_CREDENTIALS)

        client = await load_client(basic_id)
        if client is None:
            logger.info("Basic authentication for unknown client")
            raise InvalidClient401(realm=realm)
        if not secrets_match(client.client_secret, basic_secret):
            logger.info("Basic authentication failed for client %s", basic_id)
            raise InvalidClient401(realm=realm)
        return client

    if uses_assertion:
        if client_secret is not None:
            raise InvalidRequest(MALFORMED_CREDENTIALS)
        return await _authenticate_assertion(
            client_id,
            assertion_type,
            assertion,
            now,
            load_client,
            audience=audience,
            max_age=max_assertion_age,
        )

    if client_id is None:
        raise InvalidClient()

    client = await load_client(client_id)
    if client is None:
        logger.info("Post authentication for unknown client")
        raise InvalidClient()

    if client.token_endpoint_auth_method is ClientAuthMethod.NONE and client_secret is None:
        return client

    if not secrets_match(client.client_secret, client_secret):
        logger.info("Post authentication failed for client %s", client_id)
        raise InvalidClient()
    return client


async def _authenticate_assertion(
    client_id: str | None,
    assertion_type: str | None,
    assertion: str | None,
    now: int,
    load_client: LoadClient,
    *,
    audience: str | None,
    max_age: int,
) -> Client:
    """Verify a client_secret_jwt assertion signed with the client's secret."""
    if assertion is None or assertion_type is None:
        raise InvalidRequest(MALFORMED_CREDENTIALS)
    if assertion_type != JWT_BEARER_ASSERTION_TYPE:
        raise InvalidRequest(f"Unsupported client_assertion_type: {assertion_type}")

    try:
        unverified = jwt.get_unverified_claims(assertion)
    except JWTError:
        raise InvalidClient("Malformed client assertion") from None

    issuer = unverified.get("iss")
    if not isinstance(issuer, str) or not issuer or unverified.get("sub") != issuer:
        raise InvalidClient("Client assertion iss and sub must be the client_id")
    if client_id is not None and client_id != issuer:
        raise InvalidClient("Client assertion was issued by another client")

    client = await load_client(issuer)
    if client is None or not client.client_secret:
        raise InvalidClient()
    if client.token_endpoint_auth_method is not ClientAuthMethod.CLIENT_SECRET_JWT:
        raise InvalidClient("Client is not registered for client_secret_jwt")

    algorithms = (
        [client.token_endpoint_auth_alg]
        if client.token_endpoint_auth_alg
        else list(SUPPORTED_JWT_ALGORITHMS)
    )
    try:
        claims = jwt.decode(
            assertion,
            client.client_secret,
            algorithms=algorithms,
            audience=audience,
            options={
                "verify_aud": audience is not None,
                "require_aud": audience is not None,
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )
    except JWTError as e:
        logger.info("Client assertion rejected for %s: %s", issuer, e)
        raise InvalidClient("Invalid client assertion") from None

    expiry = claims.get("exp")
    if not isinstance(expiry, int) or expiry < now:
        raise InvalidClient("Client assertion has expired")
    if expiry - now > max_age:
        raise InvalidClient("Client assertion lifetime is too long")
    return client
