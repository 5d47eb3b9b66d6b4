"""Grant handlers for the token endpoint (RFC 6749 sections 4.1, 4.3, 4.4, 6).

Each handler validates the grant-specific parameters of an already
authenticated request and returns the subject and scope to issue tokens for.
"""

import logging

from tokenforge.auth.interfaces import (
    AuthorizationCodeStore,
    RefreshTokenStore,
    UserAuthenticator,
)
from tokenforge.auth.models import Client, GrantResult, GrantType
from tokenforge.auth.params import FormParams, optional_param, require_param
from tokenforge.auth.scope import parse_scope, validate_scope
from tokenforge.core.exceptions import InvalidGrant

logger = logging.getLogger(__name__)


async def authorization_code_grant(
    params: FormParams,
    client: Client,
    now: int,
    code_store: AuthorizationCodeStore,
    code_ttl: int,
) -> GrantResult:
    """Redeem an authorization code.

    The code is consumed as soon as it is found, so a failed redemption
    (wrong client, expired, bad redirect_uri) still burns it.
    """
    code = require_param(params, "code")
    redirect_uri = optional_param(params, "redirect_uri")

    grant = await code_store.load_and_consume(code)
    if grant is None:
        raise InvalidGrant("Invalid authorization code")

    if grant.client_id != client.client_id:
        logger.warning(
            "Client %s presented a code issued to %s", client.client_id, grant.client_id
        )
        raise InvalidGrant("Code was issue to another client")

    if grant.is_expired(now, code_ttl):
        raise InvalidGrant("Expired code")

    if grant.redirect_uri is not None:
        if redirect_uri is None:
            raise InvalidGrant("Missing redirect_uri")
        if redirect_uri != grant.redirect_uri:
            raise InvalidGrant("Invalid redirect_uri")

    return GrantResult(
        subject_id=grant.subject_id,
        scope=list(grant.scope),
        grant_type=GrantType.AUTHORIZATION_CODE,
        nonce=grant.nonce,
        auth_time=grant.auth_time,
    )


async def client_credentials_grant(params: FormParams, client: Client) -> GrantResult:
    """The client acts on its own behalf; there is no end-user subject."""
    scope = validate_scope(
        parse_scope(optional_param(params, "scope")), client.allowed_scope
    )
    return GrantResult(
        subject_id=None, scope=scope, grant_type=GrantType.CLIENT_CREDENTIALS
    )


async def password_grant(
    params: FormParams,
    client: Client,
    now: int,
    users: UserAuthenticator,
) -> GrantResult:
    username = require_param(params, "username")
    password = require_param(params, "password")

    subject_id = await users.authenticate(username, password)
    if subject_id is None:
        logger.info("Resource owner authentication failed for client %s", client.client_id)
        raise InvalidGrant("authentication failed")

    scope = validate_scope(
        parse_scope(optional_param(params, "scope")), client.allowed_scope
    )
    return GrantResult(
        subject_id=subject_id,
        scope=scope,
        grant_type=GrantType.PASSWORD,
        auth_time=now,
    )


async def refresh_token_grant(
    params: FormParams,
    client: Client,
    now: int,
    refresh_store: RefreshTokenStore,
) -> GrantResult:
    """Exchange a refresh token for a new access token.

    A ``scope`` parameter may narrow, but never widen, the refreshed grant.
    """
    token = require_param(params, "refresh_token")

    grant = await refresh_store.decode_refresh_token(client.client_id, token)
    if grant is None:
        raise InvalidGrant("Invalid refresh token")

    if grant.expiry < now:
        raise InvalidGrant("Refresh token has expired")

    if grant.grantee_client_id != client.client_id:
        logger.warning(
            "Client %s presented a refresh token issued to %s",
            client.client_id,
            grant.grantee_client_id,
        )
        raise InvalidGrant("Refresh token was issued to a different client")

    scope = validate_scope(parse_scope(optional_param(params, "scope")), grant.scope)
    return GrantResult(
        subject_id=grant.subject_id,
        scope=scope,
        grant_type=grant.origin_grant_type,
        auth_time=grant.auth_time,
    )
