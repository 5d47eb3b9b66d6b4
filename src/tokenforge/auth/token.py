"""Token request processing (RFC 6749 section 3.2, OpenID Connect Core 3.1.3).

The processor takes a request whose client has already been authenticated,
validates the grant type, runs the matching grant handler and asks the token
issuers for the response. Checks run in a fixed order and the first failure
ends the request; nothing is issued for a failed request.
"""

import logging

from tokenforge.auth.grants import (
    authorization_code_grant,
    client_credentials_grant,
    password_grant,
    refresh_token_grant,
)
from tokenforge.auth.interfaces import (
    AuthorizationCodeStore,
    IdTokenIssuer,
    RefreshTokenStore,
    TokenIssuer,
    UserAuthenticator,
)
from tokenforge.auth.models import (
    GRANT_TYPES,
    ID_TOKEN_GRANT_TYPES,
    AccessTokenResponse,
    Client,
    GrantResult,
    GrantType,
)
from tokenforge.auth.params import FormParams, require_param
from tokenforge.core.constants import AUTHORIZATION_CODE_TTL_DEFAULT, OPENID_SCOPE
from tokenforge.core.exceptions import (
    InvalidGrant,
    UnauthorizedClient,
    UnsupportedGrantType,
)

logger = logging.getLogger(__name__)


def parse_grant_type(params: FormParams) -> GrantType:
    """Read ``grant_type`` and map it to a grant the token endpoint serves.

    Raises:
        InvalidRequest: Missing, empty or duplicate grant_type
        UnsupportedGrantType: Unknown grant_type value
        InvalidGrant: The implicit grant, which never reaches this endpoint
    """
    value = require_param(params, "grant_type")
    grant_type = GRANT_TYPES.get(value)
    if grant_type is None:
        raise UnsupportedGrantType()
    if grant_type is GrantType.IMPLICIT:
        raise InvalidGrant("Implicit grant is not supported by the token endpoint")
    return grant_type


def issues_id_token(result: GrantResult) -> bool:
    """ID tokens need an end user, the openid scope and a user-facing grant."""
    return (
        result.subject_id is not None
        and OPENID_SCOPE in result.scope
        and result.grant_type in ID_TOKEN_GRANT_TYPES
    )


class TokenRequestProcessor:
    """Token endpoint core with its collaborators injected."""

    def __init__(
        self,
        *,
        code_store: AuthorizationCodeStore,
        users: UserAuthenticator,
        refresh_store: RefreshTokenStore,
        token_issuer: TokenIssuer,
        id_token_issuer: IdTokenIssuer,
        code_ttl: int = AUTHORIZATION_CODE_TTL_DEFAULT,
    ) -> None:
        self.code_store = code_store
        self.users = users
        self.refresh_store = refresh_store
        self.token_issuer = token_issuer
        self.id_token_issuer = id_token_issuer
        self.code_ttl = code_ttl

    async def process(
        self, params: FormParams, client: Client, now: int
    ) -> AccessTokenResponse:
        """Validate a token request and issue tokens.

        Args:
            params: Token request form parameters
            client: The authenticated client
            now: Current time (POSIX seconds)

        Returns:
            The access token response

        Raises:
            OAuthError: The first protocol check that failed
        """
        grant_type = parse_grant_type(params)

        if not client.is_authorized_for(grant_type):
            raise UnauthorizedClient(
                f"Client is not authorized to use grant: {grant_type.value}"
            )

        result = await self._run_grant(grant_type, params, client, now)

        tokens = await self.token_issuer.create_access_token(
            result.subject_id,
            client,
            result.grant_type,
            result.scope,
            now,
            nonce=result.nonce,
            auth_time=result.auth_time,
        )

        id_token = None
        if issues_id_token(result):
            id_token = await self.id_token_issuer.create_id_token(
                result.subject_id,
                client,
                result.auth_time,
                result.nonce,
                result.scope,
                result.grant_type,
                tokens.access_token,
                now,
            )

        logger.info(
            "Issued %s token for client %s%s",
            grant_type.value,
            client.client_id,
            " with id_token" if id_token else "",
        )

        return AccessTokenResponse(
            access_token=tokens.access_token,
            expires_in=tokens.expires_in,
            refresh_token=tokens.refresh_token,
            id_token=id_token,
        )

    async def _run_grant(
        self, grant_type: GrantType, params: FormParams, client: Client, now: int
    ) -> GrantResult:
        if grant_type is GrantType.AUTHORIZATION_CODE:
            return await authorization_code_grant(
                params, client, now, self.code_store, self.code_ttl
            )
        if grant_type is GrantType.CLIENT_CREDENTIALS:
            return await client_credentials_grant(params, client)
        if grant_type is GrantType.PASSWORD:
            return await password_grant(params, client, now, self.users)
        if grant_type is GrantType.REFRESH_TOKEN:
            return await refresh_token_grant(params, client, now, self.refresh_store)
        # parse_grant_type already rejected the implicit grant
        raise UnsupportedGrantType()
