"""OAuth2 / OpenID Connect token endpoint.

This module provides client authentication, grant handling and token
issuance for the token endpoint, with in-memory and file-based reference
stores and JWT issuers.
"""

from tokenforge.auth.client_auth import authenticate_client
from tokenforge.auth.models import (
    AccessGrant,
    AccessTokenResponse,
    AuthorizationGrant,
    Client,
    ClientAuthMethod,
    GrantType,
)
from tokenforge.auth.service import TokenService
from tokenforge.auth.token import TokenRequestProcessor

__all__ = [
    "AccessGrant",
    "AccessTokenResponse",
    "AuthorizationGrant",
    "Client",
    "ClientAuthMethod",
    "GrantType",
    "TokenRequestProcessor",
    "TokenService",
    "authenticate_client",
]
