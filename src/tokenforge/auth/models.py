"""Domain models for the token endpoint.

Clients, authorization grants (issued codes), access grants (decoded refresh
tokens) and the token response are pydantic models so the same classes serve
the processor and the persistent stores.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, Field, model_validator

from tokenforge.core.constants import BEARER_TOKEN_TYPE


class GrantType(str, Enum):
    """OAuth2 grant types known to the server."""

    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    PASSWORD = "password"
    REFRESH_TOKEN = "refresh_token"
    IMPLICIT = "implicit"


# Wire value -> grant type. Anything missing here is unsupported_grant_type.
GRANT_TYPES: dict[str, GrantType] = {
    "authorization_code": GrantType.AUTHORIZATION_CODE,
    "client_credentials": GrantType.CLIENT_CREDENTIALS,
    "password": GrantType.PASSWORD,
    "refresh_token": GrantType.REFRESH_TOKEN,
    "implicit": GrantType.IMPLICIT,
}

# Grants whose tokens may be accompanied by an ID token
ID_TOKEN_GRANT_TYPES = frozenset({GrantType.AUTHORIZATION_CODE, GrantType.PASSWORD})


class ClientAuthMethod(str, Enum):
    """Registered token endpoint authentication method of a client."""

    NONE = "none"
    CLIENT_SECRET_BASIC = "client_secret_basic"
    CLIENT_SECRET_POST = "client_secret_post"
    CLIENT_SECRET_JWT = "client_secret_jwt"
    PRIVATE_KEY_JWT = "private_key_jwt"


class Client(BaseModel):
    """OAuth2 client registration."""

    client_id: str = Field(min_length=1)
    client_secret: str | None = None
    authorized_grant_types: list[GrantType] = Field(default_factory=list)
    redirect_uris: list[str] = Field(default_factory=list)
    access_token_validity: int | None = Field(default=None, ge=1)
    refresh_token_validity: int | None = Field(default=None, ge=1)
    allowed_scope: list[str] = Field(default_factory=list)
    autoapprove: bool = False
    token_endpoint_auth_method: ClientAuthMethod = ClientAuthMethod.CLIENT_SECRET_BASIC
    token_endpoint_auth_alg: str | None = None
    keys_uri: str | None = None
    id_token_algs: list[str] | None = None
    user_info_algs: list[str] | None = None
    request_obj_algs: list[str] | None = None
    sector_identifier: str = ""

    @model_validator(mode="after")
    def check_secret(self) -> "Client":
        if self.token_endpoint_auth_method is ClientAuthMethod.PRIVATE_KEY_JWT:
            # Keys are never fetched from keys_uri
            msg = "private_key_jwt client authentication is not supported"
            raise ValueError(msg)
        if (
            self.token_endpoint_auth_method is not ClientAuthMethod.NONE
            and not self.client_secret
        ):
            msg = f"client_secret is required for {self.token_endpoint_auth_method.value}"
            raise ValueError(msg)
        return self

    def is_authorized_for(self, grant_type: GrantType) -> bool:
        return grant_type in self.authorized_grant_types


class AuthorizationGrant(BaseModel):
    """Authorization code issued by the authorization endpoint."""

    code: str
    subject_id: str
    client_id: str
    issued_at: int
    scope: list[str] = Field(default_factory=list)
    nonce: str | None = None
    redirect_uri: str | None = None
    auth_time: int

    def is_expired(self, now: int, ttl: int) -> bool:
        return self.issued_at + ttl < now


class AccessGrant(BaseModel):
    """Grant carried by a refresh token."""

    subject_id: str | None = None
    grantee_client_id: str
    origin_grant_type: GrantType
    scope: list[str] = Field(default_factory=list)
    expiry: int
    auth_time: int | None = None


class AccessTokenResponse(BaseModel):
    """Successful token endpoint response (RFC 6749 section 5.1)."""

    access_token: str
    token_type: str = BEARER_TOKEN_TYPE
    expires_in: int
    scope: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class GrantResult:
    """What a grant handler hands back to the processor."""

    subject_id: str | None
    scope: list[str]
    grant_type: GrantType
    nonce: str | None = None
    auth_time: int | None = None


class IssuedTokens(NamedTuple):
    """Result of the token issuer."""

    access_token: str
    refresh_token: str | None
    expires_in: int
