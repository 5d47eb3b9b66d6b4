"""JWT token issuers.

Access, refresh and ID tokens are signed with the server's HMAC key using
python-jose. Refresh tokens are self-contained: they carry the access grant
they were issued for, so no refresh token storage is needed.
"""

import logging
import secrets
from collections.abc import Sequence
from typing import Any

from jose import JWTError, jwt
from pydantic import ValidationError

from tokenforge.auth.models import AccessGrant, Client, GrantType, IssuedTokens
from tokenforge.config.settings import Settings
from tokenforge.core.constants import REFRESH_TOKEN_TYP, SUPPORTED_JWT_ALGORITHMS

logger = logging.getLogger(__name__)


def _without_none(claims: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in claims.items() if v is not None}


class JWTTokenIssuer:
    """Mints signed access tokens and, where allowed, refresh tokens."""

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        algorithm: str = "HS256",
        access_token_ttl: int = 3600,
        refresh_token_ttl: int = 86400,
    ):
        self.secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTTokenIssuer":
        return cls(
            secret_key=settings.jwt_secret_key,
            issuer=settings.issuer,
            algorithm=settings.jwt_algorithm,
            access_token_ttl=settings.default_access_token_ttl,
            refresh_token_ttl=settings.default_refresh_token_ttl,
        )

    async def create_access_token(
        self,
        subject_id: str | None,
        client: Client,
        grant_type: GrantType,
        scope: Sequence[str],
        now: int,
        nonce: str | None = None,
        auth_time: int | None = None,
    ) -> IssuedTokens:
        expires_in = client.access_token_validity or self.access_token_ttl

        claims = {
            "iss": self.issuer,
            "sub": subject_id or client.client_id,
            "client_id": client.client_id,
            "scope": " ".join(scope),
            "iat": now,
            "exp": now + expires_in,
            "jti": secrets.token_hex(16),
        }
        access_token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

        refresh_token = None
        if (
            client.is_authorized_for(GrantType.REFRESH_TOKEN)
            and grant_type is not GrantType.CLIENT_CREDENTIALS
        ):
            refresh_token = self._create_refresh_token(
                subject_id, client, grant_type, scope, now, auth_time
            )

        return IssuedTokens(access_token, refresh_token, expires_in)

    def _create_refresh_token(
        self,
        subject_id: str | None,
        client: Client,
        grant_type: GrantType,
        scope: Sequence[str],
        now: int,
        auth_time: int | None,
    ) -> str:
        ttl = client.refresh_token_validity or self.refresh_token_ttl
        claims = _without_none(
            {
                "iss": self.issuer,
                "typ": REFRESH_TOKEN_TYP,
                "sub": subject_id,
                "client_id": client.client_id,
                "grant_type": grant_type.value,
                "scope": list(scope),
                "iat": now,
                "exp": now + ttl,
                "auth_time": auth_time,
                "jti": secrets.token_hex(16),
            }
        )
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)


class JWTRefreshTokenStore:
    """Decodes refresh tokens minted by :class:`JWTTokenIssuer`.

    Expiry and the grantee client are left for the refresh grant to judge so
    it can answer with the precise error.
    """

    def __init__(self, secret_key: str, issuer: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTRefreshTokenStore":
        return cls(
            secret_key=settings.jwt_secret_key,
            issuer=settings.issuer,
            algorithm=settings.jwt_algorithm,
        )

    async def decode_refresh_token(
        self, client_id: str, token: str
    ) -> AccessGrant | None:
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"verify_exp": False, "verify_iat": False, "verify_aud": False},
            )
        except JWTError as e:
            logger.info("Undecodable refresh token from client %s: %s", client_id, e)
            return None

        if claims.get("typ") != REFRESH_TOKEN_TYP:
            return None

        try:
            return AccessGrant(
                subject_id=claims.get("sub"),
                grantee_client_id=claims["client_id"],
                origin_grant_type=claims["grant_type"],
                scope=claims.get("scope", []),
                expiry=claims["exp"],
                auth_time=claims.get("auth_time"),
            )
        except (KeyError, ValidationError):
            logger.info("Refresh token from client %s has invalid claims", client_id)
            return None


class JWTIdTokenIssuer:
    """Mints OpenID Connect ID tokens (OIDC Core 2)."""

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        algorithm: str = "HS256",
        ttl: int = 3600,
    ):
        self.secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTIdTokenIssuer":
        return cls(
            secret_key=settings.jwt_secret_key,
            issuer=settings.issuer,
            algorithm=settings.jwt_algorithm,
            ttl=settings.id_token_ttl,
        )

    def algorithm_for(self, client: Client) -> str:
        """First HMAC algorithm the client registered, else the server default."""
        for alg in client.id_token_algs or []:
            if alg in SUPPORTED_JWT_ALGORITHMS:
                return alg
        return self.algorithm

    async def create_id_token(
        self,
        subject_id: str,
        client: Client,
        auth_time: int | None,
        nonce: str | None,
        scope: Sequence[str],
        grant_type: GrantType,
        access_token: str,
        now: int,
    ) -> str:
        claims = _without_none(
            {
                "iss": self.issuer,
                "sub": subject_id,
                "aud": client.client_id,
                "iat": now,
                "exp": now + self.ttl,
                "auth_time": auth_time,
                "nonce": nonce,
            }
        )
        # at_hash is derived from access_token by jose
        return jwt.encode(
            claims,
            self.secret_key,
            algorithm=self.algorithm_for(client),
            access_token=access_token,
        )
