"""Collaborator protocols consumed by the token endpoint.

Storage, user authentication and token minting are injected; the processor
and the client authenticator only depend on these protocols.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from tokenforge.auth.models import (
    AccessGrant,
    AuthorizationGrant,
    Client,
    GrantType,
    IssuedTokens,
)


@runtime_checkable
class ClientStore(Protocol):
    async def get_client(self, client_id: str) -> Client | None: ...


@runtime_checkable
class AuthorizationCodeStore(Protocol):
    async def load_and_consume(self, code: str) -> AuthorizationGrant | None:
        """Return the grant for ``code`` and remove it in one atomic step.

        A second call with the same code must return None.
        """
        ...


@runtime_checkable
class UserAuthenticator(Protocol):
    async def authenticate(self, username: str, password: str) -> str | None:
        """Return the subject id of the user, or None if authentication fails."""
        ...


@runtime_checkable
class RefreshTokenStore(Protocol):
    async def decode_refresh_token(
        self, client_id: str, token: str
    ) -> AccessGrant | None:
        """Decode a refresh token without judging expiry or ownership."""
        ...


@runtime_checkable
class TokenIssuer(Protocol):
    async def create_access_token(
        self,
        subject_id: str | None,
        client: Client,
        grant_type: GrantType,
        scope: Sequence[str],
        now: int,
        nonce: str | None = None,
        auth_time: int | None = None,
    ) -> IssuedTokens: ...


@runtime_checkable
class IdTokenIssuer(Protocol):
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
    ) -> str: ...
