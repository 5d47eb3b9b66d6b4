"""Token service: client authentication plus token request processing.

Bundles the stores, issuers and settings a deployment needs so the HTTP layer
only has to hand over form parameters and the Authorization header.
"""

import logging
import time
from collections.abc import Callable

from tokenforge.auth.client_auth import authenticate_client
from tokenforge.auth.interfaces import ClientStore
from tokenforge.auth.issuers import JWTIdTokenIssuer, JWTRefreshTokenStore, JWTTokenIssuer
from tokenforge.auth.models import AccessTokenResponse
from tokenforge.auth.params import FormParams
from tokenforge.auth.storage import (
    FileOAuthStorage,
    InMemoryAuthorizationCodeStore,
    InMemoryClientStore,
    InMemoryUserStore,
)
from tokenforge.auth.token import TokenRequestProcessor
from tokenforge.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class TokenService:
    """Authenticates the client, then runs the token request processor."""

    def __init__(
        self,
        clients: ClientStore,
        processor: TokenRequestProcessor,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize token service.

        Args:
            clients: Client store used for authentication
            processor: Token request processor with its collaborators
            settings: Settings supplying the assertion audience and realm
            clock: Source of the current POSIX time
        """
        self.clients = clients
        self.processor = processor
        self.settings = settings
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TokenService":
        """Wire the reference stores and JWT issuers.

        File storage is used when ``storage_dir`` is set, in-memory stores
        otherwise.
        """
        settings = settings or get_settings()

        if settings.storage_dir:
            storage = FileOAuthStorage(settings.storage_dir)
            clients, codes, users = storage, storage, storage
        else:
            clients = InMemoryClientStore()
            codes = InMemoryAuthorizationCodeStore()
            users = InMemoryUserStore()

        processor = TokenRequestProcessor(
            code_store=codes,
            users=users,
            refresh_store=JWTRefreshTokenStore.from_settings(settings),
            token_issuer=JWTTokenIssuer.from_settings(settings),
            id_token_issuer=JWTIdTokenIssuer.from_settings(settings),
            code_ttl=settings.authorization_code_ttl,
        )
        logger.info("Token service configured for issuer %s", settings.issuer)
        return cls(clients, processor, settings)

    async def handle(
        self,
        params: FormParams,
        authorization_header: str | None,
        now: int | None = None,
    ) -> AccessTokenResponse:
        """Authenticate the client and process its token request.

        Raises:
            OAuthError: Client authentication or token request failure
        """
        now = int(self.clock()) if now is None else now
        client = await authenticate_client(
            params,
            authorization_header,
            now,
            self.clients.get_client,
            audience=self.settings.token_endpoint,
            realm=self.settings.basic_auth_realm,
            max_assertion_age=self.settings.client_assertion_max_age,
        )
        return await self.processor.process(params, client, now)
