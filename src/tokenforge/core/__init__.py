"""Core functionality for the tokenforge token endpoint."""

from .constants import (
    AUTHORIZATION_CODE_TTL_DEFAULT,
    BEARER_TOKEN_TYPE,
    JWT_BEARER_ASSERTION_TYPE,
    OPENID_SCOPE,
)
from .decorators import track_request
from .exceptions import (
    InvalidClient,
    InvalidClient401,
    InvalidGrant,
    InvalidRequest,
    InvalidScope,
    OAuthError,
    StorageError,
    TokenforgeError,
    UnauthorizedClient,
    UnsupportedGrantType,
)
from .logging import configure_logging, logger

__all__ = [
    # Core
    "configure_logging",
    "logger",
    "track_request",
    # Exceptions
    "InvalidClient",
    "InvalidClient401",
    "InvalidGrant",
    "InvalidRequest",
    "InvalidScope",
    "OAuthError",
    "StorageError",
    "TokenforgeError",
    "UnauthorizedClient",
    "UnsupportedGrantType",
    # Constants
    "AUTHORIZATION_CODE_TTL_DEFAULT",
    "BEARER_TOKEN_TYPE",
    "JWT_BEARER_ASSERTION_TYPE",
    "OPENID_SCOPE",
]
