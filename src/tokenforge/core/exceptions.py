"""Custom exceptions for the tokenforge token endpoint."""

from typing import Any


# ========================================
# Base Exceptions
# ========================================


class TokenforgeError(Exception):
    """Base exception for all tokenforge errors."""


# ========================================
# Protocol Exceptions (RFC 6749 section 5.2)
# ========================================


class OAuthError(TokenforgeError):
    """Protocol error returned to the client as ``{error, error_description}``.

    Subclasses fix the RFC error code and HTTP status. The message, when
    present, becomes ``error_description``.
    """

    error: str = "invalid_request"
    status_code: int = 400

    def __init__(self, message: str | None = None):
        self.message = message
        super().__init__(message or self.error)

    @property
    def headers(self) -> dict[str, str]:
        """Extra response headers for this error."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.message:
            body["error_description"] = self.message
        return body

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OAuthError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def __repr__(self) -> str:
        if self.message is None:
            return f"{type(self).__name__}()"
        return f"{type(self).__name__}({self.message!r})"


class InvalidRequest(OAuthError):
    """Malformed, missing or duplicated request parameter."""

    error = "invalid_request"


class InvalidGrant(OAuthError):
    """The presented grant is invalid, expired, mismatched or unusable."""

    error = "invalid_grant"


class InvalidScope(OAuthError):
    """Requested scope exceeds what the client or grant allows."""

    error = "invalid_scope"


class UnauthorizedClient(OAuthError):
    """Client is not permitted to use the requested grant type."""

    error = "unauthorized_client"


class UnsupportedGrantType(OAuthError):
    """The grant_type value is not a recognized grant."""

    error = "unsupported_grant_type"


class InvalidClient(OAuthError):
    """Client authentication failed via body parameters or was absent."""

    error = "invalid_client"


class InvalidClient401(InvalidClient):
    """Client authentication failed via HTTP Basic.

    Answered with 401 and a ``WWW-Authenticate: Basic`` challenge.
    """

    status_code = 401

    def __init__(self, message: str | None = None, realm: str = "tokenforge"):
        self.realm = realm
        super().__init__(message)

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": f'Basic realm="{self.realm}"'}


# ========================================
# Infrastructure Exceptions
# ========================================


class StorageError(TokenforgeError):
    """A store could not complete an operation (never a protocol error)."""
