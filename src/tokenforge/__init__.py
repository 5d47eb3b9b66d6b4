"""
tokenforge - OAuth2 / OpenID Connect token endpoint core.

This package validates token requests, authenticates clients, dispatches to
the authorization code, client credentials, resource owner password and
refresh token grants, and issues access and ID tokens.
"""

__version__ = "0.1.0"

from tokenforge.config.settings import Settings, get_settings, reset_settings
from tokenforge.core.exceptions import OAuthError, StorageError, TokenforgeError

__all__ = [
    "OAuthError",
    "Settings",
    "StorageError",
    "TokenforgeError",
    "get_settings",
    "reset_settings",
]
