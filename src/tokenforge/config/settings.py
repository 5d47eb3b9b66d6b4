"""Settings for the token endpoint, read from TOKENFORGE_* environment variables.

Issuer, signing key, lifetimes and storage location all live here; the JWT
issuers and TokenService are built from one Settings instance.
"""

import logging
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenforge.core.constants import (
    ACCESS_TOKEN_TTL_DEFAULT,
    AUTHORIZATION_CODE_TTL_DEFAULT,
    CLIENT_ASSERTION_MAX_AGE_DEFAULT,
    ID_TOKEN_TTL_DEFAULT,
    REFRESH_TOKEN_TTL_DEFAULT,
    SUPPORTED_JWT_ALGORITHMS,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration management with Pydantic validation.

    All settings are loaded from environment variables prefixed with
    ``TOKENFORGE_`` (or a ``.env`` file) with automatic type conversion and
    validation.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKENFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # ========================================
    # Debug Settings
    # ========================================
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    # ========================================
    # Server Settings
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host address",
    )

    port: int = Field(
        default=8060,
        ge=1024,
        le=65535,
        description="Server port number",
    )

    # ========================================
    # Issuer Settings
    # ========================================
    issuer: str = Field(
        default="http://localhost:8060",
        description="Issuer URL placed in the iss claim of every token",
    )

    token_endpoint: str | None = Field(
        default=None,
        description="Token endpoint URL, the audience of client assertions",
    )

    basic_auth_realm: str = Field(
        default="tokenforge",
        description="Realm announced in the WWW-Authenticate Basic challenge",
    )

    # ========================================
    # Signing Settings
    # ========================================
    jwt_secret_key: str = Field(
        default="change-me-in-production",
        description="HMAC key for signing access, refresh and ID tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HS256, HS384 or HS512)",
    )

    # ========================================
    # Lifetimes
    # ========================================
    authorization_code_ttl: int = Field(
        default=AUTHORIZATION_CODE_TTL_DEFAULT,
        ge=1,
        le=3600,
        description="Seconds an authorization code stays redeemable after issue",
    )

    default_access_token_ttl: int = Field(
        default=ACCESS_TOKEN_TTL_DEFAULT,
        ge=1,
        description="Access token lifetime for clients without their own setting",
    )

    default_refresh_token_ttl: int = Field(
        default=REFRESH_TOKEN_TTL_DEFAULT,
        ge=1,
        description="Refresh token lifetime for clients without their own setting",
    )

    id_token_ttl: int = Field(
        default=ID_TOKEN_TTL_DEFAULT,
        ge=1,
        description="ID token lifetime in seconds",
    )

    client_assertion_max_age: int = Field(
        default=CLIENT_ASSERTION_MAX_AGE_DEFAULT,
        ge=1,
        description="Longest remaining lifetime accepted for a client assertion",
    )

    # ========================================
    # Storage Settings
    # ========================================
    storage_dir: str | None = Field(
        default=None,
        description="Directory for file-based storage (in-memory when unset)",
    )

    # ========================================
    # Validators
    # ========================================
    @field_validator("jwt_algorithm")
    @classmethod
    def check_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms are supported for the shared signing key."""
        v = v.upper()
        if v not in SUPPORTED_JWT_ALGORITHMS:
            msg = f"Unsupported JWT algorithm: {v}"
            raise ValueError(msg)
        return v

    @field_validator("issuer")
    @classmethod
    def strip_issuer(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("token_endpoint", mode="before")
    @classmethod
    def set_token_endpoint(cls, v: str | None, info: Any) -> str:
        """Default the token endpoint to <issuer>/token."""
        if v:
            return v
        issuer = info.data.get("issuer", "http://localhost:8060")
        return f"{issuer}/token"

    # ========================================
    # Helper Methods
    # ========================================
    def to_dict(self) -> dict[str, Any]:
        """Export settings as a dictionary (safe version without secrets)."""
        return {
            "debug": self.debug,
            "host": self.host,
            "port": self.port,
            "issuer": self.issuer,
            "token_endpoint": self.token_endpoint,
            "jwt_algorithm": self.jwt_algorithm,
            "authorization_code_ttl": self.authorization_code_ttl,
            "default_access_token_ttl": self.default_access_token_ttl,
            "default_refresh_token_ttl": self.default_refresh_token_ttl,
            "id_token_ttl": self.id_token_ttl,
            "client_assertion_max_age": self.client_assertion_max_age,
            "storage_dir": self.storage_dir,
        }


# Singleton pattern with proper typing
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.info("Settings initialized from environment")
        logger.debug("Issuer: %s", _settings_instance.issuer)
        if _settings_instance.jwt_secret_key == "change-me-in-production":
            logger.warning(
                "TOKENFORGE_JWT_SECRET_KEY is not set. Tokens are signed with the default key.",
            )
    return _settings_instance


def reset_settings() -> None:
    """Reset settings instance (useful for testing)."""
    global _settings_instance
    _settings_instance = None
