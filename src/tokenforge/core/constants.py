"""Protocol constants for the tokenforge token endpoint.

This module contains the fixed protocol values and default lifetimes used
across the codebase.
"""

# ========================================
# Protocol Values
# ========================================

BEARER_TOKEN_TYPE = "Bearer"  # token_type in every access token response
OPENID_SCOPE = "openid"  # scope that triggers ID token issuance
JWT_BEARER_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
REFRESH_TOKEN_TYP = "refresh"  # typ claim of signed refresh tokens
SUPPORTED_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")  # shared-secret signing only

# ========================================
# Lifetimes (seconds)
# ========================================

AUTHORIZATION_CODE_TTL_DEFAULT = 300  # 5 minutes
ACCESS_TOKEN_TTL_DEFAULT = 3600  # 1 hour
REFRESH_TOKEN_TTL_DEFAULT = 86400  # 1 day
ID_TOKEN_TTL_DEFAULT = 3600
CLIENT_ASSERTION_MAX_AGE_DEFAULT = 600  # longest exp - now accepted for assertions

# ========================================
# HTTP
# ========================================

HTTP_SERVER_ERROR = 500
NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}
