"""
Token endpoint for Starlette.

Implements the HTTP side of RFC 6749 section 3.2:
- form-encoded POST, duplicate parameters preserved
- JSON success and error bodies with Cache-Control: no-store
- 401 with a Basic challenge for failed HTTP Basic client authentication
"""

import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from tokenforge.auth.params import from_multi_items
from tokenforge.auth.service import TokenService
from tokenforge.core.constants import HTTP_SERVER_ERROR, NO_STORE_HEADERS
from tokenforge.core.decorators import track_request
from tokenforge.core.exceptions import InvalidRequest, OAuthError

logger = logging.getLogger(__name__)


def error_response(error: OAuthError) -> JSONResponse:
    return JSONResponse(
        error.to_dict(),
        status_code=error.status_code,
        headers={**NO_STORE_HEADERS, **error.headers},
    )


@track_request("token")
async def token_endpoint(request: Request, service: TokenService) -> JSONResponse:
    """Token endpoint - exchanges a grant for an access token."""
    try:
        form = await request.form()
        items = form.multi_items()
        if any(not isinstance(value, str) for _, value in items):
            raise InvalidRequest("File uploads are not accepted")
        params = from_multi_items(items)

        response = await service.handle(params, request.headers.get("Authorization"))
        return JSONResponse(response.to_dict(), headers=NO_STORE_HEADERS)

    except OAuthError as e:
        logger.info("Token request rejected: %s %s", e.error, e.message or "")
        return error_response(e)

    except Exception:
        logger.exception("Token request failed")
        return JSONResponse(
            {"error": "server_error"},
            status_code=HTTP_SERVER_ERROR,
            headers=NO_STORE_HEADERS,
        )


def create_app(service: TokenService | None = None, debug: bool = False) -> Starlette:
    """
    Build a Starlette application serving ``POST /token``.

    Args:
        service: Token service (built from settings when omitted)
        debug: Starlette debug mode

    Returns:
        Starlette application
    """
    service = service or TokenService.from_settings()

    async def _token_endpoint(request: Request) -> JSONResponse:
        return await token_endpoint(request, service)

    app = Starlette(
        debug=debug,
        routes=[Route("/token", _token_endpoint, methods=["POST"])],
    )
    app.state.token_service = service
    logger.info("Token endpoint registered")
    return app
