"""Relays Whop OAuth to native clients and checks their access."""
from logging import getLogger
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from . import tokens
from .domain import SessionClaims
from .exceptions import InvalidCredential, RelayError


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """The token of a ``Bearer`` Authorization header, if that is what it is."""
    if not authorization or not authorization.startswith('Bearer '):
        return None
    token = authorization[len('Bearer '):].strip()
    return token or None


def get_bearer_token(request: Request) -> Optional[str]:
    return extract_bearer_token(request.headers.get('Authorization'))


def get_current_session(request: Request) -> SessionClaims:
    """Dependency for routes that need a verified session credential."""
    logger = getLogger(__name__)
    token = get_bearer_token(request)
    if not token:
        logger.debug("No bearer token on %s", request.url.path)
        raise InvalidCredential('Missing or invalid Authorization header')
    return tokens.verify(token, request.app.extra['JWT_SECRET'],
                         issuer=request.app.extra['SESSION_ISSUER'])


def error_response(error: RelayError) -> JSONResponse:
    """Render a relay error as ``{error, detail?}``."""
    content = {'error': error.error}
    if error.detail:
        content['detail'] = error.detail
    return JSONResponse(content, status_code=error.status_code)
