"""Endpoints the native client calls with its session credential."""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request

from . import access, get_bearer_token, get_current_session, tokens
from .domain import SessionClaims
from .exceptions import AccessCheckError, RelayError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get('/session')
async def session(request: Request,
                  claims: SessionClaims = Depends(get_current_session)) -> dict:
    """Tell a client whether its cached credential is still good, and for how long."""
    return {
        'ok': True,
        'valid': True,
        'user': {'id': claims.uid, 'name': claims.name},
        'expires_in': tokens.remaining_validity(get_bearer_token(request)),
    }


@router.get('/me')
async def me(claims: SessionClaims = Depends(get_current_session)) -> dict:
    return {'id': claims.uid, 'name': claims.name}


async def _experience_id(request: Request) -> Optional[str]:
    experience_id = None
    if request.method == 'POST':
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            experience_id = body.get('experienceId')
    return experience_id or request.query_params.get('experienceId')


@router.api_route('/access/check', methods=['GET', 'POST'])
async def access_check(request: Request) -> dict:
    """Whether the session's user can access a Whop experience."""
    experience_id = await _experience_id(request)
    extra = request.app.extra
    try:
        decision = await access.check(extra['idp'], get_bearer_token(request), experience_id,
                                      extra['JWT_SECRET'],
                                      prefix=extra['RESOURCE_ID_PREFIX'],
                                      issuer=extra['SESSION_ISSUER'])
    except RelayError:
        raise
    except Exception as exc:
        logger.error("Access check for %s failed", experience_id, exc_info=exc)
        raise AccessCheckError(detail=str(exc)) from exc
    return {
        'hasAccess': decision.has_access,
        'accessLevel': decision.access_level,
        'userId': decision.user_id,
        'experienceId': decision.resource_id,
    }


@router.get('/health')
async def health() -> dict:
    return {
        'ok': True,
        'status': 'healthy',
        'timestamp': datetime.now(tz=timezone.utc).isoformat(timespec='milliseconds')
                     .replace('+00:00', 'Z'),
    }
