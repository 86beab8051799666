"""Functions for working with the session credentials handed to native clients."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from .domain import SessionClaims
from .exceptions import InvalidCredential

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_ISSUER = 'whop-unity-oauth'
DEFAULT_DURATION = 7200


def issue(uid: str, name: str, secret: str,
          issuer: str = DEFAULT_ISSUER,
          duration: int = DEFAULT_DURATION,
          now: Optional[datetime] = None) -> str:
    """Sign a short-lived session credential for ``uid``."""
    issued_at = now or datetime.now(tz=timezone.utc)
    claims = {
        'uid': uid,
        'name': name,
        'iss': issuer,
        'iat': issued_at,
        'exp': issued_at + timedelta(seconds=duration),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify(token: str, secret: str, issuer: str = DEFAULT_ISSUER) -> SessionClaims:
    """
    Verify a session credential and return its subject.

    Raises
    ------
    :class:`InvalidCredential`
        The signature does not match, the issuer differs, the token has
        expired or it lacks the subject claims.

    """
    try:
        data: dict = jwt.decode(token, secret, algorithms=[ALGORITHM], issuer=issuer,
                                options={'require': ['exp', 'iss']})
    except jwt.ExpiredSignatureError as e:
        raise InvalidCredential() from e
    except jwt.PyJWTError as e:
        logger.debug("Session token rejected: %s", e)
        raise InvalidCredential() from e

    if not isinstance(data.get('uid'), str) or not isinstance(data.get('name'), str):
        logger.warning("Session token lacks uid/name claims")
        raise InvalidCredential()
    return SessionClaims(uid=data['uid'], name=data['name'])


def remaining_validity(token: str, now: Optional[datetime] = None) -> Optional[int]:
    """Seconds until ``token`` expires, or None when that cannot be told.

    Neither the signature nor the expiry is checked, so this is only good for
    caching hints. Use :func:`verify` to decide whether to trust a token.
    """
    try:
        data = jwt.decode(token, options={'verify_signature': False})
    except (jwt.PyJWTError, ValueError, TypeError):
        return None

    exp = data.get('exp')
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    current = (now or datetime.now(tz=timezone.utc)).timestamp()
    return int(exp - int(current))
