"""
Anti-forgery state for the OAuth redirect round trip.

The provider generates its own ``state`` value and echoes back whatever is
in the authorization URL. Ours is appended to it as ``<provider>:<ours>``, and
ours also goes into an HTTP-only cookie. At callback time the two have to
agree. Nothing is kept on the server.
"""
import logging
import secrets
from typing import Optional, Tuple

from .cookies import CookieDirective
from .exceptions import MalformedState, MissingCookie, StateMismatch

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16
MAX_COOKIE_AGE = 600
SEPARATOR = ':'


def begin(cookie_name: str, max_age: int = MAX_COOKIE_AGE) -> Tuple[str, CookieDirective]:
    """Generate a CSRF token and the cookie that carries it."""
    token = secrets.token_hex(TOKEN_BYTES)
    return token, CookieDirective(key=cookie_name, value=token,
                                  max_age=min(max_age, MAX_COOKIE_AGE))


def combine(provider_state: str, csrf_token: str) -> str:
    """Join the provider's state and ours.

    ``provider_state`` must not contain a colon, otherwise :func:`validate`
    cannot split the result.
    """
    return f'{provider_state}{SEPARATOR}{csrf_token}'


def validate(combined_state: str, cookie_token: Optional[str]) -> str:
    """
    Check the state returned by the provider against the CSRF cookie.

    Parameters
    ----------
    combined_state : str
        The ``state`` query parameter of the callback.
    cookie_token : str or None
        Value of the CSRF cookie, if the browser sent one.

    Returns
    -------
    str
        The provider's half of the state, untouched. The caller is
        responsible for clearing the cookie.

    Raises
    ------
    :class:`MalformedState`
    :class:`MissingCookie`
    :class:`StateMismatch`

    """
    parts = combined_state.split(SEPARATOR)
    if len(parts) != 2:
        raise MalformedState()
    provider_state, received = parts

    if not cookie_token:
        logger.warning("Callback arrived without a state cookie")
        raise MissingCookie()

    if not secrets.compare_digest(received.encode(), cookie_token.encode()):
        logger.warning("CSRF state mismatch")
        raise StateMismatch()
    return provider_state
