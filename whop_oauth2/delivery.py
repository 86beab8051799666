"""
Hand the session credential to the native client.

``direct`` returns the payload as JSON to whoever made the callback
request. ``loopback`` renders a page in the user's browser that POSTs the
payload once to the client's listener on ``127.0.0.1``. If that POST fails,
the page shows the credential so it can be copied by hand.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi.responses import HTMLResponse, JSONResponse, Response
from jinja2 import Environment, PackageLoader, select_autoescape

from .domain import DeliveryMode
from .exceptions import InvalidDeliveryMode

logger = logging.getLogger(__name__)

LOOPBACK_HOST = '127.0.0.1'
LOOPBACK_PATH = '/session'

_env = Environment(loader=PackageLoader('whop_oauth2', 'templates'),
                   autoescape=select_autoescape(['html']))


def parse_mode(value: Optional[str]) -> Optional[DeliveryMode]:
    if not value:
        return None
    try:
        return DeliveryMode(value)
    except ValueError as e:
        raise InvalidDeliveryMode(f'Unknown delivery mode: {value}',
                                  {'allowed': [m.value for m in DeliveryMode]}) from e


def parse_port(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    if not (value.isascii() and value.isdigit()) or not 0 < int(value) < 65536:
        raise InvalidDeliveryMode('Invalid loopback port', {'provided': value})
    return int(value)


def resolve(query_mode: Optional[str], query_port: Optional[str],
            cookie_mode: Optional[str], cookie_port: Optional[str]
            ) -> Tuple[DeliveryMode, Optional[int]]:
    """Settle mode and port for a callback.

    Each query parameter, when present, overrides the value the init request
    left in the cookies.
    """
    mode = parse_mode(query_mode or cookie_mode)
    port = parse_port(query_port or cookie_port)
    if mode is DeliveryMode.LOOPBACK:
        if port is not None:
            return mode, port
        logger.warning("Loopback requested without a port; returning JSON")
    return DeliveryMode.DIRECT, None


def loopback_url(port: int) -> str:
    return f'http://{LOOPBACK_HOST}:{port}{LOOPBACK_PATH}'


def render(payload: Dict[str, Any], mode: DeliveryMode, port: Optional[int] = None) -> Response:
    if mode is DeliveryMode.LOOPBACK and port is not None:
        logger.info("Rendering loopback page for port %s", port)
        html = _env.get_template('loopback.html').render(session=payload,
                                                         target=loopback_url(port))
        return HTMLResponse(html)
    return JSONResponse(payload)
