"""Short-lived cookies that carry the flow state across the provider redirect."""
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from fastapi import Request
from fastapi.responses import Response


@dataclass(frozen=True)
class CookieDirective:
    """Instructions for setting one flow cookie."""

    key: str
    value: str
    max_age: int
    httponly: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"
    path: str = "/"


def flow_cookie_names(request: Request) -> tuple:
    """Names of the state, mode and port cookies, in that order."""
    prefix = request.app.extra.get('FLOW_COOKIE_PREFIX', 'w_')
    return f'{prefix}state', f'{prefix}mode', f'{prefix}port'


def cookie_params(request: Request) -> tuple:
    return (request.app.extra.get('DOMAIN'),
            request.app.extra.get('SECURE', True))


def set_flow_cookies(request: Request, response: Response,
                     directives: Iterable[CookieDirective]) -> None:
    domain, secure = cookie_params(request)
    for directive in directives:
        response.set_cookie(directive.key, directive.value, max_age=directive.max_age,
                            domain=domain, path=directive.path, secure=secure,
                            httponly=directive.httponly, samesite=directive.samesite)


def clear_flow_cookies(request: Request, response: Response) -> None:
    """Expire every flow cookie, whether or not the browser sent it."""
    domain, secure = cookie_params(request)
    for key in flow_cookie_names(request):
        response.set_cookie(key, '', max_age=0, domain=domain, path="/",
                            secure=secure, httponly=True, samesite="lax")


def directive(key: str, value: Optional[str], max_age: int) -> Optional[CookieDirective]:
    if value is None:
        return None
    return CookieDirective(key=key, value=value, max_age=max_age)
