#
# CORS for the endpoints native clients and local tooling call from a browser
# context. Unity's editor and standalone players serve from localhost on an
# arbitrary port, so any localhost origin is accepted on top of the list.
#
# Starlette's CORSMiddleware answers preflights with 200 and rejects unknown
# origins with 400; clients here expect every OPTIONS to end in a 204, and the
# OAuth redirect endpoints should carry no CORS headers at all.
#
import logging
import re
from typing import Iterable, Optional

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

LOCALHOST_ORIGIN = re.compile(r'^https?://(localhost|127\.0\.0\.1)(:\d+)?$')
EXCLUDED_PATHS = ('/oauth/init', '/oauth/callback')

CORS_HEADERS = {
    'Vary': 'Origin',
    'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
    'Access-Control-Allow-Headers': 'Authorization, Content-Type',
    'Access-Control-Max-Age': '86400',
}


def origin_allowed(origin: Optional[str], allowed: Iterable[str]) -> bool:
    if not origin:
        return False
    return origin in allowed or LOCALHOST_ORIGIN.match(origin) is not None


class LocalCORSMiddleware:
    def __init__(self, app: ASGIApp, allow_origins: Iterable[str] = (),
                 excluded_paths: Iterable[str] = EXCLUDED_PATHS) -> None:
        self.app = app
        self.allow_origins = [origin.strip() for origin in allow_origins if origin.strip()]
        self.excluded_paths = tuple(excluded_paths)

    def _excluded(self, path: str) -> bool:
        return path.rstrip('/').endswith(self.excluded_paths)

    def _cors_headers(self, origin: Optional[str]) -> dict:
        if not origin_allowed(origin, self.allow_origins):
            return {}
        return {'Access-Control-Allow-Origin': origin, **CORS_HEADERS}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http' or self._excluded(scope['path']):
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get('origin')
        headers = self._cors_headers(origin)
        if origin and not headers:
            logger.debug("Origin %s is not allowed", origin)

        if scope['method'] == 'OPTIONS':
            response = Response(status_code=204, headers=headers)
            await response(scope, receive, send)
            return

        if not headers:
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message['type'] == 'http.response.start':
                response_headers = MutableHeaders(scope=message)
                for key, value in headers.items():
                    response_headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
