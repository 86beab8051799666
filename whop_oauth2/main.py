import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config, error_response
from .app_logging import setup_logger
from .authentication import router as auth_router
from .cors import LocalCORSMiddleware
from .exceptions import RelayError
from .provider import IdentityProvider, WhopClient
from .routes import router as api_router


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logging.getLogger(__name__).error("%s %s: %s (%s)", request.method, request.url.path,
                                          exc.error, exc.detail)
    return error_response(exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.getLogger(__name__).error("%s %s failed", request.method, request.url.path,
                                      exc_info=exc)
    return JSONResponse({'error': RelayError.error, 'detail': str(exc)}, status_code=500)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({'error': exc.detail}, status_code=exc.status_code,
                        headers=exc.headers)


def _settings(**overrides: Any) -> dict:
    settings = dict(
        JWT_SECRET=config.SESSION_JWT_SECRET,
        SESSION_ISSUER=config.SESSION_ISSUER,
        SESSION_DURATION=config.SESSION_DURATION,
        WHOP_APP_ID=config.WHOP_APP_ID,
        WHOP_API_KEY=config.WHOP_API_KEY,
        WHOP_API_BASE=config.WHOP_API_BASE,
        WHOP_AUTHORIZE_URL=config.WHOP_AUTHORIZE_URL,
        OAUTH_REDIRECT_URI=config.OAUTH_REDIRECT_URI,
        OAUTH_SCOPE=config.OAUTH_SCOPE,
        CORS_ORIGINS=config.CORS_ORIGINS,
        FLOW_COOKIE_PREFIX=config.FLOW_COOKIE_PREFIX,
        FLOW_COOKIE_MAX_AGE=config.FLOW_COOKIE_MAX_AGE,
        SECURE=config.SECURE,
        DOMAIN=config.DOMAIN,
        RESOURCE_ID_PREFIX=config.RESOURCE_ID_PREFIX,
        SERVER_ROOT_PATH=config.SERVER_ROOT_PATH,
        LOG_LEVEL=config.LOG_LEVEL,
    )
    settings.update(overrides)
    if isinstance(settings['OAUTH_SCOPE'], str):
        settings['OAUTH_SCOPE'] = settings['OAUTH_SCOPE'].replace(',', ' ').split()
    settings['FLOW_COOKIE_MAX_AGE'] = min(int(settings['FLOW_COOKIE_MAX_AGE']), 600)
    return settings


def create_app(idp: Optional[IdentityProvider] = None, **overrides: Any) -> FastAPI:
    """Build the relay. Keyword arguments override the environment."""
    settings = _settings(**overrides)
    setup_logger(settings['LOG_LEVEL'])
    logger = logging.getLogger(__name__)

    if not settings['JWT_SECRET']:
        logger.error("SESSION_JWT_SECRET needs to be set.")
        raise ValueError("SESSION_JWT_SECRET is required")

    # DOMAIN is okay to be None
    domain = settings['DOMAIN']
    if domain and domain[0] != ".":
        settings['DOMAIN'] = "." + domain
        logger.warning("DOMAIN did not have the leading dot. %s", settings['DOMAIN'])

    if not settings['SECURE']:
        logger.warning("SECURE is off. Flow cookies will be sent over plain HTTP.")

    if idp is None:
        if not settings['WHOP_API_KEY']:
            logger.warning("WHOP_API_KEY is not set; calls to Whop will be rejected.")
        idp = WhopClient(settings['WHOP_APP_ID'], settings['WHOP_API_KEY'],
                         settings['OAUTH_REDIRECT_URI'],
                         api_base=settings['WHOP_API_BASE'],
                         authorize_url=settings['WHOP_AUTHORIZE_URL'])

    logger.info("OAUTH_REDIRECT_URI: %s", settings['OAUTH_REDIRECT_URI'])
    logger.info("SESSION_ISSUER: %s", settings['SESSION_ISSUER'])
    logger.info("SESSION_DURATION: %s", settings['SESSION_DURATION'])

    app = FastAPI(root_path=settings['SERVER_ROOT_PATH'], idp=idp, **settings)

    origins = [origin.strip() for origin in settings['CORS_ORIGINS'].split(',') if origin.strip()]
    logger.info("cors origins: %s", ",".join(origins))
    app.add_middleware(LocalCORSMiddleware, allow_origins=origins)

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(auth_router)
    app.include_router(api_router)

    @app.middleware("http")
    async def apply_response_headers(request: Request, call_next: Callable) -> Response:
        """Apply response headers to all responses.
           Prevent UI redress attacks.
        """
        response: Response = await call_next(request)
        response.headers['Content-Security-Policy'] = "frame-ancestors 'none'"
        response.headers['X-Frame-Options'] = 'DENY'
        return response

    return app
