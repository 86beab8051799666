"""OAuth endpoints: send the browser to Whop, and take it back."""
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from . import error_response
from .cookies import clear_flow_cookies, flow_cookie_names, set_flow_cookies
from .delivery import render
from .exceptions import ProviderUnavailable, RelayError
from .handoff import FlowStage, HandoffFlow, OAuthHandoff

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/oauth')


def get_handoff(request: Request) -> OAuthHandoff:
    extra = request.app.extra
    return OAuthHandoff(extra['idp'], extra['JWT_SECRET'],
                        cookie_names=flow_cookie_names(request),
                        scope=extra['OAUTH_SCOPE'],
                        issuer=extra['SESSION_ISSUER'],
                        duration=extra['SESSION_DURATION'],
                        cookie_max_age=extra['FLOW_COOKIE_MAX_AGE'])


@router.get('/init')
async def oauth2_init(request: Request) -> Response:
    """Redirect to Whop with our CSRF token folded into the state."""
    mode = request.query_params.get('mode')
    port = request.query_params.get('port')
    logger.debug("init: mode=%s port=%s", mode, port)

    try:
        initiation = await get_handoff(request).initiate(mode, port)
    except RelayError:
        raise
    except Exception as exc:
        logger.error("OAuth init failed", exc_info=exc)
        raise ProviderUnavailable(detail=str(exc)) from exc

    response = RedirectResponse(initiation.redirect_url, status_code=status.HTTP_302_FOUND)
    set_flow_cookies(request, response, initiation.cookies)
    logger.info("Redirecting to Whop authorization")
    return response


@router.get('/callback')
async def oauth2_callback(request: Request) -> Response:
    """Exchange the code, issue a session credential and deliver it."""
    flow = HandoffFlow(stage=FlowStage.INITIATED)
    try:
        delivered = await get_handoff(request).handle_callback(
            request.query_params.get('code'),
            request.query_params.get('state'),
            request.cookies,
            query_mode=request.query_params.get('mode'),
            query_port=request.query_params.get('port'),
            flow=flow,
        )
        response = render(delivered.payload, delivered.mode, delivered.port)
    except RelayError as e:
        response = error_response(e)
    except Exception as exc:
        logger.error("OAuth callback failed at %s", flow.stage.value, exc_info=exc)
        response = JSONResponse({'error': 'OAuth callback failed', 'detail': str(exc)},
                                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    clear_flow_cookies(request, response)
    return response
