"""
The OAuth handoff between the browser and a native client.

A flow is two requests. ``initiate`` sends the browser to Whop and leaves
the CSRF token, and optionally the delivery mode and loopback port, in
short-lived cookies. ``handle_callback`` checks the state, trades the code
for the user's identity, issues a session credential and decides how to
deliver it. Nothing is stored between the two; each request gets its own
:class:`HandoffFlow` that records how far it got.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from . import csrf, delivery, tokens
from .cookies import CookieDirective, directive
from .domain import DeliveryMode, FlowState, Identity
from .exceptions import (ExchangeFailed, IdentityFetchFailed, MissingCode,
                         MissingState, ProviderError, ProviderUnavailable)
from .provider import IdentityProvider

logger = logging.getLogger(__name__)


class FlowStage(Enum):
    IDLE = 'idle'
    INITIATED = 'initiated'
    CALLBACK_RECEIVED = 'callback_received'
    STATE_VALIDATED = 'state_validated'
    CODE_EXCHANGED = 'code_exchanged'
    IDENTITY_FETCHED = 'identity_fetched'
    CREDENTIAL_ISSUED = 'credential_issued'
    DELIVERED = 'delivered'
    FAILED = 'failed'


TERMINAL_STAGES = (FlowStage.DELIVERED, FlowStage.FAILED)


@dataclass
class HandoffFlow:
    """Progress of one request through the handoff."""

    stage: FlowStage = FlowStage.IDLE
    reason: Optional[str] = None
    history: List[FlowStage] = field(default_factory=list)

    def advance(self, stage: FlowStage) -> None:
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f'Flow already {self.stage.value}')
        logger.debug("OAuth flow: %s -> %s", self.stage.value, stage.value)
        self.history.append(self.stage)
        self.stage = stage

    def fail(self, reason: str) -> None:
        if self.stage in TERMINAL_STAGES:
            return
        logger.warning("OAuth flow failed at %s: %s", self.stage.value, reason)
        self.history.append(self.stage)
        self.stage = FlowStage.FAILED
        self.reason = reason


@dataclass
class Initiation:
    redirect_url: str
    flow_state: FlowState
    cookies: List[CookieDirective]


@dataclass
class Delivery:
    payload: Dict[str, Any]
    mode: DeliveryMode
    port: Optional[int]
    identity: Identity


def replace_state(url: str, state: str) -> str:
    """Swap the ``state`` query parameter of ``url`` for ``state``."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != 'state']
    query.append(('state', state))
    return urlunsplit(parts._replace(query=urlencode(query)))


class OAuthHandoff:
    """Runs both halves of the handoff against one identity provider.

    Parameters
    ----------
    idp : :class:`IdentityProvider`
    secret : str
        Signing key for session credentials.
    cookie_names : tuple
        Names of the state, mode and port cookies.

    """

    def __init__(self, idp: IdentityProvider, secret: str,
                 cookie_names: Tuple[str, str, str] = ('w_state', 'w_mode', 'w_port'),
                 scope: Optional[List[str]] = None,
                 issuer: str = tokens.DEFAULT_ISSUER,
                 duration: int = tokens.DEFAULT_DURATION,
                 cookie_max_age: int = csrf.MAX_COOKIE_AGE) -> None:
        self.idp = idp
        self.secret = secret
        self.state_cookie, self.mode_cookie, self.port_cookie = cookie_names
        self.scope = scope or ['read_user']
        self.issuer = issuer
        self.duration = duration
        self.cookie_max_age = cookie_max_age

    async def initiate(self, mode: Optional[str] = None, port: Optional[str] = None,
                       flow: Optional[HandoffFlow] = None) -> Initiation:
        """Start a flow: the URL to redirect to and the cookies to set."""
        flow = flow or HandoffFlow()
        try:
            delivery_mode, loopback_port = delivery.resolve(mode, port, None, None)
            csrf_token, state_cookie = csrf.begin(self.state_cookie, self.cookie_max_age)
            try:
                auth = await self.idp.authorization_url(self.scope)
            except ProviderError as e:
                raise ProviderUnavailable(detail=str(e)) from e
        except Exception as e:
            flow.fail(str(e))
            raise

        cookies = [state_cookie]
        for extra in (directive(self.mode_cookie, mode or None, self.cookie_max_age),
                      directive(self.port_cookie, port or None, self.cookie_max_age)):
            if extra is not None:
                cookies.append(extra)

        flow.advance(FlowStage.INITIATED)
        return Initiation(
            redirect_url=replace_state(auth.url, csrf.combine(auth.state, csrf_token)),
            flow_state=FlowState(csrf_token=csrf_token, mode=delivery_mode, port=loopback_port),
            cookies=cookies,
        )

    async def handle_callback(self, code: Optional[str], combined_state: Optional[str],
                              cookies: Mapping[str, str],
                              query_mode: Optional[str] = None,
                              query_port: Optional[str] = None,
                              flow: Optional[HandoffFlow] = None) -> Delivery:
        """Finish a flow and work out what to hand to the client.

        The caller clears the flow cookies whatever happens here.
        """
        flow = flow or HandoffFlow(stage=FlowStage.INITIATED)
        try:
            flow.advance(FlowStage.CALLBACK_RECEIVED)
            if not code:
                raise MissingCode()
            if not combined_state:
                raise MissingState()

            csrf.validate(combined_state, cookies.get(self.state_cookie))
            mode, port = delivery.resolve(query_mode, query_port,
                                          cookies.get(self.mode_cookie),
                                          cookies.get(self.port_cookie))
            flow.advance(FlowStage.STATE_VALIDATED)

            try:
                oauth_tokens = await self.idp.exchange_code(code)
            except ProviderError as e:
                raise ExchangeFailed(detail=str(e)) from e
            if not oauth_tokens.access_token:
                raise ExchangeFailed()
            flow.advance(FlowStage.CODE_EXCHANGED)

            try:
                identity = await self.idp.fetch_identity(oauth_tokens.access_token)
            except ProviderError as e:
                raise IdentityFetchFailed(detail=str(e)) from e
            if identity is None or not identity.id:
                raise IdentityFetchFailed()
            flow.advance(FlowStage.IDENTITY_FETCHED)
            logger.info("Whop user signed in: %s", identity.id)

            session_token = tokens.issue(identity.id, identity.name, self.secret,
                                         issuer=self.issuer, duration=self.duration)
            flow.advance(FlowStage.CREDENTIAL_ISSUED)
        except Exception as e:
            flow.fail(str(e))
            raise

        payload = {
            'session_token': session_token,
            'user': {'id': identity.id, 'name': identity.name},
        }
        flow.advance(FlowStage.DELIVERED)
        return Delivery(payload=payload, mode=mode, port=port, identity=identity)
