from enum import Enum
from typing import Optional

from pydantic import BaseModel


NO_ACCESS = 'no_access'


class DeliveryMode(str, Enum):
    """How the session credential reaches the native client."""

    DIRECT = 'direct'
    """Returned to the caller as JSON."""

    LOOPBACK = 'loopback'
    """POSTed from the browser to a listener on 127.0.0.1."""


class SessionClaims(BaseModel):
    """The subject carried by a session credential."""

    uid: str
    """Whop user id"""

    name: str
    """display name at the time the credential was issued"""


class Identity(BaseModel):
    """A Whop user profile; read-only, never stored."""

    id: str
    name: str


class AuthorizationRequest(BaseModel):
    """Where to send the browser, and the state the provider put in the URL."""

    url: str
    state: str


class OAuthTokens(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


class FlowState(BaseModel):
    """Per-flow record held by the client in cookies across the redirect."""

    csrf_token: str
    mode: Optional[DeliveryMode] = None
    port: Optional[int] = None


class AccessDecision(BaseModel):
    """Result of one access check. Recomputed every time, never stored."""

    user_id: str
    resource_id: str
    has_access: bool
    access_level: str = NO_ACCESS
