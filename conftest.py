"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.
"""
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from whop_oauth2.domain import AuthorizationRequest, Identity, OAuthTokens
from whop_oauth2.exceptions import ProviderError
from whop_oauth2.main import create_app
from whop_oauth2.provider import IdentityProvider

PROVIDER_STATE = "whopstate123"
AUTHORIZE_URL = "https://whop.example/oauth"


class FakeWhop(IdentityProvider):
    """Stands in for Whop and records what it was asked."""

    def __init__(self) -> None:
        self.identity: Optional[Identity] = Identity(id="user_abc123", name="Skunk Skunk")
        self.access_token: Optional[str] = "whop-access-token"
        self.access_result: Dict[str, Any] = {"has_access": True, "access_level": "customer"}
        self.fail: Dict[str, str] = {}
        self.calls: List[tuple] = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise ProviderError(self.fail[name])

    async def authorization_url(self, scope: List[str]) -> AuthorizationRequest:
        self.calls.append(("authorization_url", tuple(scope)))
        self._maybe_fail("authorization_url")
        return AuthorizationRequest(
            url=f"{AUTHORIZE_URL}?client_id=app_1&scope={'+'.join(scope)}&state={PROVIDER_STATE}",
            state=PROVIDER_STATE)

    async def exchange_code(self, code: str) -> OAuthTokens:
        self.calls.append(("exchange_code", code))
        self._maybe_fail("exchange_code")
        return OAuthTokens(access_token=self.access_token)

    async def fetch_identity(self, access_token: str) -> Optional[Identity]:
        self.calls.append(("fetch_identity", access_token))
        self._maybe_fail("fetch_identity")
        return self.identity

    async def check_access(self, user_id: str, resource_id: str) -> Dict[str, Any]:
        self.calls.append(("check_access", user_id, resource_id))
        self._maybe_fail("check_access")
        return self.access_result


@pytest.fixture
def secret():
    return "testing_secret"


@pytest.fixture
def whop():
    return FakeWhop()


@pytest.fixture
def app(whop, secret):
    return create_app(idp=whop, JWT_SECRET=secret, SECURE=False,
                      CORS_ORIGINS="https://game.example.com")


@pytest.fixture
def client(app):
    return TestClient(app)
