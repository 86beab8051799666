"""
The external identity provider, and its binding to Whop's REST API.

The relay needs four things from the provider: an authorization URL, the
code exchange, the profile of the user who just signed in, and an access
check. :class:`IdentityProvider` names them; :class:`WhopClient` implements
them with ``requests``. The blocking calls are pushed to Starlette's thread
pool so a request handler awaits them like any other I/O.

No timeout is set and nothing is retried. A hung Whop call hangs the
request that made it.
"""
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import requests
from starlette.concurrency import run_in_threadpool

from .domain import AuthorizationRequest, Identity, OAuthTokens
from .exceptions import ProviderError

logger = logging.getLogger(__name__)

TOKEN_PATH = '/v5/oauth/token'
ME_PATH = '/v5/me'
USER_PATH = '/api/v1/users/{user_id}'
ACCESS_PATH = '/api/v1/users/{user_id}/access/{resource_id}'


class IdentityProvider(ABC):
    """What the OAuth handoff and the access gateway need from a provider."""

    @abstractmethod
    async def authorization_url(self, scope: List[str]) -> AuthorizationRequest:
        """Build the URL the browser is redirected to, with its ``state``."""

    @abstractmethod
    async def exchange_code(self, code: str) -> OAuthTokens:
        """Trade an authorization code for the user's tokens."""

    @abstractmethod
    async def fetch_identity(self, access_token: str) -> Optional[Identity]:
        """Profile of the user who owns ``access_token``."""

    @abstractmethod
    async def check_access(self, user_id: str, resource_id: str) -> Dict[str, Any]:
        """Raw access decision for ``user_id`` on ``resource_id``."""


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict) and error.get('message'):
            return str(error['message'])
        if error:
            return str(body.get('error_description') or error)
        if body.get('message'):
            return str(body['message'])
    return f'HTTP {response.status_code} from {response.url}'


class WhopClient(IdentityProvider):
    """Talks to Whop on behalf of one app.

    Parameters
    ----------
    app_id : str
        OAuth client id of the app.
    api_key : str
        App API key. Doubles as the OAuth client secret.
    redirect_uri : str
        Callback URL registered for the app.

    """

    def __init__(self, app_id: str, api_key: str, redirect_uri: str,
                 api_base: str = 'https://api.whop.com',
                 authorize_url: str = 'https://whop.com/oauth',
                 session: Optional[requests.Session] = None) -> None:
        self.app_id = app_id
        self.api_key = api_key
        self.redirect_uri = redirect_uri
        self.api_base = api_base.rstrip('/')
        self.authorize_endpoint = authorize_url
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, bearer: str, **kwargs: Any) -> Dict[str, Any]:
        url = self.api_base + path
        headers = {'Authorization': f'Bearer {bearer}', 'Accept': 'application/json'}
        try:
            response = self._session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            logger.error("Whop %s %s failed: %s", method, path, e)
            raise ProviderError(f'Whop request failed: {e}') from e

        if not response.ok:
            message = _error_message(response)
            logger.warning("Whop %s %s returned %s: %s", method, path,
                           response.status_code, message)
            raise ProviderError(message, response.status_code)
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError('Whop returned a response that is not JSON',
                                response.status_code) from e
        if not isinstance(data, dict):
            raise ProviderError('Whop returned an unexpected response', response.status_code)
        return data

    async def _call(self, method: str, path: str, bearer: str, **kwargs: Any) -> Dict[str, Any]:
        return await run_in_threadpool(self._request, method, path, bearer, **kwargs)

    async def authorization_url(self, scope: List[str]) -> AuthorizationRequest:
        if not self.app_id or not self.redirect_uri:
            raise ProviderError('Whop app id or OAuth redirect URI is not configured')
        state = secrets.token_hex(16)
        params = {
            'client_id': self.app_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': ' '.join(scope),
            'state': state,
        }
        return AuthorizationRequest(url=f'{self.authorize_endpoint}?{urlencode(params)}',
                                    state=state)

    async def exchange_code(self, code: str) -> OAuthTokens:
        logger.debug("Exchanging code %s... at %s", code[:8], TOKEN_PATH)
        data = await self._call('POST', TOKEN_PATH, self.api_key, json={
            'grant_type': 'authorization_code',
            'code': code,
            'client_id': self.app_id,
            'client_secret': self.api_key,
            'redirect_uri': self.redirect_uri,
        })
        return OAuthTokens(**{key: data[key] for key in OAuthTokens.model_fields if key in data})

    async def fetch_identity(self, access_token: str) -> Optional[Identity]:
        # The user's own token says who they are. The profile is then looked up
        # by id with the app key; asking "who am I" with the app key would
        # return the app's agent user instead.
        me = await self._call('GET', ME_PATH, access_token)
        user_id = me.get('id')
        if not user_id:
            logger.warning("Whop did not say who owns the access token")
            return None

        logger.debug("Fetching Whop profile for %s", user_id)
        user = await self._call('GET', USER_PATH.format(user_id=quote(str(user_id), safe='')),
                                self.api_key)
        if not user.get('id'):
            return None
        return Identity(id=str(user['id']),
                        name=user.get('name') or user.get('username') or 'Unknown')

    async def check_access(self, user_id: str, resource_id: str) -> Dict[str, Any]:
        path = ACCESS_PATH.format(user_id=quote(user_id, safe=''),
                                  resource_id=quote(resource_id, safe=''))
        return await self._call('GET', path, self.api_key)
