"""Ask Whop whether the holder of a session credential can use an experience."""
import logging
from typing import Optional

from . import tokens
from .domain import NO_ACCESS, AccessDecision
from .exceptions import AccessCheckFailed, InvalidCredential, InvalidResource, ProviderError
from .provider import IdentityProvider

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = 'exp_'


def validate_resource(resource_id: Optional[str], prefix: str = DEFAULT_PREFIX) -> str:
    if not resource_id or not isinstance(resource_id, str):
        raise InvalidResource(detail={
            'hint': f'For GET: /access/check?experienceId={prefix}XXX',
            'hint2': f'For POST: {{"experienceId": "{prefix}XXX"}}',
        })
    if not resource_id.startswith(prefix) or resource_id == prefix:
        raise InvalidResource(f'Invalid experienceId format. Must start with "{prefix}"',
                              {'provided': resource_id})
    return resource_id


async def check(idp: IdentityProvider, credential: Optional[str], resource_id: Optional[str],
                secret: str, prefix: str = DEFAULT_PREFIX,
                issuer: str = tokens.DEFAULT_ISSUER) -> AccessDecision:
    """
    Decide whether the subject of ``credential`` may access ``resource_id``.

    The resource id is checked before the credential, so a malformed id is
    rejected the same way whoever asks, and the provider is never called for
    it.

    Raises
    ------
    :class:`InvalidResource`
    :class:`InvalidCredential`
    :class:`AccessCheckFailed`

    """
    resource_id = validate_resource(resource_id, prefix)
    if not credential:
        raise InvalidCredential('Missing or invalid Authorization header')
    claims = tokens.verify(credential, secret, issuer=issuer)

    logger.info("Access check: user=%s experience=%s", claims.uid, resource_id)
    try:
        result = await idp.check_access(claims.uid, resource_id)
    except ProviderError as e:
        raise AccessCheckFailed(detail=f'Whop access check failed: {e}') from e

    error = result.get('error')
    if error:
        message = error.get('message') if isinstance(error, dict) else error
        logger.warning("Whop reported an error for the access check: %s", message)
        raise AccessCheckFailed(detail=f'Whop access check failed: {message}')

    has_access = result.get('has_access', result.get('hasAccess', False))
    access_level = result.get('access_level', result.get('accessLevel')) or NO_ACCESS
    return AccessDecision(user_id=claims.uid, resource_id=resource_id,
                          has_access=bool(has_access), access_level=access_level)
