"""Exceptions raised while relaying an OAuth flow or checking access.

Every class carries the HTTP status and the client-facing ``error`` message
it is rendered with; see :func:`whop_oauth2.main.relay_error_handler`.
"""
from typing import Any, Optional


class RelayError(RuntimeError):
    """Base class for errors that surface to the client as JSON."""

    status_code = 500
    error = 'Internal server error'

    def __init__(self, error: Optional[str] = None, detail: Any = None) -> None:
        self.error = error or self.error
        self.detail = detail
        super().__init__(self.error)


class AuthenticationError(RelayError):
    """Missing, invalid or expired session credential."""

    status_code = 401
    error = 'Invalid or expired session token'


class InvalidCredential(AuthenticationError):
    """The session credential failed signature, issuer or expiry checks."""


class ValidationError(RelayError):
    """Malformed client input."""

    status_code = 400
    error = 'Invalid request'


class MissingCode(ValidationError):
    """The callback carries no authorization code."""

    error = 'Missing authorization code'


class MissingState(ValidationError):
    """The callback carries no state parameter."""

    error = 'Missing state parameter'


class MalformedState(ValidationError):
    """The combined state does not split into exactly two parts."""

    error = 'Invalid state format'


class MissingCookie(ValidationError):
    """No CSRF cookie came back with the callback."""

    error = 'Missing state cookie (CSRF check failed)'


class StateMismatch(ValidationError):
    """The CSRF half of the combined state differs from the cookie."""

    error = 'State mismatch (CSRF check failed)'


class InvalidResource(ValidationError):
    """The experience id is missing or does not carry the required prefix."""

    error = 'Missing required parameter: experienceId'


class InvalidDeliveryMode(ValidationError):
    """Unknown delivery mode or a loopback port that is not a port."""

    error = 'Invalid delivery mode'


class UpstreamError(RelayError):
    """The identity provider failed during the OAuth flow."""

    status_code = 500
    error = 'Identity provider request failed'


class ProviderUnavailable(UpstreamError):
    """Could not obtain an authorization URL."""

    error = 'Failed to initialize OAuth'


class ExchangeFailed(UpstreamError):
    """The authorization code did not yield an access token."""

    error = 'Failed to obtain access token'


class IdentityFetchFailed(UpstreamError):
    """No usable profile came back for the authenticated user."""

    error = 'Failed to fetch user information from Whop'


class AccessCheckFailed(UpstreamError):
    """The provider errored while checking experience access."""

    status_code = 502
    error = 'Failed to verify access with Whop'


class AccessCheckError(RelayError):
    """Something other than the provider broke while checking access."""

    error = 'Failed to check experience access'


class ProviderError(RuntimeError):
    """A call to the provider API failed at the transport or HTTP level."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
