"""Configuration for the Whop OAuth relay.

Since this is not a flask app, everything comes from ``os.environ``. The
values are read once at import and copied into ``app.extra`` by
:func:`whop_oauth2.main.create_app`, where keyword overrides win.
"""
import os

SESSION_JWT_SECRET = os.environ.get('SESSION_JWT_SECRET', '')
"""Signing key for session credentials. Required; startup fails without it."""

SESSION_ISSUER = os.environ.get('SESSION_ISSUER', 'whop-unity-oauth')
SESSION_DURATION = int(os.environ.get('SESSION_DURATION', '7200'))
"""Lifetime of a session credential, in seconds."""

WHOP_APP_ID = os.environ.get('WHOP_APP_ID', os.environ.get('NEXT_PUBLIC_WHOP_APP_ID', ''))
"""OAuth client id of the Whop app."""

WHOP_API_KEY = os.environ.get('WHOP_API_KEY', '')
"""App API key. Also used as the OAuth client secret."""

WHOP_API_BASE = os.environ.get('WHOP_API_BASE', 'https://api.whop.com')
WHOP_AUTHORIZE_URL = os.environ.get('WHOP_AUTHORIZE_URL', 'https://whop.com/oauth')

# This is the public URL that Whop calls back when the authentication succeeds.
# It has to match the redirect URI registered for the app.
OAUTH_REDIRECT_URI = os.environ.get('OAUTH_REDIRECT_URI', '')
OAUTH_SCOPE = os.environ.get('OAUTH_SCOPE', 'read_user')

CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000')
"""Comma separated. Localhost on any port is always allowed on top of these."""

FLOW_COOKIE_PREFIX = os.environ.get('FLOW_COOKIE_PREFIX', 'w_')
FLOW_COOKIE_MAX_AGE = min(int(os.environ.get('FLOW_COOKIE_MAX_AGE', '600')), 600)

SECURE = os.environ.get('SECURE', '').lower() not in ['false', 'no']
DOMAIN = os.environ.get('DOMAIN')

RESOURCE_ID_PREFIX = os.environ.get('RESOURCE_ID_PREFIX', 'exp_')
"""Whop experience ids look like ``exp_XXXX``."""

SERVER_ROOT_PATH = os.environ.get('SERVER_ROOT_PATH', '')
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

HOST = os.environ.get('HOST', '127.0.0.1')
PORT = int(os.environ.get('PORT', '8000'))
