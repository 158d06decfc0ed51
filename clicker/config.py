"""Flask configuration."""

import os

LOGLEVEL = os.environ.get('LOGLEVEL', 20)

SESSION_DURATION = os.environ.get('SESSION_DURATION', str(60 * 60 * 24 * 30))
"""Lifetime of a session, in seconds, from its last use."""

JWT_SECRET = os.environ.get('JWT_SECRET', 'foosecret')
"""Signs sessions serialized in the session store."""

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_TOKEN = os.environ.get('REDIS_TOKEN', None)
"""This is the token used in the AUTH procedure."""

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing and development."""

SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///clicker.db')
SQLALCHEMY_TRACK_MODIFICATIONS = False

CREATE_DB = bool(int(os.environ.get('CREATE_DB', '0')))
"""If 1, create the database tables when the application starts."""

ACTIVITY_STORE = os.environ.get('ACTIVITY_STORE', 'sql')
"""Either ``sql`` (relational store) or ``memory`` (process memory)."""

ACTIVITY_PAGE_SIZE = os.environ.get('ACTIVITY_PAGE_SIZE', '50')
"""Number of activity log entries per page."""

DISCORD_CLIENT_ID = os.environ.get('DISCORD_CLIENT_ID', '')
DISCORD_CLIENT_SECRET = os.environ.get('DISCORD_CLIENT_SECRET', '')
DISCORD_REDIRECT_URI = os.environ.get('DISCORD_REDIRECT_URI', '')
"""Where Discord sends the user back to with an authorization code."""

DISCORD_GUILD_ID = os.environ.get('DISCORD_GUILD_ID', None)
DISCORD_BOT_TOKEN = os.environ.get('DISCORD_BOT_TOKEN', None)
"""If both this and the guild id are set, users join the guild on login."""

DISCORD_TIMEOUT = os.environ.get('DISCORD_TIMEOUT', '10')
"""Timeout, in seconds, of requests to Discord."""

ROLES = os.environ.get('ROLES', None)
"""
JSON list of ``{"role_id": ..., "permissions": {...}}`` objects.

If not set, the built-in ``admin`` and ``pro`` roles are used.
"""

CORS_ALLOW_ORIGINS = os.environ.get('CORS_ALLOW_ORIGINS',
                                    'https://clicker.example.com')
"""Comma-separated origins of the web front-end allowed to call the API."""

CORS_DEBUG_ORIGINS = os.environ.get('CORS_DEBUG_ORIGINS',
                                    'http://localhost:3000')
"""Origins additionally allowed when the application runs in debug mode."""
