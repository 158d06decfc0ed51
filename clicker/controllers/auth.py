"""Login with Discord, and logout."""

from http import HTTPStatus as status
from typing import Any, Optional

from werkzeug.exceptions import BadRequest, Unauthorized

from .. import domain
from ..auth import get_registry
from ..auth.exceptions import SessionNotFound
from ..auth.sessions import store
from ..logging import getLogger
from ..services import datastore, discord
from . import ResponseData

logger = getLogger(__name__)


def authorization_url() -> ResponseData:
    """Get the Discord URL to which the client should send the user."""
    return {'url': discord.authorization_url()}, status.OK, {}


def login(payload: Optional[Any], ip_address: str,
          user_agent: str) -> ResponseData:
    """
    Log in with a Discord authorization code, and start a new session.

    Parameters
    ----------
    payload : dict
        Request body. Should contain ``code``.
    ip_address : str
    user_agent : str

    Returns
    -------
    dict
        ``id``, ``userId``, ``accessToken`` (the bearer token) and
        ``expiresAt`` (UNIX time) of the new session.
    int
        HTTP status code.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`BadRequest`
        Raised if the body is malformed, or if Discord did not share the
        user's e-mail address.
    :class:`Unauthorized`
        Raised if the code is missing or rejected.

    """
    if not isinstance(payload, dict):
        raise BadRequest('invalid body')
    code = payload.get('code')
    if not code or not isinstance(code, str):
        raise Unauthorized('invalid code')

    try:
        exchange = discord.exchange_code(code)
    except discord.InvalidCode as e:
        raise Unauthorized('invalid code') from e
    discord_user = discord.identity(exchange)
    if not discord_user.email:
        raise BadRequest('missing email')

    if discord.current_session().joins_guild:
        try:
            join_status = discord.add_guild_member(exchange.access_token,
                                                   discord_user.discord_id)
        except discord.DiscordUnauthorized as e:
            raise Unauthorized('discord guild join unauthorized') from e
        logger.info('Discord guild member add status.',
                    extra={'status': join_status})

    user = datastore.users.register_discord_user(
        discord_user, exchange.refresh_token, get_registry()
    )
    session = store.register_new(user.user_id, ip_address, user_agent)
    logger.info('Logged in.', extra={'user_id': user.user_id})
    return {
        'id': session.session_id,
        'userId': session.user_id,
        'accessToken': session.token,
        'expiresAt': int(session.expires_at.timestamp())
    }, status.CREATED, {}


def logout(session: domain.Session) -> ResponseData:
    """End the current session."""
    try:
        store.invalidate_by_auth_token(session.token)
    except SessionNotFound:
        logger.debug('Session %s already ended', session.session_id)
    return {'loggedOut': not store.exists(session.token)}, status.OK, {}
