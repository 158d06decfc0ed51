"""
Integration with the Discord OAuth2 and REST APIs.

Users log in with Discord: the client is sent to
:meth:`DiscordSession.authorization_url`, Discord redirects back with an
authorization code, and the code is exchanged for an access token with
which the user's identity is fetched. If a guild is configured, the user is
also added to it using the bot token.
"""

import json
from functools import wraps
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import requests
from requests.adapters import HTTPAdapter
from werkzeug.local import LocalProxy

from .. import domain
from ..context import get_application_config, get_application_global
from ..logging import getLogger

logger = getLogger(__name__)

API = 'https://discord.com/api'
AUTHORIZE_URL = f'{API}/oauth2/authorize'
TOKEN_URL = f'{API}/oauth2/token'
USER_ME_URL = f'{API}/users/@me'
GUILD_MEMBER_URL = API + '/guilds/{guild_id}/members/{user_id}'
SCOPE = 'email identify guilds.join'
INVALID_CODE = 'Invalid "code" in request.'


class DiscordError(RuntimeError):
    """Discord responded unexpectedly, or could not be reached."""


class InvalidCode(DiscordError):
    """The authorization code was rejected."""


class DiscordUnauthorized(DiscordError):
    """Discord rejected our credentials (access token or bot token)."""


class DiscordSession(object):
    """Holds an HTTP session with the Discord API."""

    def __init__(self, client_id: str, client_secret: str,
                 redirect_uri: str, guild_id: Optional[str] = None,
                 bot_token: Optional[str] = None,
                 timeout: float = 10.0) -> None:
        """Create a new HTTP session."""
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.guild_id = guild_id
        self.bot_token = bot_token
        self.timeout = timeout
        self._session = requests.Session()
        self._adapter = HTTPAdapter(max_retries=2)
        self._session.mount('https://', self._adapter)
        logger.debug('New DiscordSession for client %s', client_id)

    def authorization_url(self) -> str:
        """Build the URL to which users are sent to log in."""
        return AUTHORIZE_URL + '?' + urlencode({
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': SCOPE
        })

    def exchange_code(self, code: str) -> domain.AccessTokenExchange:
        """
        Exchange an authorization code for an access token.

        Parameters
        ----------
        code : str

        Returns
        -------
        :class:`domain.AccessTokenExchange`

        Raises
        ------
        :class:`InvalidCode`
            Raised if Discord does not accept the code.
        :class:`DiscordError`
            Raised for any other failure.

        """
        response = self._request('post', TOKEN_URL, data={
            'grant_type': 'authorization_code',
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'code': code,
            'redirect_uri': self.redirect_uri
        })
        if response.status_code != requests.codes.ok:
            data = self._json(response, strict=False)
            if data.get('error_description') == INVALID_CODE:
                raise InvalidCode('Authorization code was rejected')
            raise DiscordError(f'Token exchange failed with status'
                               f' {response.status_code}: {response.text}')
        data = self._json(response)
        try:
            return domain.AccessTokenExchange(
                access_token=data['access_token'],
                token_type=data['token_type'],
                refresh_token=data.get('refresh_token', ''),
                expires_in=int(data.get('expires_in', 0))
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DiscordError(f'Malformed token response: {e}') from e

    def identity(self, exchange: domain.AccessTokenExchange) \
            -> domain.DiscordUser:
        """
        Fetch the identity of the user who granted ``exchange``.

        Raises
        ------
        :class:`DiscordUnauthorized`
            Raised if the access token is not accepted.

        """
        response = self._request('get', USER_ME_URL, headers={
            'Authorization': exchange.authorization
        })
        if response.status_code == requests.codes.unauthorized:
            raise DiscordUnauthorized('Access token was rejected')
        if response.status_code != requests.codes.ok:
            raise DiscordError(f'Identity request failed with status'
                               f' {response.status_code}: {response.text}')
        data = self._json(response)
        try:
            return domain.DiscordUser(
                discord_id=str(data['id']),
                username=data['username'],
                email=data.get('email') or '',
                avatar_hash=data.get('avatar') or ''
            )
        except (KeyError, TypeError) as e:
            raise DiscordError(f'Malformed identity response: {e}') from e

    @property
    def joins_guild(self) -> bool:
        """Whether new logins are added to the configured guild."""
        return bool(self.guild_id and self.bot_token)

    def add_guild_member(self, access_token: str, user_id: str) -> int:
        """
        Add a user to the configured guild.

        Returns
        -------
        int
            201 if the user was added, 204 if they were already a member.

        Raises
        ------
        :class:`DiscordUnauthorized`
            Raised if the bot token is not accepted.

        """
        url = GUILD_MEMBER_URL.format(guild_id=quote(str(self.guild_id)),
                                      user_id=quote(user_id))
        response = self._request('put', url, json={
            'access_token': access_token
        }, headers={'Authorization': f'Bot {self.bot_token}'})
        if response.status_code == requests.codes.unauthorized:
            raise DiscordUnauthorized('Bot token was rejected')
        if response.status_code not in (requests.codes.created,
                                        requests.codes.no_content):
            raise DiscordError(f'Guild join failed with status'
                               f' {response.status_code}: {response.text}')
        return response.status_code

    def _request(self, method: str, url: str,
                 **kwargs: Any) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self.timeout,
                                         **kwargs)
        except requests.exceptions.RequestException as e:
            raise DiscordError(f'Could not reach Discord: {e}') from e

    def _json(self, response: requests.Response,
              strict: bool = True) -> Dict[str, Any]:
        try:
            data: Dict[str, Any] = response.json()
        except (json.decoder.JSONDecodeError, ValueError) as e:
            if not strict:
                return {}
            raise DiscordError('Could not decode response') from e
        if not isinstance(data, dict):
            if not strict:
                return {}
            raise DiscordError('Unexpected response body')
        return data


def init_app(app: Optional[LocalProxy] = None) -> None:
    """
    Set required configuration defaults for the application.

    Parameters
    ----------
    app : :class:`werkzeug.local.LocalProxy`
    """
    if app is not None:
        app.config.setdefault('DISCORD_CLIENT_ID', '')
        app.config.setdefault('DISCORD_CLIENT_SECRET', '')
        app.config.setdefault('DISCORD_REDIRECT_URI', '')
        app.config.setdefault('DISCORD_GUILD_ID', None)
        app.config.setdefault('DISCORD_BOT_TOKEN', None)
        app.config.setdefault('DISCORD_TIMEOUT', '10')


def get_session(app: Optional[LocalProxy] = None) -> DiscordSession:
    """Create a new Discord session from the application config."""
    config = get_application_config(app)
    return DiscordSession(
        client_id=config['DISCORD_CLIENT_ID'],
        client_secret=config['DISCORD_CLIENT_SECRET'],
        redirect_uri=config['DISCORD_REDIRECT_URI'],
        guild_id=config.get('DISCORD_GUILD_ID'),
        bot_token=config.get('DISCORD_BOT_TOKEN'),
        timeout=float(config.get('DISCORD_TIMEOUT', '10'))
    )


def current_session(app: Optional[LocalProxy] = None) -> DiscordSession:
    """Get the current Discord session for this context (if there is one)."""
    g = get_application_global()
    if g:
        if 'discord' not in g:
            g.discord = get_session(app)  # type: ignore
        return g.discord  # type: ignore
    return get_session(app)


@wraps(DiscordSession.authorization_url)
def authorization_url() -> str:
    """Wrapper for :meth:`DiscordSession.authorization_url`."""
    return current_session().authorization_url()


@wraps(DiscordSession.exchange_code)
def exchange_code(code: str) -> domain.AccessTokenExchange:
    """Wrapper for :meth:`DiscordSession.exchange_code`."""
    return current_session().exchange_code(code)


@wraps(DiscordSession.identity)
def identity(exchange: domain.AccessTokenExchange) -> domain.DiscordUser:
    """Wrapper for :meth:`DiscordSession.identity`."""
    return current_session().identity(exchange)


@wraps(DiscordSession.add_guild_member)
def add_guild_member(access_token: str, user_id: str) -> int:
    """Wrapper for :meth:`DiscordSession.add_guild_member`."""
    return current_session().add_guild_member(access_token, user_id)
