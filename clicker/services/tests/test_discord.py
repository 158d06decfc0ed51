"""Tests for :mod:`clicker.services.discord`."""

from typing import Any
from unittest import TestCase, mock
from urllib.parse import parse_qs, urlparse

import requests

from ... import domain
from .. import discord


def session_returning(mock_session: Any, status_code: int,
                      body: Any = None) -> mock.MagicMock:
    """Make the mocked :class:`requests.Session` respond once."""
    mock_response = mock.MagicMock(status_code=status_code, text=str(body))
    if isinstance(body, Exception):
        mock_response.json.side_effect = body
    else:
        mock_response.json.return_value = body
    mock_session_instance = mock.MagicMock()
    mock_session_instance.request.return_value = mock_response
    mock_session.return_value = mock_session_instance
    return mock_session_instance


def make_session(**kwargs: Any) -> discord.DiscordSession:
    params = {'client_id': 'cid', 'client_secret': 'csecret',
              'redirect_uri': 'https://clicker.example.com/login'}
    params.update(kwargs)
    return discord.DiscordSession(**params)


class TestAuthorizationURL(TestCase):
    def test_url(self):
        """The URL asks for a code with our client id and scopes."""
        url = urlparse(make_session().authorization_url())
        self.assertEqual(f'{url.scheme}://{url.netloc}{url.path}',
                         discord.AUTHORIZE_URL)
        query = parse_qs(url.query)
        self.assertEqual(query['client_id'], ['cid'])
        self.assertEqual(query['redirect_uri'],
                         ['https://clicker.example.com/login'])
        self.assertEqual(query['response_type'], ['code'])
        self.assertEqual(query['scope'], ['email identify guilds.join'])


class TestExchangeCode(TestCase):
    """The method :meth:`.exchange_code` trades a code for a token."""

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_ok(self, mock_session: Any) -> None:
        instance = session_returning(mock_session, 200, {
            'access_token': 'at', 'token_type': 'Bearer',
            'refresh_token': 'rt', 'expires_in': 604800
        })
        exchange = make_session().exchange_code('thecode')
        self.assertEqual(exchange, domain.AccessTokenExchange(
            access_token='at', token_type='Bearer', refresh_token='rt',
            expires_in=604800
        ))
        args, kwargs = instance.request.call_args
        self.assertEqual(args, ('post', discord.TOKEN_URL))
        self.assertEqual(kwargs['data']['grant_type'], 'authorization_code')
        self.assertEqual(kwargs['data']['code'], 'thecode')
        self.assertEqual(kwargs['data']['client_secret'], 'csecret')
        self.assertEqual(kwargs['timeout'], 10.0)

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_invalid_code(self, mock_session: Any) -> None:
        session_returning(mock_session, 400, {
            'error': 'invalid_grant',
            'error_description': 'Invalid "code" in request.'
        })
        with self.assertRaises(discord.InvalidCode):
            make_session().exchange_code('badcode')

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_other_error(self, mock_session: Any) -> None:
        """Any other failure is not mistaken for an invalid code."""
        session_returning(mock_session, 500, ValueError('not json'))
        with self.assertRaises(discord.DiscordError) as ctx:
            make_session().exchange_code('thecode')
        self.assertNotIsInstance(ctx.exception, discord.InvalidCode)

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_unreachable(self, mock_session: Any) -> None:
        instance = mock.MagicMock()
        instance.request.side_effect = requests.exceptions.ConnectionError
        mock_session.return_value = instance
        with self.assertRaises(discord.DiscordError):
            make_session().exchange_code('thecode')


class TestIdentity(TestCase):
    """The method :meth:`.identity` fetches the user behind a token."""

    exchange = domain.AccessTokenExchange(access_token='at',
                                          token_type='Bearer')

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_ok(self, mock_session: Any) -> None:
        instance = session_returning(mock_session, 200, {
            'id': '80351110224678912', 'username': 'Nelly',
            'email': 'nelly@discord.com', 'avatar': '8342729096ea3675442027'
        })
        user = make_session().identity(self.exchange)
        self.assertEqual(user.discord_id, '80351110224678912')
        self.assertEqual(user.email, 'nelly@discord.com')
        self.assertEqual(user.avatar_hash, '8342729096ea3675442027')
        _, kwargs = instance.request.call_args
        self.assertEqual(kwargs['headers'], {'Authorization': 'Bearer at'})

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_no_email(self, mock_session: Any) -> None:
        """Users who did not share an e-mail have an empty address."""
        session_returning(mock_session, 200, {
            'id': '1', 'username': 'Nelly', 'email': None, 'avatar': None
        })
        user = make_session().identity(self.exchange)
        self.assertEqual(user.email, '')

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_unauthorized(self, mock_session: Any) -> None:
        session_returning(mock_session, 401, {'message': '401: Unauthorized'})
        with self.assertRaises(discord.DiscordUnauthorized):
            make_session().identity(self.exchange)


class TestAddGuildMember(TestCase):
    """The method :meth:`.add_guild_member` joins the user to our guild."""

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_added(self, mock_session: Any) -> None:
        instance = session_returning(mock_session, 201, {})
        session = make_session(guild_id='g1', bot_token='bt')
        self.assertTrue(session.joins_guild)
        self.assertEqual(session.add_guild_member('at', 'u1'), 201)
        args, kwargs = instance.request.call_args
        self.assertEqual(args, ('put',
                                'https://discord.com/api/guilds/g1/members/u1'))
        self.assertEqual(kwargs['json'], {'access_token': 'at'})
        self.assertEqual(kwargs['headers'], {'Authorization': 'Bot bt'})

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_already_member(self, mock_session: Any) -> None:
        session_returning(mock_session, 204)
        session = make_session(guild_id='g1', bot_token='bt')
        self.assertEqual(session.add_guild_member('at', 'u1'), 204)

    @mock.patch(f'{discord.__name__}.requests.Session')
    def test_unauthorized(self, mock_session: Any) -> None:
        session_returning(mock_session, 401)
        session = make_session(guild_id='g1', bot_token='bt')
        with self.assertRaises(discord.DiscordUnauthorized):
            session.add_guild_member('at', 'u1')

    def test_not_configured(self):
        self.assertFalse(make_session().joins_guild)
