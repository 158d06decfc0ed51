"""Tests for :mod:`clicker.domain`."""

from datetime import datetime, timedelta
from unittest import TestCase

from pytz import UTC

from .. import domain


class TestSession(TestCase):
    """A session knows when it expires."""

    def setUp(self):
        now = datetime.now(tz=UTC)
        self.session = domain.Session(
            session_id='1a2b', user_id=5, token='footoken',
            ip_address='10.0.0.1', user_agent='clicker/1.0',
            last_accessed=now, expires_at=now + timedelta(seconds=60)
        )

    def test_not_expired(self):
        """The expiry is in the future."""
        self.assertFalse(self.session.expired)
        self.assertGreater(self.session.expires, 0)
        self.assertLessEqual(self.session.expires, 60)

    def test_expired(self):
        """The expiry is in the past."""
        session = self.session._replace(
            expires_at=datetime.now(tz=UTC) - timedelta(seconds=1)
        )
        self.assertTrue(session.expired)
        self.assertEqual(session.expires, 0)

    def test_from_dict(self):
        """Datetimes are parsed from ISO-8601 strings."""
        data = domain.to_dict(self.session)
        self.assertIsInstance(data['last_accessed'], str)
        session = domain.from_dict(domain.Session, data)
        self.assertEqual(session, self.session)


class TestProgram(TestCase):
    """Nested program files are coerced."""

    def test_from_dict(self):
        """Files given as dicts become :class:`domain.ProgramFile`."""
        program = domain.from_dict(domain.Program, {
            'program_id': 1,
            'file_type': 'installer',
            'os': 'windows',
            'arch': 'amd64',
            'branch': 'stable',
            'files': [{'path': 'clicker.exe',
                       'download_url': 'https://cdn/clicker.exe',
                       'hash': 'abc'}]
        })
        self.assertIsInstance(program.files[0], domain.ProgramFile)
        self.assertEqual(program.files[0].path, 'clicker.exe')

    def test_user_nested_identity(self):
        """Nested NamedTuples are instantiated from dicts."""
        user = domain.from_dict(domain.User, {
            'user_id': 3,
            'created_at': '2021-06-01T12:00:00+00:00',
            'email': 'foo@bar.com',
            'discord': {'discord_id': '1234', 'refresh_token': 'rt'}
        })
        self.assertEqual(user.discord.discord_id, '1234')
        self.assertEqual(user.created_at.year, 2021)


class TestDiscordUser(TestCase):
    def test_avatar_url(self):
        user = domain.DiscordUser(discord_id='42', username='foo',
                                  avatar_hash='cafe')
        self.assertEqual(user.avatar_url,
                         'https://cdn.discordapp.com/avatars/42/cafe.png')

    def test_authorization(self):
        exchange = domain.AccessTokenExchange(access_token='abc',
                                              token_type='Bearer')
        self.assertEqual(exchange.authorization, 'Bearer abc')


class TestDefaults(TestCase):
    """Default field values are not shared mutable state."""

    def test_user_defaults(self):
        user = domain.User(user_id=1, created_at=datetime.now(tz=UTC),
                           email='foo@bar.com',
                           discord=domain.DiscordIdentity('1', 'rt'))
        self.assertEqual(tuple(user.role_ids), ())
        self.assertEqual(tuple(user.roles), ())
        with self.assertRaises(AttributeError):
            user.role_ids.append('admin')

    def test_activity_data(self):
        first = domain.Activity('session_created')
        with self.assertRaises(TypeError):
            first.data['ip'] = '10.0.0.1'
        self.assertEqual(dict(domain.Activity('other').data), {})

    def test_program_files(self):
        program = domain.Program(program_id=1, file_type='installer',
                                 os='windows', arch='amd64', branch='stable')
        with self.assertRaises(AttributeError):
            program.files.append(domain.ProgramFile('a', 'b', 'c'))

    def test_serialized(self):
        """Immutable defaults still serialize to plain containers."""
        data = domain.to_dict(domain.Activity('session_created'))
        self.assertEqual(data, {'name': 'session_created', 'data': {}})
        self.assertIsInstance(data['data'], dict)
