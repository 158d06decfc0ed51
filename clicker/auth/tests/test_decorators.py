"""Tests for :mod:`clicker.auth.decorators`."""

from datetime import datetime, timedelta
from unittest import TestCase, mock

from flask import Flask, request
from pytz import UTC
from werkzeug.exceptions import BadRequest, Unauthorized

from ... import domain
from .. import decorators, roles
from ..exceptions import SessionNotFound, SessionStoreError


def make_session(user_id=7):
    now = datetime.now(tz=UTC)
    return domain.Session(
        session_id='fooid', user_id=user_id, token='footoken',
        ip_address='127.0.0.1', user_agent='agent',
        last_accessed=now, expires_at=now + timedelta(days=30)
    )


def make_user(user_roles=()):
    return domain.User(
        user_id=7, created_at=datetime.now(tz=UTC), email='foo@foo.com',
        discord=domain.DiscordIdentity('1234', 'rt'),
        role_ids=[role.role_id for role in user_roles],
        roles=list(user_roles)
    )


class TestAuthorized(TestCase):
    """Tests for :func:`.decorators.authorized`."""

    def setUp(self):
        @decorators.authorized
        def protected():
            """A protected function."""
            return 'ok'

        self.protected = protected
        self.app = Flask('test')

    def request_with(self, **headers):
        """A request context from ``10.0.0.1`` carrying ``headers``."""
        return self.app.test_request_context(
            headers=headers,
            environ_base={'REMOTE_ADDR': '10.0.0.1'}
        )

    def test_no_header(self):
        """No authorization header is present on the request."""
        with self.request_with():
            with self.assertRaises(Unauthorized) as ctx:
                self.protected()
        self.assertEqual(ctx.exception.description, decorators.UNAUTHORIZED)

    def test_not_bearer(self):
        with self.request_with(Authorization='Basic Zm9vOmJhcg=='):
            with self.assertRaises(BadRequest) as ctx:
                self.protected()
        self.assertEqual(ctx.exception.description, 'invalid auth type')

    @mock.patch(f'{decorators.__name__}.store')
    def test_unknown_session(self, mock_store):
        mock_store.acquire_and_refresh.side_effect = SessionNotFound
        with self.request_with(Authorization='Bearer footoken'):
            with self.assertRaises(Unauthorized):
                self.protected()

    @mock.patch(f'{decorators.__name__}.store')
    def test_store_failure(self, mock_store):
        """Other failures of the store are not mistaken for bad tokens."""
        mock_store.acquire_and_refresh.side_effect = SessionStoreError
        with self.request_with(Authorization='Bearer footoken'):
            with self.assertRaises(SessionStoreError):
                self.protected()

    @mock.patch(f'{decorators.__name__}.get_registry')
    @mock.patch(f'{decorators.__name__}.datastore')
    @mock.patch(f'{decorators.__name__}.store')
    def test_valid(self, mock_store, mock_datastore, mock_get_registry):
        """The session and user are attached to the request."""
        session = make_session()
        user = make_user()
        mock_store.acquire_and_refresh.return_value = session
        mock_datastore.users.by_id.return_value = user

        with self.request_with(Authorization='Bearer footoken',
                               **{'User-Agent': 'agent'}):
            self.assertEqual(self.protected(), 'ok')
            self.assertEqual(request.auth, session)
            self.assertEqual(request.user, user)
        mock_store.acquire_and_refresh.assert_called_once_with(
            'footoken', '10.0.0.1', 'agent'
        )
        mock_datastore.users.by_id.assert_called_once_with(
            7, mock_get_registry.return_value
        )


class TestPermitted(TestCase):
    """Tests for :func:`.decorators.permitted`."""

    def setUp(self):
        @decorators.permitted(roles.ADMIN_DASHBOARD)
        def protected():
            """A protected function."""
            return 'ok'

        self.protected = protected

    @mock.patch(f'{decorators.__name__}.current_roles')
    def test_permitted(self, mock_current_roles):
        mock_current_roles.return_value = [roles.PRO, roles.ADMIN]
        self.assertEqual(self.protected(), 'ok')

    @mock.patch(f'{decorators.__name__}.current_roles')
    def test_not_permitted(self, mock_current_roles):
        """Lacking a permission looks like lacking a session."""
        mock_current_roles.return_value = [roles.PRO]
        with self.assertRaises(Unauthorized) as ctx:
            self.protected()
        self.assertEqual(ctx.exception.description, decorators.UNAUTHORIZED)

    @mock.patch(f'{decorators.__name__}.current_roles')
    def test_forbidden_later(self, mock_current_roles):
        """A later role can take a permission away."""
        mock_current_roles.return_value = [
            roles.ADMIN, roles.Role('suspended', {roles.ADMIN_DASHBOARD: False})
        ]
        with self.assertRaises(Unauthorized):
            self.protected()


def test_request_starts_unauthenticated(app):
    """Every request starts without a session or user."""
    with app.test_request_context():
        app.preprocess_request()
        assert request.auth is None
        assert request.user is None
