"""
Internal service API for the bearer-token session store.

Used to create, refresh, list, and invalidate user sessions. Sessions live in
Redis, independently of the relational store. Each session is reachable by
three keys, all expiring together:

``session:<token>``
    The signed, serialized :class:`.domain.Session`. This is the primary
    lookup path, used to authorize requests.
``session_by_id:<session_id>``
    The bearer token of the session, so that a session can be invalidated by
    id (e.g. from a session-management view) without exposing tokens.
``user_sessions:<user_id>``
    A sorted set of the user's session ids, scored by expiry time.

Every write touching more than one of these keys runs in a single MULTI/EXEC
transaction, and every read-check-write sequence WATCHes the keys it read, so
that a concurrent reader never observes the indices out of step.

Security-relevant events (session creation, ip and user-agent changes) are
recorded in the user's activity log before the session is mutated. If the
activity log cannot be written, the operation fails and the session is left
as it was.
"""

import secrets
import time
import uuid
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Callable, List, Optional

import fakeredis
import jwt
import redis
from pytz import UTC
from retry.api import retry_call

from ... import domain
from ...context import get_application_config, get_application_global
from ...logging import getLogger
from ...services import activitylog
from ..exceptions import SessionCreationFailed, SessionDeletionFailed, \
    SessionNotFound, SessionOwnershipError, SessionStoreError, InvalidToken

logger = getLogger(__name__)

TOKEN_BYTES = 60

SESSION_CREATED = 'session_created'
SESSION_CHANGED_IP = 'session_changed_ip'
SESSION_CHANGED_USER_AGENT = 'session_changed_user_agent'


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Generate a URL-safe bearer token with ``nbytes`` of entropy."""
    # Colons delimit key namespaces in the store.
    return secrets.token_urlsafe(nbytes).replace(':', '_')


class SessionStore(object):
    """
    Manages sessions in Redis.

    The Redis client is thread safe and connections are attached at the time
    a command is executed. This class provides a container for configuration
    and for the activity log to which session events are written.
    """

    def __init__(self, r: redis.Redis, secret: str,
                 activities: Any, duration: int = 2592000) -> None:
        """
        Set up the store.

        Parameters
        ----------
        r : :class:`redis.Redis`
            Must be created with ``decode_responses=True``.
        secret : str
            Used to sign serialized sessions.
        activities : object
            An activity store (see :mod:`clicker.services.activitylog`).
        duration : int
            Lifetime of a session, in seconds, from its last refresh.

        """
        self.r = r
        self._secret = secret
        self._activities = activities
        self._duration = duration

    def register_new(self, user_id: int, ip_address: str,
                     user_agent: str) -> domain.Session:
        """
        Create a new session for a user.

        Parameters
        ----------
        user_id : int
        ip_address : str
        user_agent : str

        Returns
        -------
        :class:`.domain.Session`

        Raises
        ------
        :class:`SessionCreationFailed`
            Raised if the creation event could not be recorded, or if the
            session could not be written. In either case no part of the
            session is stored.

        """
        now = datetime.now(tz=UTC)
        session = domain.Session(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            token=generate_token(),
            ip_address=ip_address,
            user_agent=user_agent,
            last_accessed=now,
            expires_at=now + timedelta(seconds=self._duration)
        )
        try:
            self._record(user_id, SESSION_CREATED, {
                'ip': ip_address,
                'userAgent': user_agent,
                'session_id': session.session_id
            })
        except activitylog.ActivityLogUnavailable as e:
            raise SessionCreationFailed(f'Could not record event: {e}') from e

        try:
            with self.r.pipeline(transaction=True) as pipe:
                self._write(pipe, session)
                pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Created session %s for user %s', session.session_id,
                     user_id)
        return session

    def by_token(self, token: str) -> domain.Session:
        """
        Load a session by bearer token.

        Raises
        ------
        :class:`SessionNotFound`
            Raised if there is no such session, or it has expired.

        """
        try:
            raw: Optional[str] = self.r.get(self._token_key(token))
        except redis.exceptions.RedisError as e:
            raise SessionStoreError(f'Failed to load session: {e}') from e
        if raw is None:
            raise SessionNotFound('No such session')
        return self._decode(raw)

    def exists(self, token: str) -> bool:
        """Check whether a session with bearer token ``token`` is live."""
        try:
            return bool(self.r.exists(self._token_key(token)))
        except redis.exceptions.RedisError as e:
            raise SessionStoreError(f'Failed to check session: {e}') from e

    def active_sessions(self, token: str) -> List[domain.Session]:
        """
        List the live sessions of the user who owns ``token``.

        Sessions are ordered most recently accessed first. The session
        identified by ``token`` is included.

        Raises
        ------
        :class:`SessionNotFound`
            Raised if ``token`` does not identify a live session.

        """
        anchor = self.by_token(token)
        index = self._index_key(anchor.user_id)
        now = time.time()
        try:
            self.r.zremrangebyscore(index, '-inf', now)
            session_ids = self.r.zrangebyscore(index, f'({now}', '+inf')
            if not session_ids:
                return []
            tokens = self.r.mget([self._id_key(s) for s in session_ids])
            keys = [self._token_key(t) for t in tokens if t is not None]
            raw_sessions = self.r.mget(keys) if keys else []
        except redis.exceptions.RedisError as e:
            raise SessionStoreError(f'Failed to list sessions: {e}') from e

        sessions = [self._decode(raw) for raw in raw_sessions
                    if raw is not None]
        return sorted([s for s in sessions if s.user_id == anchor.user_id],
                      key=lambda s: s.last_accessed, reverse=True)

    def acquire_and_refresh(self, token: str, ip_address: str,
                            user_agent: str) -> domain.Session:
        """
        Load a session and slide its expiry forward.

        The ip address, user agent, last access time and expiry are always
        rewritten. A change of ip address or of user agent is recorded in the
        owner's activity log first, one event per changed field.

        Raises
        ------
        :class:`SessionNotFound`
            Raised if there is no such session, or it was invalidated before
            the refresh could be written.
        :class:`SessionStoreError`
            Raised if an event could not be recorded or the refresh could not
            be written.

        """
        session = self.by_token(token)
        try:
            if session.ip_address != ip_address:
                self._record(session.user_id, SESSION_CHANGED_IP, {
                    'session_id': session.session_id,
                    'previous_ip': session.ip_address,
                    'new_ip': ip_address
                })
            if session.user_agent != user_agent:
                self._record(session.user_id, SESSION_CHANGED_USER_AGENT, {
                    'session_id': session.session_id,
                    'previous_user_agent': session.user_agent,
                    'new_user_agent': user_agent
                })
        except activitylog.ActivityLogUnavailable as e:
            raise SessionStoreError(f'Could not record event: {e}') from e

        now = datetime.now(tz=UTC)
        refreshed = session._replace(
            ip_address=ip_address,
            user_agent=user_agent,
            last_accessed=now,
            expires_at=now + timedelta(seconds=self._duration)
        )
        token_key = self._token_key(token)

        def _refresh(pipe: redis.client.Pipeline) -> None:
            if not pipe.exists(token_key):
                raise SessionNotFound('Session was invalidated')
            pipe.multi()
            self._write(pipe, refreshed)

        try:
            self.r.transaction(_refresh, token_key)
        except redis.exceptions.RedisError as e:
            raise SessionStoreError(f'Failed to refresh session: {e}') from e
        return refreshed

    def invalidate_by_id(self, user_id: int, session_id: str) -> None:
        """
        Invalidate one of a user's sessions by its id.

        Parameters
        ----------
        user_id : int
            The user requesting the invalidation.
        session_id : str

        Raises
        ------
        :class:`SessionNotFound`
            Raised if there is no such session.
        :class:`SessionOwnershipError`
            Raised if the session belongs to another user. Nothing is
            deleted.

        """
        id_key = self._id_key(session_id)

        def _invalidate(pipe: redis.client.Pipeline) -> None:
            token = pipe.get(id_key)
            if token is None:
                raise SessionNotFound(f'No such session: {session_id}')
            token_key = self._token_key(token)
            pipe.watch(token_key)
            raw = pipe.get(token_key)
            if raw is None:
                raise SessionNotFound(f'No such session: {session_id}')
            if self._decode(raw).user_id != user_id:
                raise SessionOwnershipError(
                    f'Session {session_id} belongs to another user'
                )
            pipe.multi()
            pipe.delete(token_key, id_key)
            pipe.zrem(self._index_key(user_id), session_id)

        self._transaction(_invalidate, id_key)

    def invalidate_by_auth_token(self, token: str) -> None:
        """
        Invalidate the session identified by bearer token ``token``.

        Raises
        ------
        :class:`SessionNotFound`
            Raised if there is no such session.

        """
        token_key = self._token_key(token)

        def _invalidate(pipe: redis.client.Pipeline) -> None:
            raw = pipe.get(token_key)
            if raw is None:
                raise SessionNotFound('No such session')
            session = self._decode(raw)
            pipe.multi()
            pipe.delete(token_key, self._id_key(session.session_id))
            pipe.zrem(self._index_key(session.user_id), session.session_id)

        self._transaction(_invalidate, token_key)

    def invalidate_all_except(self, token: str) -> None:
        """Invalidate every session of the owner of ``token`` but that one."""
        anchor = self.by_token(token)
        others = [session for session in self.active_sessions(token)
                  if session.token != token]
        if not others:
            return
        try:
            with self.r.pipeline(transaction=True) as pipe:
                for session in others:
                    pipe.delete(self._token_key(session.token),
                                self._id_key(session.session_id))
                    pipe.zrem(self._index_key(anchor.user_id),
                              session.session_id)
                pipe.execute()
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        logger.debug('Invalidated %i other sessions of user %s',
                     len(others), anchor.user_id)

    def is_available(self) -> bool:
        """Check whether Redis answers."""
        try:
            return bool(self.r.ping())
        except redis.exceptions.RedisError as e:
            logger.error('Session store is unavailable: %s', e)
            return False

    def _record(self, user_id: int, name: str, data: dict) -> None:
        retry_call(self._activities.add_log,
                   fargs=[user_id, domain.Activity(name, data)],
                   exceptions=activitylog.ActivityLogUnavailable,
                   tries=3, delay=0.1, backoff=2)

    def _write(self, pipe: redis.client.Pipeline,
               session: domain.Session) -> None:
        """Queue the writes of all three keys of ``session`` on ``pipe``."""
        pipe.set(self._id_key(session.session_id), session.token,
                 ex=self._duration)
        pipe.set(self._token_key(session.token), self._encode(session),
                 ex=self._duration)
        index = self._index_key(session.user_id)
        pipe.zadd(index, {session.session_id: session.expires_at.timestamp()})
        pipe.expire(index, self._duration)

    def _transaction(self, func: Callable, *watches: str) -> None:
        try:
            self.r.transaction(func, *watches)
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e

    def _encode(self, session: domain.Session) -> str:
        return jwt.encode(domain.to_dict(session), self._secret,
                          algorithm='HS256')

    def _decode(self, raw: str) -> domain.Session:
        try:
            session: domain.Session = domain.from_dict(
                domain.Session,
                jwt.decode(raw, self._secret, algorithms=['HS256'])
            )
        except jwt.exceptions.InvalidTokenError as e:
            raise InvalidToken('Invalid or corrupted session') from e
        return session

    @staticmethod
    def _token_key(token: str) -> str:
        return f'session:{token}'

    @staticmethod
    def _id_key(session_id: str) -> str:
        return f'session_by_id:{session_id}'

    @staticmethod
    def _index_key(user_id: int) -> str:
        return f'user_sessions:{user_id}'


def init_app(app: object = None) -> None:
    """Set default configuration parameters for an application instance."""
    config = get_application_config(app)
    config.setdefault('REDIS_HOST', 'localhost')
    config.setdefault('REDIS_PORT', '6379')
    config.setdefault('REDIS_DATABASE', '0')
    config.setdefault('REDIS_TOKEN', None)
    config.setdefault('REDIS_FAKE', False)
    config.setdefault('JWT_SECRET', 'foosecret')
    config.setdefault('SESSION_DURATION', '2592000')


def get_redis(app: Any = None) -> redis.Redis:
    """
    Get a Redis client for the configured server.

    If ``REDIS_FAKE`` is set, the client talks to an in-process
    :mod:`fakeredis` server that lives as long as the application.
    """
    config = get_application_config(app)
    if config.get('REDIS_FAKE'):
        if app is None:
            from flask import current_app
            app = current_app
        if 'fakeredis' not in app.extensions:
            app.extensions['fakeredis'] = fakeredis.FakeServer()
        return fakeredis.FakeRedis(server=app.extensions['fakeredis'],
                                   decode_responses=True)
    return redis.Redis(host=config.get('REDIS_HOST', 'localhost'),
                       port=int(config.get('REDIS_PORT', '6379')),
                       db=int(config.get('REDIS_DATABASE', '0')),
                       password=config.get('REDIS_TOKEN', None),
                       decode_responses=True)


def get_redis_session(app: Any = None) -> SessionStore:
    """Get a new session store."""
    config = get_application_config(app)
    secret = config['JWT_SECRET']
    duration = int(config.get('SESSION_DURATION', '2592000'))
    return SessionStore(get_redis(app), secret, activitylog.current_store(),
                        duration=duration)


def current_session() -> SessionStore:
    """Get/create :class:`.SessionStore` for this context."""
    g = get_application_global()
    if not g:
        return get_redis_session()
    if 'redis' not in g:
        g.redis = get_redis_session()
    return g.redis      # type: ignore


@wraps(SessionStore.register_new)
def register_new(user_id: int, ip_address: str,
                 user_agent: str) -> domain.Session:
    """Create a new session."""
    return current_session().register_new(user_id, ip_address, user_agent)


@wraps(SessionStore.by_token)
def by_token(token: str) -> domain.Session:
    """Load a session by bearer token."""
    return current_session().by_token(token)


@wraps(SessionStore.exists)
def exists(token: str) -> bool:
    """Check whether a session exists."""
    return current_session().exists(token)


@wraps(SessionStore.active_sessions)
def active_sessions(token: str) -> List[domain.Session]:
    """List the live sessions of the owner of ``token``."""
    return current_session().active_sessions(token)


@wraps(SessionStore.acquire_and_refresh)
def acquire_and_refresh(token: str, ip_address: str,
                        user_agent: str) -> domain.Session:
    """Load and refresh a session."""
    return current_session().acquire_and_refresh(token, ip_address,
                                                 user_agent)


@wraps(SessionStore.invalidate_by_id)
def invalidate_by_id(user_id: int, session_id: str) -> None:
    """Invalidate a session by id."""
    return current_session().invalidate_by_id(user_id, session_id)


@wraps(SessionStore.invalidate_by_auth_token)
def invalidate_by_auth_token(token: str) -> None:
    """Invalidate a session by bearer token."""
    return current_session().invalidate_by_auth_token(token)


@wraps(SessionStore.invalidate_all_except)
def invalidate_all_except(token: str) -> None:
    """Invalidate all other sessions of the owner of ``token``."""
    return current_session().invalidate_all_except(token)


@wraps(SessionStore.is_available)
def is_available() -> bool:
    """Check whether the session store answers."""
    return current_session().is_available()
