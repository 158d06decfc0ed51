"""Core concepts of the clicker account and distribution service."""

from datetime import datetime
from types import MappingProxyType
from typing import (Any, Mapping, NamedTuple, Sequence, get_args, get_origin,
                    get_type_hints)

import dateutil.parser
from pytz import UTC

AVATAR_URL = 'https://cdn.discordapp.com/avatars/{discord_id}/{avatar}.png'


class Session(NamedTuple):
    """Represents an authenticated bearer-token session."""

    session_id: str
    """Unique identifier (UUID) for the session."""

    user_id: int
    """Identifier of the :class:`.User` that owns the session."""

    token: str
    """Opaque bearer token presented by the client. Distinct from the id."""

    ip_address: str
    """The IP address from which the session was last used."""

    user_agent: str
    """The user agent of the client that last used the session."""

    last_accessed: datetime
    """The datetime at which the session was last acquired."""

    expires_at: datetime
    """The datetime at which the session expires."""

    @property
    def expired(self) -> bool:
        """Expired if the current time is later than :attr:`.expires_at`."""
        return datetime.now(tz=UTC) >= self.expires_at

    @property
    def expires(self) -> int:
        """
        Number of seconds until the session expires.

        If the session is already expired, returns 0.
        """
        duration = (self.expires_at - datetime.now(tz=UTC)).total_seconds()
        return max(int(duration), 0)


class DiscordIdentity(NamedTuple):
    """The Discord account linked to a :class:`.User`."""

    discord_id: str
    """Discord snowflake of the linked account."""

    refresh_token: str
    """Long-lived OAuth refresh token issued by Discord."""


class User(NamedTuple):
    """Represents a registered user and their roles."""

    user_id: int
    """Unique identifier for the user."""

    created_at: datetime
    """When the user first logged in."""

    email: str
    """The e-mail address reported by the identity provider."""

    discord: DiscordIdentity
    """Linked external identity."""

    role_ids: Sequence[str] = ()
    """Role identifiers, as stored. Order is significant."""

    roles: Sequence[Any] = ()
    """
    Resolved :class:`clicker.auth.roles.Role` instances.

    These are resolved against the application's role registry when the user
    is loaded; identifiers unknown to the registry are dropped.
    """


class Profile(NamedTuple):
    """Public profile of a user."""

    profile_id: int
    user_id: int
    name: str
    avatar_url: str


class Activity(NamedTuple):
    """An event to be recorded in a user's activity log."""

    name: str
    """Event name, e.g. ``session_created``."""

    data: Mapping[str, Any] = MappingProxyType({})
    """Open-ended structured payload."""


class ActivityLog(NamedTuple):
    """A recorded, immutable activity log entry."""

    log_id: int
    """Monotonically increasing identifier. Used as the pagination cursor."""

    created_at: datetime
    user_id: int
    name: str
    data: Mapping[str, Any] = MappingProxyType({})


class ProgramFile(NamedTuple):
    """A single file of a program build, e.g. an installer or a config."""

    path: str
    """Path relative to the client installation directory."""

    download_url: str
    """Where the file can be downloaded."""

    hash: str
    """SHA-256 digest of the file."""


class Program(NamedTuple):
    """A published build of the client program."""

    program_id: int
    file_type: str
    os: str
    arch: str
    branch: str
    files: Sequence[ProgramFile] = ()

    @classmethod
    def before_init(cls, data: dict) -> None:
        """Make sure that ``files`` are :class:`.ProgramFile` instances."""
        data['files'] = [
            from_dict(ProgramFile, obj) if isinstance(obj, dict) else obj
            for obj in data.get('files', [])
        ]


class DiscordUser(NamedTuple):
    """Identity reported by Discord for an access token."""

    discord_id: str
    username: str
    email: str = ''
    avatar_hash: str = ''

    @property
    def avatar_url(self) -> str:
        """URL of the user's avatar on the Discord CDN."""
        return AVATAR_URL.format(discord_id=self.discord_id,
                                 avatar=self.avatar_hash)


class AccessTokenExchange(NamedTuple):
    """Result of exchanging an OAuth authorization code."""

    access_token: str
    token_type: str
    refresh_token: str = ''
    expires_in: int = 0

    @property
    def authorization(self) -> str:
        """Value for the ``Authorization`` header of identity requests."""
        return f'{self.token_type} {self.access_token}'


# Serialization.


def to_dict(obj: tuple) -> dict:
    """
    Serialize a domain object into JSON-compatible primitives.

    Nested domain objects become dicts, datetimes become ISO-8601 strings.
    Anything that is not a domain object serializes to an empty dict.

    Parameters
    ----------
    obj : tuple
        A NamedTuple instance.

    Returns
    -------
    dict

    """
    if not _is_a_namedtuple(type(obj)):
        return {}
    return {key: _primitive(value)
            for key, value in obj._asdict().items()}  # type: ignore


def from_dict(cls: type, data: dict) -> Any:
    """
    Rebuild a domain object of type ``cls`` from :func:`to_dict` output.

    Keys that are not fields of ``cls`` are ignored, and missing fields take
    their defaults. A class may define a ``before_init`` classmethod to
    adjust the field values before instantiation.

    Parameters
    ----------
    cls: type
        Any NamedTuple class.
    data: dict

    Returns
    -------
    NamedTuple
        An instance of ``cls``.
    """
    values = {field: _coerce(field_type, data[field])
              for field, field_type in get_type_hints(cls).items()
              if field in data}
    if hasattr(cls, 'before_init'):
        cls.before_init(values)
    return cls(**values)


def _primitive(value: Any) -> Any:
    if _is_a_namedtuple(type(value)):
        return to_dict(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_primitive(item) for item in value]
    if isinstance(value, (dict, MappingProxyType)):
        return {key: _primitive(item) for key, item in value.items()}
    return value


def _is_a_namedtuple(candidate: Any) -> bool:
    return isinstance(candidate, type) and issubclass(candidate, tuple) \
        and hasattr(candidate, '_fields')


def _coerce(field_type: Any, value: Any) -> Any:
    """Cast a serialized ``value`` back to the declared ``field_type``."""
    # Unwraps e.g. Optional[datetime] to (datetime, NoneType).
    candidates = get_args(field_type) if get_origin(field_type) is not None \
        else (field_type,)
    if isinstance(value, str) and datetime in candidates:
        return dateutil.parser.parse(value)
    if isinstance(value, dict):
        for candidate in candidates:
            if _is_a_namedtuple(candidate):
                return from_dict(candidate, value)
    return value
