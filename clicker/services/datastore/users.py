"""User directory: durable identity records linked to Discord accounts."""

from typing import Any, Optional

from sqlalchemy import func

from ... import domain
from ...logging import getLogger
from . import util
from .exceptions import NoSuchUser
from .models import DBProfile, DBUser

logger = getLogger(__name__)


def register_discord_user(discord_user: domain.DiscordUser,
                          refresh_token: str,
                          registry: Optional[Any] = None) -> domain.User:
    """
    Register a user who logged in with Discord, or update a returning one.

    The user is matched on their Discord id. The e-mail address and refresh
    token of a returning user are replaced, as are the name and avatar of
    their profile. The user and the profile are written in one transaction.

    Parameters
    ----------
    discord_user : :class:`domain.DiscordUser`
    refresh_token : str
    registry : :class:`clicker.auth.roles.RoleRegistry`
        If provided, used to resolve the roles of the returned user.

    Returns
    -------
    :class:`domain.User`

    """
    with util.transaction() as dbsession:
        db_user = dbsession.query(DBUser) \
            .filter(DBUser.discord_id == discord_user.discord_id) \
            .first()
        if db_user is None:
            db_user = DBUser(role_ids=[], discord_id=discord_user.discord_id)
            dbsession.add(db_user)
            logger.debug('Registering new Discord user %s',
                         discord_user.discord_id)
        db_user.email = discord_user.email
        db_user.discord_refresh_token = refresh_token
        if db_user.profile is None:
            db_user.profile = DBProfile()
        db_user.profile.name = discord_user.username
        db_user.profile.avatar_url = discord_user.avatar_url
    return _to_domain(db_user, registry)


def by_id(user_id: int, registry: Optional[Any] = None) -> domain.User:
    """
    Load a user by id.

    Raises
    ------
    :class:`NoSuchUser`

    """
    db_user = util.current_session().get(DBUser, user_id)
    if db_user is None:
        raise NoSuchUser(f'No such user: {user_id}')
    return _to_domain(db_user, registry)


def update(user: domain.User) -> None:
    """Persist the e-mail, roles and Discord link of ``user``."""
    with util.transaction() as dbsession:
        db_user = dbsession.get(DBUser, user.user_id)
        if db_user is None:
            raise NoSuchUser(f'No such user: {user.user_id}')
        db_user.email = user.email
        db_user.role_ids = list(user.role_ids)
        db_user.discord_id = user.discord.discord_id
        db_user.discord_refresh_token = user.discord.refresh_token


def count() -> int:
    """Get the number of registered users."""
    return util.current_session().query(func.count(DBUser.user_id)).scalar()


def _to_domain(db_user: DBUser, registry: Optional[Any]) -> domain.User:
    role_ids = list(db_user.role_ids or [])
    return domain.User(
        user_id=db_user.user_id,
        created_at=util.utc(db_user.created_at),
        email=db_user.email,
        discord=domain.DiscordIdentity(
            discord_id=db_user.discord_id,
            refresh_token=db_user.discord_refresh_token
        ),
        role_ids=role_ids,
        roles=registry.resolve(role_ids) if registry is not None else []
    )
