"""Public user profiles."""

from ... import domain
from . import util
from .exceptions import NoSuchProfile
from .models import DBProfile


def by_user_id(user_id: int) -> domain.Profile:
    """
    Load the profile of a user.

    Raises
    ------
    :class:`NoSuchProfile`

    """
    db_profile = util.current_session().query(DBProfile) \
        .filter(DBProfile.user_id == user_id) \
        .first()
    if db_profile is None:
        raise NoSuchProfile(f'No profile for user {user_id}')
    return domain.Profile(
        profile_id=db_profile.profile_id,
        user_id=db_profile.user_id,
        name=db_profile.name,
        avatar_url=db_profile.avatar_url
    )
