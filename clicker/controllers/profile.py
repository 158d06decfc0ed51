"""Public user profiles."""

from http import HTTPStatus as status

from werkzeug.exceptions import NotFound

from ..services import datastore
from . import ResponseData, parse_id


def view_profile(user_id: str) -> ResponseData:
    """Get the public profile of a user."""
    _user_id = parse_id(user_id, 'invalid user id')
    try:
        profile = datastore.profiles.by_user_id(_user_id)
    except datastore.NoSuchProfile as e:
        raise NotFound('profile not found') from e
    return {'name': profile.name, 'avatarUrl': profile.avatar_url}, \
        status.OK, {}
