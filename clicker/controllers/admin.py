"""Figures for the administrative dashboard."""

from http import HTTPStatus as status

from .. import domain
from ..services import datastore
from . import ResponseData


def dashboard(user: domain.User) -> ResponseData:
    """Summary figures for administrators."""
    return {
        'userId': user.user_id,
        'users': datastore.users.count(),
        'programs': datastore.programs.count()
    }, status.OK, {}
