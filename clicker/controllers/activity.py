"""The user's recent activity."""

from http import HTTPStatus as status
from typing import Optional

from werkzeug.exceptions import BadRequest

from .. import domain
from ..services import activitylog
from . import ResponseData, parse_id


def recent(user: domain.User, before: Optional[str],
           page_size: int) -> ResponseData:
    """
    Get a page of the user's activity log, newest first.

    Parameters
    ----------
    user : :class:`domain.User`
    before : str or None
        Only entries with a smaller id are returned.
    page_size : int

    """
    before_id = -1
    if before:
        before_id = parse_id(before, 'invalid before')
        if before_id < 0:
            raise BadRequest('invalid before')
    try:
        logs = activitylog.current_store().by_user_id(user.user_id,
                                                      before_id, page_size)
    except activitylog.LimitExceeded as e:
        raise BadRequest(str(e)) from e
    return [{
        'id': log.log_id,
        'createdAt': int(log.created_at.timestamp()),
        'name': log.name,
        'data': log.data
    } for log in logs], status.OK, {}
