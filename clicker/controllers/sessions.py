"""Session management for the authenticated user."""

from http import HTTPStatus as status
from typing import Any, Dict

from werkzeug.exceptions import BadRequest, Forbidden

from .. import domain
from ..auth.exceptions import SessionNotFound, SessionOwnershipError
from ..auth.sessions import store
from . import ResponseData


def _public(session: domain.Session) -> Dict[str, Any]:
    # Never expose the bearer token of a session.
    return {
        'id': session.session_id,
        'ip': session.ip_address,
        'userAgent': session.user_agent,
        'lastAccessedAt': int(session.last_accessed.timestamp())
    }


def current(session: domain.Session) -> ResponseData:
    """Describe the session used to make the request."""
    data = _public(session)
    data.update({'userId': session.user_id,
                 'expiresAt': int(session.expires_at.timestamp())})
    return data, status.OK, {}


def list_active(session: domain.Session) -> ResponseData:
    """List the live sessions of the requesting user, newest first."""
    try:
        sessions = store.active_sessions(session.token)
    except SessionNotFound as e:
        raise Forbidden('Forbidden') from e
    return [_public(s) for s in sessions], status.OK, {}


def delete(session: domain.Session, session_id: str) -> ResponseData:
    """
    Invalidate one of the requesting user's sessions.

    Sessions that do not exist and sessions of other users are treated alike.

    Raises
    ------
    :class:`Forbidden`

    """
    if not session_id:
        raise BadRequest('no session id')
    try:
        if session_id == session.session_id:
            store.invalidate_by_auth_token(session.token)
        else:
            store.invalidate_by_id(session.user_id, session_id)
    except (SessionNotFound, SessionOwnershipError) as e:
        raise Forbidden('Forbidden') from e
    return {}, status.NO_CONTENT, {}


def delete_others(session: domain.Session) -> ResponseData:
    """Invalidate every session of the requesting user except this one."""
    store.invalidate_all_except(session.token)
    return {}, status.NO_CONTENT, {}
