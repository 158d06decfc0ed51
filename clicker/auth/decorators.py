"""
Bearer-token authorization of user requests.

This module provides :func:`authorized`, a decorator used to protect Flask
routes that require an authenticated user, and :func:`permitted`, a decorator
factory that additionally requires a permission (see
:mod:`clicker.auth.roles`).

.. code-block:: python

   from clicker.auth import roles
   from clicker.auth.decorators import authorized, permitted


   @blueprint.route('/admin/dashboard', methods=['GET'])
   @authorized
   @permitted(roles.ADMIN_DASHBOARD)
   def dashboard():
       data, code, headers = admin.dashboard()
       return jsonify(data), code, headers


When a route decorated with :func:`authorized` is called...

- If the request has no ``Authorization`` header, an :class:`Unauthorized`
  exception is raised.
- If the header does not carry a ``Bearer`` credential, a
  :class:`BadRequest` exception is raised.
- The session is acquired and refreshed with the ip address and user agent
  of the request. If there is no such session, an :class:`Unauthorized`
  exception is raised. Any other failure propagates, and is handled as a
  server error.
- The owner of the session is loaded, and the session and user are attached
  to the request as ``request.auth`` and ``request.user``.

A failed permission check raises the same :class:`Unauthorized` exception as
a missing or unknown token, so that callers cannot tell which one occurred.

"""

from functools import wraps
from typing import Any, Callable

from flask import request
from werkzeug.exceptions import BadRequest, Unauthorized

from ..logging import getLogger
from ..services import datastore
from . import current_roles, get_registry, roles
from .exceptions import SessionNotFound
from .sessions import store

logger = getLogger(__name__)

BEARER = 'Bearer '
UNAUTHORIZED = 'Unauthorized'


def authorized(func: Callable) -> Callable:
    """Decorator that requires a live bearer-token session."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        header = request.headers.get('Authorization')
        if not header:
            logger.debug('No authorization header; aborting')
            raise Unauthorized(UNAUTHORIZED)
        if not header.startswith(BEARER):
            raise BadRequest('invalid auth type')
        token = header[len(BEARER):]

        try:
            session = store.acquire_and_refresh(
                token,
                request.remote_addr or '',
                request.headers.get('User-Agent', '')
            )
        except SessionNotFound:
            logger.debug('No such session; aborting')
            raise Unauthorized(UNAUTHORIZED)
        user = datastore.users.by_id(session.user_id, get_registry())

        request.auth = session
        request.user = user
        logger.info('Authorized access.', extra={'user_id': user.user_id})
        return func(*args, **kwargs)
    return wrapper


def permitted(permission: str) -> Callable:
    """
    Generate a decorator that requires ``permission``.

    Must be applied beneath :func:`authorized`.

    Parameters
    ----------
    permission : str
        See :mod:`clicker.auth.roles`.

    """
    def protector(func: Callable) -> Callable:
        """Decorator that provides permission enforcement."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not roles.is_permitted(current_roles(), permission):
                logger.debug('User is not permitted to %s', permission)
                raise Unauthorized(UNAUTHORIZED)
            return func(*args, **kwargs)
        return wrapper
    return protector
