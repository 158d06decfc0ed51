"""Provides tools for working with authenticated user sessions and roles."""

from typing import List, Optional

from flask import Flask, current_app, request

from . import roles
from .roles import Role, RoleRegistry

from ..logging import getLogger

logger = getLogger(__name__)


class Auth(object):
    """
    Builds the role registry and attaches auth information to the request.

    Intended for use in a Flask application factory, for example:

    .. code-block:: python

       from flask import Flask
       from clicker.auth import Auth
       from clicker.routes import api


       def create_web_app() -> Flask:
          app = Flask('clicker')
          app.config.from_pyfile('config.py')
          Auth(app)
          app.register_blueprint(api.blueprint)
          return app


    The registry is built once, from the ``ROLES`` config parameter, and is
    immutable thereafter. A duplicated role id raises
    :class:`.exceptions.DuplicateRole` here, so that a misconfigured
    application never starts.
    """

    def __init__(self, app: Optional[Flask] = None) -> None:
        """
        Initialize ``app``.

        Parameters
        ----------
        app : :class:`Flask`

        """
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """
        Build the role registry and attach :meth:`.clear_auth` to ``app``.

        Parameters
        ----------
        app : :class:`Flask`

        """
        self.app = app
        app.config.setdefault('ROLES', None)
        app.extensions['roles'] = RoleRegistry(
            roles.parse_roles(app.config['ROLES'])
        )
        logger.debug('Registered %i roles', len(app.extensions['roles']))
        app.before_request(self.clear_auth)

    def clear_auth(self) -> None:
        """
        Start every request unauthenticated.

        :func:`.decorators.authorized` sets ``request.auth`` (the
        :class:`.domain.Session`) and ``request.user`` (the
        :class:`.domain.User`) once the bearer token has been checked.
        """
        request.auth = None
        request.user = None


def get_registry(app: Optional[Flask] = None) -> RoleRegistry:
    """Get the role registry of ``app``, or of the current application."""
    if app is None:
        app = current_app
    registry: RoleRegistry = app.extensions['roles']
    return registry


def current_roles() -> List[Role]:
    """Get the roles of the user authorized on the current request."""
    user = getattr(request, 'user', None)
    if user is None:
        return []
    return list(user.roles)
