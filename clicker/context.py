"""Helpers for reaching the Flask application config and globals."""

import os
from typing import Any, Optional

from flask import current_app, g, has_app_context
from werkzeug.local import LocalProxy


def get_application_config(app: Optional[LocalProxy] = None) -> Any:
    """
    Get a configuration from the current app, or fall back to env.

    Parameters
    ----------
    app : :class:`werkzeug.local.LocalProxy`

    Returns
    -------
    dict-like
        This is either the current Flask application configuration, or
        ``os.environ``. Either of these should support the ``get()`` method.
    """
    if app is not None:
        return app.config
    if has_app_context():
        return current_app.config
    return os.environ


def get_application_global() -> Optional[LocalProxy]:
    """
    Get the current application global proxy object.

    Returns
    -------
    proxy or None
    """
    if has_app_context():
        return g
    return None
