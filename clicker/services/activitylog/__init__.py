"""
Append-only, per-user activity log.

Entries record security-relevant session events (see
:mod:`clicker.auth.sessions.store`) and back the user-facing "recent
activity" view. There is no update or delete path.

Two stores implement the same interface:

- :class:`.sql.SQLActivityStore` keeps the log in the relational store.
- :class:`.memory.MemoryActivityStore` keeps it in process memory.

``ACTIVITY_STORE`` selects one (``sql`` or ``memory``). Both return entries
newest first and page backwards with a ``before_id`` cursor: only entries
with an id strictly less than the cursor are returned, and a negative cursor
starts from the newest entry.
"""

from typing import Any

from ...context import get_application_config, get_application_global

MAX_LIMIT = 10000
"""The largest page that may be requested."""

MAX_LOG_ID = 2 ** 63 - 1
"""Log ids are signed 64-bit integers; larger cursors precede every entry."""


class ActivityLogUnavailable(RuntimeError):
    """The activity log could not be read or written."""


class LimitExceeded(ValueError):
    """A page larger than :const:`MAX_LIMIT` was requested."""


def check_limit(limit: int) -> None:
    """Raise :class:`LimitExceeded` if ``limit`` exceeds the ceiling."""
    if limit > MAX_LIMIT:
        raise LimitExceeded(f'Limit {limit} exceeds {MAX_LIMIT}')


def init_app(app: object = None) -> None:
    """Set default configuration parameters for an application instance."""
    config = get_application_config(app)
    config.setdefault('ACTIVITY_STORE', 'sql')
    config.setdefault('ACTIVITY_PAGE_SIZE', '50')


def get_store(app: Any = None) -> Any:
    """
    Get the configured activity store.

    The in-memory store lives as long as the application, so it is kept in
    ``app.extensions``.
    """
    from . import memory, sql

    config = get_application_config(app)
    kind = config.get('ACTIVITY_STORE', 'sql')
    if kind == 'memory':
        if app is None:
            from flask import current_app
            app = current_app
        if 'activitylog' not in app.extensions:
            app.extensions['activitylog'] = memory.MemoryActivityStore()
        return app.extensions['activitylog']
    if kind == 'sql':
        return sql.SQLActivityStore()
    raise ValueError(f'Unknown activity store: {kind}')


def current_store() -> Any:
    """Get the activity store for this context."""
    g = get_application_global()
    if not g:
        return get_store()
    if 'activitylog' not in g:
        g.activitylog = get_store()
    return g.activitylog
