"""Health of the service and its backends."""

from http import HTTPStatus as status

from ..auth.sessions import store
from ..services import datastore
from . import ResponseData


def service_status() -> ResponseData:
    """
    Report whether the session store and the database answer.

    Responds 503 if either of them does not, so that load balancers can
    take the instance out of rotation.
    """
    checks = {
        'redis': store.is_available(),
        'database': datastore.is_available()
    }
    healthy = all(checks.values())
    data = {'status': 'ok' if healthy else 'unavailable', **checks}
    code = status.OK if healthy else status.SERVICE_UNAVAILABLE
    return data, code, {}
