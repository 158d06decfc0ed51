"""Application factory for the clicker API."""

from typing import Any, List, Mapping, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, InternalServerError

from .auth import Auth
from .auth.sessions import store
from .logging import getLogger
from .routes import api
from .services import activitylog, datastore, discord

logger = getLogger(__name__)


def create_web_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize and configure the clicker application.

    Parameters
    ----------
    config : dict
        Overrides applied on top of :mod:`clicker.config`.

    """
    app = Flask('clicker')
    app.config.from_pyfile('config.py')
    if config is not None:
        app.config.update(config)

    datastore.init_app(app)
    store.init_app(app)
    activitylog.init_app(app)
    discord.init_app(app)
    Auth(app)    # Builds the role registry.
    CORS(app, origins=cors_origins(app))

    app.before_request(log_request)
    app.register_blueprint(api.blueprint)

    if app.config['CREATE_DB']:
        with app.app_context():
            datastore.create_all()

    register_error_handlers(app)
    return app


def cors_origins(app: Flask) -> List[str]:
    """Origins allowed to make cross-origin requests to ``app``."""
    configured = app.config.get('CORS_ALLOW_ORIGINS') or ''
    if app.debug:
        configured += ',' + (app.config.get('CORS_DEBUG_ORIGINS') or '')
    origins = [origin.strip() for origin in configured.split(',')
               if origin.strip()]
    logger.info('CORS origins configured.', extra={'origins': origins})
    return origins


def log_request() -> None:
    """Log every request as it comes in."""
    logger.info('Handling request.', extra={
        'remote_addr': request.remote_addr,
        'path': request.path,
        'referer': request.referrer,
        'user_agent': request.headers.get('User-Agent'),
        'x_forwarded_for': request.headers.get('X-Forwarded-For')
    })


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(HTTPException)(jsonify_exception)
    app.errorhandler(Exception)(handle_unexpected)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    response: Response = jsonify(error_message=error.description)
    response.status_code = exc_resp.status_code
    return response


def handle_unexpected(error: Exception) -> Response:
    """Log the failure, without revealing anything about it to the client."""
    if isinstance(error, HTTPException):
        return jsonify_exception(error)
    logger.exception('Unhandled exception: %s', error)
    return jsonify_exception(InternalServerError('Internal Server Error'))
