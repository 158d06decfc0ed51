"""Web Server Gateway Interface entry-point."""

from clicker.factory import create_web_app

__flask_app__ = create_web_app()


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    return __flask_app__(environ, start_response)
