"""Provides the JSON API."""

from http import HTTPStatus as status
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, make_response, \
    request

from ..auth import roles
from ..auth.decorators import authorized, permitted
from ..controllers import ResponseData, activity, admin, auth, health, \
    profile, program, sessions
from ..logging import getLogger

logger = getLogger(__name__)

blueprint = Blueprint('api', __name__, url_prefix='')


def _respond(response_data: ResponseData) -> Response:
    data, code, headers = response_data
    if code == status.NO_CONTENT:
        return make_response('', code, headers)
    return make_response(jsonify(data), code, headers)


@blueprint.route('/status', methods=['GET'])
def service_status() -> Response:
    """Health check endpoint."""
    return _respond(health.service_status())


@blueprint.route('/auth/discord', methods=['GET'])
def discord_authorization_url() -> Response:
    """Get the URL at which the user logs in with Discord."""
    return _respond(auth.authorization_url())


@blueprint.route('/auth/discord', methods=['POST'])
def discord_login() -> Response:
    """Exchange a Discord authorization code for a session."""
    payload: Any = request.get_json(silent=True)
    return _respond(auth.login(payload, request.remote_addr or '',
                               request.headers.get('User-Agent', '')))


@blueprint.route('/auth/logout', methods=['POST'])
@authorized
def logout() -> Response:
    """End the current session."""
    return _respond(auth.logout(request.auth))


@blueprint.route('/session', methods=['GET'])
@authorized
def current_session() -> Response:
    """Describe the current session."""
    return _respond(sessions.current(request.auth))


@blueprint.route('/sessions', methods=['GET'])
@authorized
def list_sessions() -> Response:
    """List the user's live sessions."""
    return _respond(sessions.list_active(request.auth))


@blueprint.route('/sessions/other', methods=['DELETE'])
@authorized
def delete_other_sessions() -> Response:
    """End every session of the user except the current one."""
    return _respond(sessions.delete_others(request.auth))


@blueprint.route('/sessions/<string:session_id>', methods=['DELETE'])
@authorized
def delete_session(session_id: str) -> Response:
    """End one of the user's sessions."""
    return _respond(sessions.delete(request.auth, session_id))


@blueprint.route('/activities', methods=['GET'])
@authorized
def activities() -> Response:
    """Get a page of the user's activity, newest first."""
    page_size = int(current_app.config['ACTIVITY_PAGE_SIZE'])
    return _respond(activity.recent(request.user, request.args.get('before'),
                                    page_size))


@blueprint.route('/profile/<string:user_id>', methods=['GET'])
def view_profile(user_id: str) -> Response:
    """Get a user's public profile."""
    return _respond(profile.view_profile(user_id))


@blueprint.route('/download', methods=['GET'],
                 defaults={'file_type': 'installer'})
@blueprint.route('/download/<string:file_type>', methods=['GET'])
def download(file_type: str) -> Response:
    """Get the download links of the newest build."""
    return _respond(program.download(file_type,
                                     request.args.get('os', ''),
                                     request.args.get('arch', ''),
                                     request.args.get('branch', 'stable')))


@blueprint.route('/admin/dashboard', methods=['GET'])
@authorized
@permitted(roles.ADMIN_DASHBOARD)
def admin_dashboard() -> Response:
    """Summary figures for administrators."""
    return _respond(admin.dashboard(request.user))
