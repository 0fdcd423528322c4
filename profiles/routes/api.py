"""Provides the JSON API."""

import logging
from typing import Any, Dict, Optional

from flask import Blueprint, Response, jsonify, make_response, request

from ..controllers import authentication, health, profile

logger = logging.getLogger(__name__)

blueprint = Blueprint('api', __name__, url_prefix='/api')


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}


def _token(payload: Dict[str, Any]) -> Optional[str]:
    """
    Get the session token presented with the request.

    The token may be in the request body, in the Authorization header or,
    for GET requests, in the query string.
    """
    token = payload.get('token')
    if isinstance(token, str) and token.strip():
        return token.strip()
    auth_header = request.headers.get('Authorization', '')
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1]
    token = request.args.get('token', '').strip()
    return token or None


def _respond(data: dict, code: int, headers: dict) -> Response:
    return make_response(jsonify(data), code, headers)


@blueprint.route('/register', methods=['POST'])
def register() -> Response:
    """Create a new account."""
    return _respond(*authentication.register(_payload()))


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in, and get a session token."""
    return _respond(*authentication.login(_payload()))


@blueprint.route('/profile', methods=['GET'])
def get_profile() -> Response:
    """Get the authenticated user's full profile."""
    user_id = profile.authorize(_token({}))
    return _respond(*profile.get_profile(user_id))


@blueprint.route('/profile', methods=['POST'])
def post_profile() -> Response:
    """Fetch or update the profile, a profile section, or log out."""
    payload = _payload()
    return _respond(*profile.handle_request(payload, _token(payload)))


@blueprint.route('/status', methods=['GET'])
def service_status() -> Response:
    """Health check."""
    return _respond(*health.service_status())
