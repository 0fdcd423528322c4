"""Application factory for the profile service."""

import logging
from typing import Any, Mapping, Optional

from flask import Flask, Response, current_app, jsonify
from werkzeug.exceptions import HTTPException

from . import app_logging, status
from .routes import api
from .services import session_store
from .services import util as db_util

logger = logging.getLogger(__name__)


def jsonify_exception(error: HTTPException) -> Response:
    """Render an HTTP exception as a response envelope."""
    message = error.description
    if message == type(error).description:
        message = (error.name or 'Error').capitalize()
    response = jsonify(success=False, message=message)
    exc_resp = error.get_response()
    response.status_code = exc_resp.status_code
    if 'Allow' in exc_resp.headers:
        response.headers['Allow'] = exc_resp.headers['Allow']
    return response


def handle_unexpected(error: Exception) -> Response:
    """Log an unhandled exception, and give the client nothing but a 500."""
    logger.exception('Unhandled exception: %s', error)
    response = jsonify(success=False, message='Internal server error')
    response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return response


def add_cors_headers(response: Response) -> Response:
    """Allow cross-origin calls from browser clients."""
    response.headers['Access-Control-Allow-Origin'] = \
        current_app.config['CORS_ALLOW_ORIGIN']
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = \
        'Content-Type, Authorization'
    return response


def create_web_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Initialize and configure the profile service application.

    Parameters
    ----------
    config : dict
        Settings that override those in :mod:`profiles.config`. Applied
        before the stores are attached.

    """
    app = Flask('profiles')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)
    app.json.sort_keys = False     # type: ignore

    app_logging.setup_logger(app.config['LOGLEVEL'], app.config['LOG_JSON'])

    db_util.init_app(app)
    session_store.init_app(app)

    app.register_blueprint(api.blueprint)
    app.register_error_handler(HTTPException, jsonify_exception)
    app.register_error_handler(Exception, handle_unexpected)
    app.after_request(add_cors_headers)

    if app.config['CREATE_DB']:
        with app.app_context():
            db_util.create_all()

    return app
