"""Web Server Gateway Interface entry-point."""

import os
from typing import Optional

from flask import Flask

from profiles.factory import create_web_app

__flask_app__: Optional[Flask] = None


def application(environ, start_response):
    """WSGI application factory."""
    global __flask_app__
    if __flask_app__ is None:
        for key, value in environ.items():
            # Only pass config-like strings through to the app.
            if key.isupper() and isinstance(value, str):
                os.environ[key] = value
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
