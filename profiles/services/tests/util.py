"""Testing helpers."""

from contextlib import contextmanager
from typing import Generator

from flask import Flask
from sqlalchemy.orm.session import Session

from .. import util


@contextmanager
def temporary_db(database_url: str = 'sqlite://',
                 profiles_url: str = 'sqlite://',
                 create: bool = True, drop: bool = True) \
        -> Generator[Session, None, None]:
    """Provide in-memory sqlite databases for testing purposes."""
    app = Flask('foo')
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['PROFILES_DATABASE_URI'] = profiles_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    util.init_app(app)
    with app.app_context():
        if create:
            util.create_all()
        try:
            yield util.db.session
        finally:
            if drop:
                util.drop_all()
