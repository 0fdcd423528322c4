"""Helpers and Flask application integration for the relational stores."""

import logging
import secrets
import time
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator

from flask import Flask
from pytz import UTC
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.session import Session

from .exceptions import OperationFailed, Unavailable
from .models import db

logger = logging.getLogger(__name__)


def now() -> datetime:
    """Get the current time, in UTC."""
    return datetime.now(tz=UTC)


def uuid7() -> str:
    """
    Generate a time-ordered UUID (version 7).

    The first 48 bits are the Unix time in milliseconds, so identifiers sort
    in creation order; the remaining bits are random apart from the version
    and variant fields.
    """
    unix_ts_ms = time.time_ns() // 1_000_000
    value = (unix_ts_ms & 0xFFFFFFFFFFFF) << 80
    value |= int.from_bytes(secrets.token_bytes(10), 'big')
    value = (value & ~(0xF << 76)) | (0x7 << 76)     # Version.
    value = (value & ~(0x3 << 62)) | (0x2 << 62)     # Variant (RFC 4122).
    return str(uuid.UUID(int=value))


def record_id() -> str:
    """Generate an identifier for a record in a multi-record section."""
    return uuid.uuid4().hex


@contextmanager
def transaction() -> Generator[Session, None, None]:
    """
    Context manager for database transaction.

    Commits when the block exits cleanly. Connection problems are raised as
    :class:`.Unavailable`, other database errors as :class:`.OperationFailed`.
    Anything else raised in the block is re-raised after rolling back.
    """
    try:
        yield db.session
        db.session.commit()
    except OperationalError as e:
        logger.error('Database unavailable, rolling back: %s', e)
        db.session.rollback()
        raise Unavailable('Database unavailable') from e
    except SQLAlchemyError as e:
        logger.error('Commit failed, rolling back: %s', e)
        db.session.rollback()
        raise OperationFailed('Database operation failed') from e
    except Exception:
        db.session.rollback()
        raise


def _engine_options(uri: str, connect_timeout: int) -> dict:
    if uri.startswith('sqlite'):
        return {'pool_pre_ping': True}
    return {'pool_pre_ping': True,
            'connect_args': {'connect_timeout': connect_timeout}}


def init_app(app: Flask) -> None:
    """Set configuration defaults and attach the database to the app."""
    config = app.config
    config.setdefault('SQLALCHEMY_DATABASE_URI', 'sqlite:///profiles.db')
    config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
    timeout = int(config.get('DATABASE_CONNECT_TIMEOUT', 5))

    profiles_uri = config.get('PROFILES_DATABASE_URI') \
        or config['SQLALCHEMY_DATABASE_URI']
    binds = dict(config.get('SQLALCHEMY_BINDS') or {})
    binds['profiles'] = profiles_uri
    config['SQLALCHEMY_BINDS'] = {
        key: dict(url=uri, **_engine_options(uri, timeout))
        if isinstance(uri, str) else uri
        for key, uri in binds.items()
    }
    config['SQLALCHEMY_ENGINE_OPTIONS'] = _engine_options(
        config['SQLALCHEMY_DATABASE_URI'], timeout
    )
    db.init_app(app)


def create_all() -> None:
    """Create all tables in both stores."""
    db.create_all()


def drop_all() -> None:
    """Drop all tables in both stores."""
    db.drop_all()


def is_available(**kwargs: Any) -> bool:
    """Check our connection to each database."""
    try:
        for engine in db.engines.values():
            with engine.connect() as connection:
                connection.execute(text('SELECT 1'))
    except Exception as e:
        logger.error('Encountered an error talking to database: %s', e)
        return False
    return True
