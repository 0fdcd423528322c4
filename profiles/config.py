"""Flask configuration."""
import os

#################### Databases ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///profiles.db')
"""Credential store. Holds the ``users`` table."""

PROFILES_DATABASE_URI = os.environ.get('PROFILES_DATABASE_URI',
                                       SQLALCHEMY_DATABASE_URI)
"""Profile document store. One table per profile section.

May point at the same database as the credential store."""

SQLALCHEMY_TRACK_MODIFICATIONS = False

DATABASE_CONNECT_TIMEOUT = int(os.environ.get('DATABASE_CONNECT_TIMEOUT', '5'))
"""Seconds. Passed to the database driver; not used with SQLite."""

CREATE_DB = bool(int(os.environ.get('CREATE_DB', '0')))


#################### Session store ####################
REDIS_URL = os.environ.get('REDIS_URL', None)
"""Full connection URL, e.g. ``rediss://default:pw@host:6379``.

When set, takes precedence over the host/port settings below."""

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_TOKEN = os.environ.get('REDIS_TOKEN', None)
"""This is the token used in the AUTH procedure."""
REDIS_SSL = bool(int(os.environ.get('REDIS_SSL', '0')))

REDIS_CONNECT_TIMEOUT = float(os.environ.get('REDIS_CONNECT_TIMEOUT', '2'))
REDIS_SOCKET_TIMEOUT = float(os.environ.get('REDIS_SOCKET_TIMEOUT', '2'))

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing, dev."""

SESSION_DURATION = int(os.environ.get('SESSION_DURATION', '3600'))
"""Session time to live, in seconds."""

SESSION_KEY_PREFIX = os.environ.get('SESSION_KEY_PREFIX', 'session:')


#################### Accounts ####################
BCRYPT_LOG_ROUNDS = int(os.environ.get('BCRYPT_LOG_ROUNDS', '12'))
"""Work factor for password hashes. Tests turn this down."""


#################### HTTP ####################
CORS_ALLOW_ORIGIN = os.environ.get('CORS_ALLOW_ORIGIN', '*')


#################### Logging ####################
LOGLEVEL = int(os.environ.get('LOGLEVEL', '20'))
LOG_JSON = bool(int(os.environ.get('LOG_JSON', '1')))

VERSION = '0.1.0'
