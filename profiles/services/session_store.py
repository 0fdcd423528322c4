"""
Internal service API for the distributed session store.

Used to create, load, and delete user sessions. A session is a single key,
``<prefix><token>``, whose value is the id of the authenticated user. The key
is written with a time to live, so that the store itself expires sessions:
a token that was never issued and a token whose session has expired look
the same to callers.
"""

import logging
import secrets
from functools import wraps
from typing import Any, Mapping, Optional

import fakeredis
import redis
from flask import Flask, current_app

from .exceptions import InvalidOrExpiredToken, SessionCreationFailed, \
    SessionDeletionFailed, SessionServiceUnavailable

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
"""Entropy of a session token. Rendered as 64 hex characters."""

_UNAVAILABLE = (redis.exceptions.ConnectionError,
                redis.exceptions.TimeoutError)


class SessionStore(object):
    """
    Manages a connection to Redis.

    In fact, the StrictRedis instance is thread safe and connections are
    drawn from its pool at the time a command is executed. One instance is
    shared by all requests handled by an application.
    """

    def __init__(self, r: redis.StrictRedis, duration: int = 3600,
                 prefix: str = 'session:') -> None:
        """Wrap a Redis client."""
        self.r = r
        self._duration = duration
        self._prefix = prefix

    @property
    def duration(self) -> int:
        """Session time to live, in seconds."""
        return self._duration

    def _key(self, token: str) -> str:
        return f'{self._prefix}{token}'

    def create(self, user_id: str) -> str:
        """
        Create a new session.

        Parameters
        ----------
        user_id : str

        Returns
        -------
        str
            The session token.

        Raises
        ------
        :class:`.SessionServiceUnavailable`
            If the store cannot be reached.
        :class:`.SessionCreationFailed`
            If the store rejects the write.

        """
        token = secrets.token_hex(TOKEN_BYTES)
        try:
            self.r.set(self._key(token), user_id, ex=self._duration)
        except _UNAVAILABLE as e:
            raise SessionServiceUnavailable(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Created session for user %s', user_id)
        return token

    def load(self, token: str) -> str:
        """
        Get the id of the user who owns a session.

        Raises
        ------
        :class:`.InvalidOrExpiredToken`
            If there is no live session for ``token``.
        :class:`.SessionServiceUnavailable`

        """
        if not token:
            raise InvalidOrExpiredToken('No token provided')
        try:
            user_id: Optional[Any] = self.r.get(self._key(token))
        except _UNAVAILABLE as e:
            raise SessionServiceUnavailable(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionServiceUnavailable(f'Failed to load: {e}') from e
        if not user_id:
            logger.debug('No such session')
            raise InvalidOrExpiredToken('Invalid or expired token')
        if isinstance(user_id, bytes):
            user_id = user_id.decode('utf-8')
        return str(user_id)

    def delete(self, token: str) -> None:
        """
        Delete a session.

        Deleting a session that does not exist is not an error.
        """
        if not token:
            return
        try:
            self.r.delete(self._key(token))
        except _UNAVAILABLE as e:
            raise SessionServiceUnavailable(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e

    def is_available(self) -> bool:
        """Check our connection to the session store."""
        try:
            return bool(self.r.ping())
        except redis.exceptions.RedisError as e:
            logger.error('Encountered an error talking to redis: %s', e)
            return False


def _get_redis(config: Mapping[str, Any]) -> redis.StrictRedis:
    if config.get('REDIS_FAKE'):
        logger.debug('Using fakeredis')
        return fakeredis.FakeStrictRedis(server=fakeredis.FakeServer(),
                                         decode_responses=True)

    options = dict(
        socket_connect_timeout=float(config.get('REDIS_CONNECT_TIMEOUT', 2)),
        socket_timeout=float(config.get('REDIS_SOCKET_TIMEOUT', 2)),
        decode_responses=True
    )
    url = config.get('REDIS_URL')
    if url:
        return redis.StrictRedis.from_url(url, **options)

    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    logger.debug('New Redis connection at %s, port %s', host, port)
    return redis.StrictRedis(
        host=host,
        port=port,
        db=int(config.get('REDIS_DATABASE', '0')),
        password=config.get('REDIS_TOKEN') or None,
        ssl=bool(config.get('REDIS_SSL', False)),
        **options
    )


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    config = app.config
    config.setdefault('REDIS_HOST', 'localhost')
    config.setdefault('REDIS_PORT', '6379')
    config.setdefault('REDIS_DATABASE', '0')
    config.setdefault('REDIS_TOKEN', None)
    config.setdefault('REDIS_FAKE', False)
    config.setdefault('SESSION_DURATION', 3600)
    config.setdefault('SESSION_KEY_PREFIX', 'session:')


def get_session_store(config: Mapping[str, Any]) -> SessionStore:
    """Get a new :class:`.SessionStore` from application config."""
    return SessionStore(_get_redis(config),
                        duration=int(config.get('SESSION_DURATION', 3600)),
                        prefix=config.get('SESSION_KEY_PREFIX', 'session:'))


def current_session() -> SessionStore:
    """Get/create the :class:`.SessionStore` for this application."""
    store: Optional[SessionStore] = current_app.extensions.get('session_store')
    if store is None:
        store = get_session_store(current_app.config)
        current_app.extensions['session_store'] = store
    return store


@wraps(SessionStore.create)
def create(user_id: str) -> str:
    """Create a new session."""
    return current_session().create(user_id)


@wraps(SessionStore.load)
def load(token: str) -> str:
    """Get the id of the user who owns a session."""
    return current_session().load(token)


@wraps(SessionStore.delete)
def delete(token: str) -> None:
    """Delete a session in the key-value store."""
    return current_session().delete(token)
