"""Tests for :mod:`profiles.services.session_store`."""

import time
from unittest import TestCase, mock

import fakeredis
from flask import Flask
from redis.exceptions import ConnectionError, ResponseError, TimeoutError

from .. import session_store
from ..exceptions import InvalidOrExpiredToken, SessionCreationFailed, \
    SessionDeletionFailed, SessionServiceUnavailable


def _fake_store(duration: int = 3600) -> session_store.SessionStore:
    r = fakeredis.FakeStrictRedis(server=fakeredis.FakeServer(),
                                  decode_responses=True)
    return session_store.SessionStore(r, duration=duration)


class TestCreateSession(TestCase):
    """Sessions are keys in redis with a time to live."""

    def test_create(self):
        """A token is generated and the user id stored under it."""
        store = _fake_store()
        token = store.create('1234')
        self.assertEqual(len(token), 64, 'Token is 32 bytes as hex')
        int(token, 16)
        self.assertEqual(store.r.get(f'session:{token}'), '1234')

    def test_ttl(self):
        """The session key expires after the configured duration."""
        store = _fake_store(duration=3600)
        token = store.create('1234')
        ttl = store.r.ttl(f'session:{token}')
        self.assertGreater(ttl, 3590)
        self.assertLessEqual(ttl, 3600)

    def test_tokens_are_unique(self):
        """Each session gets its own token, even for the same user."""
        store = _fake_store()
        tokens = {store.create('1234') for _ in range(20)}
        self.assertEqual(len(tokens), 20)
        for token in tokens:
            self.assertEqual(store.load(token), '1234')

    def test_connection_failed(self):
        """:class:`.SessionServiceUnavailable` if redis is unreachable."""
        r = mock.MagicMock()
        r.set.side_effect = ConnectionError
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionServiceUnavailable):
            store.create('1234')

    def test_timeout(self):
        """A timeout also means that the store is unavailable."""
        r = mock.MagicMock()
        r.set.side_effect = TimeoutError
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionServiceUnavailable):
            store.create('1234')

    def test_write_rejected(self):
        """:class:`.SessionCreationFailed` if redis refuses the write."""
        r = mock.MagicMock()
        r.set.side_effect = ResponseError('READONLY')
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionCreationFailed):
            store.create('1234')


class TestLoadSession(TestCase):
    """Tokens are exchanged for user ids."""

    def test_load(self):
        """A live token gives back the user id."""
        store = _fake_store()
        token = store.create('abcd')
        self.assertEqual(store.load(token), 'abcd')

    def test_unknown_token(self):
        """A token that was never issued is rejected."""
        store = _fake_store()
        with self.assertRaises(InvalidOrExpiredToken):
            store.load('f' * 64)

    def test_empty_token(self):
        """An empty token is rejected without a round-trip."""
        r = mock.MagicMock()
        store = session_store.SessionStore(r)
        with self.assertRaises(InvalidOrExpiredToken):
            store.load('')
        self.assertEqual(r.get.call_count, 0)

    def test_expired(self):
        """Once the key has expired the token is rejected."""
        store = _fake_store()
        token = store.create('abcd')
        store.r.pexpire(f'session:{token}', 1)
        time.sleep(0.05)
        with self.assertRaises(InvalidOrExpiredToken):
            store.load(token)

    def test_bytes(self):
        """A client that does not decode responses is also supported."""
        r = mock.MagicMock()
        r.get.return_value = b'abcd'
        store = session_store.SessionStore(r)
        self.assertEqual(store.load('footoken'), 'abcd')
        r.get.assert_called_once_with('session:footoken')

    def test_connection_failed(self):
        """Connection failures are not reported as bad tokens."""
        r = mock.MagicMock()
        r.get.side_effect = ConnectionError
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionServiceUnavailable):
            store.load('footoken')


class TestDeleteSession(TestCase):
    """Deleting a session ends it immediately."""

    def test_delete(self):
        """The token no longer loads after delete."""
        store = _fake_store()
        token = store.create('abcd')
        store.delete(token)
        with self.assertRaises(InvalidOrExpiredToken):
            store.load(token)

    def test_delete_twice(self):
        """Deleting a session that does not exist is not an error."""
        store = _fake_store()
        token = store.create('abcd')
        store.delete(token)
        store.delete(token)
        store.delete('f' * 64)

    def test_connection_failed(self):
        """:class:`.SessionServiceUnavailable` if redis is unreachable."""
        r = mock.MagicMock()
        r.delete.side_effect = ConnectionError
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionServiceUnavailable):
            store.delete('footoken')

    def test_delete_rejected(self):
        """:class:`.SessionDeletionFailed` if redis refuses the delete."""
        r = mock.MagicMock()
        r.delete.side_effect = ResponseError('READONLY')
        store = session_store.SessionStore(r)
        with self.assertRaises(SessionDeletionFailed):
            store.delete('footoken')


class TestAvailability(TestCase):
    """The store reports whether redis is reachable."""

    def test_available(self):
        self.assertTrue(_fake_store().is_available())

    def test_unavailable(self):
        r = mock.MagicMock()
        r.ping.side_effect = ConnectionError
        self.assertFalse(session_store.SessionStore(r).is_available())


class TestApplicationIntegration(TestCase):
    """One store is shared by all requests handled by an application."""

    def setUp(self):
        self.app = Flask('foo')
        self.app.config['REDIS_FAKE'] = True
        self.app.config['SESSION_DURATION'] = 60
        session_store.init_app(self.app)

    def test_current_session(self):
        """The same store is returned for each call."""
        with self.app.app_context():
            store = session_store.current_session()
            self.assertIs(session_store.current_session(), store)
            self.assertEqual(store.duration, 60)

    def test_module_functions(self):
        """Module-level functions use the application's store."""
        with self.app.app_context():
            token = session_store.create('1234')
            self.assertEqual(session_store.load(token), '1234')
            session_store.delete(token)
            with self.assertRaises(InvalidOrExpiredToken):
                session_store.load(token)

    def test_apps_are_isolated(self):
        """Fake stores are not shared between applications."""
        other = Flask('bar')
        other.config['REDIS_FAKE'] = True
        session_store.init_app(other)
        with self.app.app_context():
            token = session_store.create('1234')
        with other.app_context():
            with self.assertRaises(InvalidOrExpiredToken):
                session_store.load(token)

    @mock.patch(f'{session_store.__name__}.redis.StrictRedis')
    def test_real_redis(self, mock_redis):
        """Connection parameters come from the application config."""
        app = Flask('baz')
        app.config.update({'REDIS_HOST': 'redis', 'REDIS_PORT': '1234',
                           'REDIS_DATABASE': '4', 'REDIS_TOKEN': 'pw'})
        session_store.init_app(app)
        with app.app_context():
            session_store.current_session()
        _, kwargs = mock_redis.call_args
        self.assertEqual(kwargs['host'], 'redis')
        self.assertEqual(kwargs['port'], 1234)
        self.assertEqual(kwargs['db'], 4)
        self.assertEqual(kwargs['password'], 'pw')
        self.assertTrue(kwargs['decode_responses'])
