"""Testing helpers."""

from unittest import TestCase

from ...factory import create_web_app
from ...services import util

TEST_CONFIG = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'PROFILES_DATABASE_URI': 'sqlite://',
    'REDIS_FAKE': True,
    'BCRYPT_LOG_ROUNDS': 4,
    'LOG_JSON': False,
}


class AppTestCase(TestCase):
    """Runs each test in the context of a fresh application."""

    def setUp(self):
        self.app = create_web_app(TEST_CONFIG)
        self.ctx = self.app.app_context()
        self.ctx.push()
        util.create_all()

    def tearDown(self):
        util.drop_all()
        self.ctx.pop()
