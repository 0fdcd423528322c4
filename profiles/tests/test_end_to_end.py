"""Exercises the JSON API through the full application stack."""

import json
import os
import string
import uuid
from unittest import TestCase, mock

import jsonschema
from hypothesis import given, settings
from hypothesis import strategies as st

from .. import status
from ..factory import create_web_app
from ..services import session_store, util

SCHEMA_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), '..', '..', 'schema')
)

TEST_CONFIG = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'PROFILES_DATABASE_URI': 'sqlite://',
    'CREATE_DB': True,
    'REDIS_FAKE': True,
    'BCRYPT_LOG_ROUNDS': 4,
    'LOG_JSON': False,
}

EDUCATION = {'level': 'UG', 'school_name': 'X', 'board': 'Y', 'grade': 'A',
             'start_year': 2020, 'end_year': 2024, 'summary': '...'}


def load_schema(name: str) -> dict:
    with open(os.path.join(SCHEMA_PATH, name)) as f:
        return json.load(f)


class APITestCase(TestCase):
    """Initialize the Flask application, and get a client for testing."""

    def setUp(self):
        self.app = create_web_app(TEST_CONFIG)
        self.client = self.app.test_client()

    def tearDown(self):
        with self.app.app_context():
            util.drop_all()

    def validate(self, data: dict, schema: str = 'envelope.json') -> None:
        try:
            jsonschema.validate(data, load_schema(schema))
        except jsonschema.exceptions.ValidationError as e:
            self.fail(e)

    def post(self, path: str, payload: dict, **kwargs):
        response = self.client.post(path, json=payload, **kwargs)
        self.validate(response.get_json())
        return response

    def register(self, email='a@x.com', password='secret1', full_name='A B'):
        return self.post('/api/register', {'email': email,
                                           'password': password,
                                           'fullName': full_name})

    def login(self, email='a@x.com', password='secret1'):
        return self.post('/api/login', {'email': email, 'password': password})


class TestScenario(APITestCase):
    """A user registers, logs in, edits their profile and logs out."""

    def test_scenario(self):
        response = self.register()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.register()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.get_json(),
                         {'success': False,
                          'message': 'Email already registered'})

        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.validate(response.get_json(), 'login.json')
        token = response.get_json()['token']
        self.assertTrue(token)

        response = self.post('/api/profile', {'action': 'fetch',
                                              'token': token})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.validate(response.get_json(), 'profile.json')
        data = response.get_json()['data']
        self.assertEqual(data['firstName'], 'A')
        self.assertEqual(data['lastName'], 'B')

        response = self.post('/api/profile', dict(
            EDUCATION, action='update', section='education', token=token
        ))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        record_id = response.get_json()['data']['_id']
        self.assertTrue(record_id)

        response = self.post('/api/profile', {
            'action': 'fetch', 'section': 'education', 'token': token
        })
        records = response.get_json()['data']
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]['_id'], record_id)
        for key, value in EDUCATION.items():
            self.assertEqual(records[0][key], value)

        response = self.post('/api/profile', {'action': 'logout',
                                              'token': token})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.post('/api/profile', {'action': 'fetch',
                                              'token': token})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.get_json()['message'],
                         'Invalid or expired token')

    def test_profile_schema_with_sections(self):
        self.register()
        token = self.login().get_json()['token']
        for payload in (
            dict(EDUCATION, section='education', start_month='Jun'),
            {'section': 'experience', 'job_title': 'E', 'company': 'C',
             'employment_type': 'Full-time', 'location': 'L',
             'start_year': 2021, 'summary': 's', 'currently_working': True},
            {'section': 'skills', 'hard_skills': ['a', 'b', 'a']},
            {'section': 'about', 'content': 'Hello'},
        ):
            response = self.post('/api/profile', dict(
                payload, action='update', token=token
            ))
            self.assertEqual(response.status_code, status.HTTP_200_OK)
        headers = {'Authorization': f'Bearer {token}'}
        response = self.client.get('/api/profile', headers=headers)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.validate(response.get_json(), 'profile.json')
        sections = response.get_json()['data']['sections']
        self.assertEqual(sections['education'][0]['start_date'], 'Jun/2020')
        self.assertEqual(sections['experience'][0]['end_date'], 'Present')
        self.assertEqual(sections['skills']['hard_skills'], ['a', 'b'])


class TestOwnership(APITestCase):
    """One user cannot touch another user's records."""

    def test_cannot_delete_others_records(self):
        self.register('a@x.com')
        self.register('b@x.com', full_name='B C')
        alice = self.login('a@x.com').get_json()['token']
        bob = self.login('b@x.com').get_json()['token']

        response = self.post('/api/profile', dict(
            EDUCATION, action='update', section='education', token=bob
        ))
        record_id = response.get_json()['data']['_id']

        response = self.post('/api/profile', {
            'action': 'update', 'section': 'education', 'operation': 'delete',
            'id': record_id, 'token': alice
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.get_json()['data']['deleted'])

        response = self.post('/api/profile', {
            'action': 'fetch', 'section': 'education', 'token': bob
        })
        self.assertEqual(len(response.get_json()['data']), 1)
        response = self.post('/api/profile', {
            'action': 'fetch', 'section': 'education', 'token': alice
        })
        self.assertEqual(response.get_json()['data'], [])


class TestTransport(APITestCase):
    """Tokens, CORS and errors at the HTTP level."""

    def test_token_in_query(self):
        self.register()
        token = self.login().get_json()['token']
        response = self.client.get(f'/api/profile?token={token}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_no_token(self):
        response = self.client.get('/api/profile')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.post('/api/profile', {'action': 'fetch'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bad_json(self):
        response = self.client.post('/api/login', data='{not json',
                                    content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.validate(response.get_json())

    def test_options(self):
        """Preflight requests are answered with CORS headers."""
        for path in ('/api/register', '/api/login', '/api/profile'):
            response = self.client.options(path)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data, b'')
            self.assertEqual(response.headers['Access-Control-Allow-Origin'],
                             '*')
            self.assertIn('POST',
                          response.headers['Access-Control-Allow-Methods'])
            self.assertIn('Authorization',
                          response.headers['Access-Control-Allow-Headers'])

    def test_cors_on_errors(self):
        response = self.post('/api/login', {})
        self.assertEqual(response.headers['Access-Control-Allow-Origin'], '*')

    def test_wrong_method(self):
        response = self.client.get('/api/register')
        self.assertEqual(response.status_code,
                         status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.get_json(),
                         {'success': False, 'message': 'Method not allowed'})

    def test_bad_action(self):
        self.register()
        token = self.login().get_json()['token']
        response = self.post('/api/profile', {'action': 'dance',
                                              'token': token})
        self.assertEqual(response.status_code,
                         status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(response.get_json()['message'], 'Method not allowed')

    def test_bad_credentials(self):
        self.register()
        response = self.login(password='secret2')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertNotIn('token', response.get_json())

    def test_status(self):
        response = self.client.get('/api/status')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.get_json()['data'],
                         {'session_store': True, 'database': True})

    @mock.patch('profiles.controllers.health.util.is_available')
    def test_status_unavailable(self, mock_available):
        mock_available.return_value = False
        response = self.client.get('/api/status')
        self.assertEqual(response.status_code,
                         status.HTTP_503_SERVICE_UNAVAILABLE)

    @mock.patch('profiles.controllers.health.service_status')
    def test_unexpected_error(self, mock_status):
        """Unexpected errors are a 500 with nothing but a generic message."""
        mock_status.side_effect = KeyError('internal detail')
        response = self.client.get('/api/status')
        self.assertEqual(response.status_code,
                         status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.get_json(),
                         {'success': False,
                          'message': 'Internal server error'})


class TestRegisterLoginProperty(APITestCase):
    """Any valid registration can log in, as the user it registered."""

    @settings(max_examples=10, deadline=None)
    @given(
        local=st.text(alphabet=string.ascii_lowercase + string.digits,
                      min_size=1, max_size=20),
        password=st.text(alphabet=string.ascii_letters + string.digits
                         + string.punctuation + ' ',
                         min_size=6, max_size=40)
        .filter(lambda p: p.strip()),
        full_name=st.text(alphabet=string.ascii_letters + ' ',
                          min_size=2, max_size=40)
        .filter(lambda n: len(n.strip()) >= 2)
    )
    def test_register_then_login(self, local, password, full_name):
        email = f'{local}.{uuid.uuid4().hex[:8]}@mail.com'
        response = self.register(email, password, full_name)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user_id = response.get_json()['data']['user_id']

        response = self.login(email.upper(), password)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = response.get_json()['token']

        with self.app.app_context():
            self.assertEqual(session_store.load(token), user_id)
