"""
Controllers for registration and login.

When a user logs in they are issued an opaque session token, registered in
the session store along with their user id. The client presents that token
on every subsequent request to the profile endpoint; see
:mod:`profiles.controllers.profile`.
"""

import logging
from typing import Any, Mapping, Optional

from flask import current_app
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, InternalServerError, \
    Unauthorized
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, ValidationError

from .. import status
from ..services import accounts, session_store
from ..services.exceptions import AuthenticationFailed, DuplicateEmail, \
    RegistrationFailed, SessionCreationFailed
from ..services.passwords import MAX_PASSWORD_BYTES
from .util import ResponseData, envelope, store_errors

logger = logging.getLogger(__name__)


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


def _to_formdata(payload: Mapping[str, Any], fields: Mapping[str, str]) \
        -> MultiDict:
    """Map JSON keys onto form field names, dropping absent values."""
    return MultiDict({
        name: str(payload[key]) for key, name in fields.items()
        if payload.get(key) is not None
    })


def _first_error(form: Form) -> str:
    for field in form:
        if field.errors:
            return str(field.errors[0])
    return 'Invalid request'


class RegistrationForm(Form):
    """Registration form."""

    email = StringField(
        'Email address',
        filters=[_strip],
        validators=[
            DataRequired('Email, password, and full name are required'),
            Email('Invalid email format')
        ]
    )
    password = PasswordField(
        'Password',
        validators=[
            DataRequired('Email, password, and full name are required'),
            Length(min=6, message='Password must be at least 6 characters')
        ]
    )
    full_name = StringField(
        'Full name',
        filters=[_strip],
        validators=[
            DataRequired('Email, password, and full name are required'),
            Length(min=2, message='Full name must be at least 2 characters')
        ]
    )

    def validate_password(self, field: PasswordField) -> None:
        """Passwords longer than bcrypt can consider are refused."""
        if len(field.data.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValidationError('Password must be at most 72 bytes')
        if '\x00' in field.data:
            raise ValidationError('Password contains invalid characters')

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'RegistrationForm':
        """Build the form from a JSON request body."""
        return cls(_to_formdata(payload, {'email': 'email',
                                          'password': 'password',
                                          'fullName': 'full_name'}))


class LoginForm(Form):
    """Log in form."""

    email = StringField(
        'Email address',
        filters=[_strip],
        validators=[DataRequired('Email and password are required'),
                    Email('Invalid email format')]
    )
    password = PasswordField(
        'Password',
        validators=[DataRequired('Email and password are required')]
    )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'LoginForm':
        """Build the form from a JSON request body."""
        return cls(_to_formdata(payload, {'email': 'email',
                                          'password': 'password'}))


def register(payload: Mapping[str, Any]) -> ResponseData:
    """
    Create a new account.

    Parameters
    ----------
    payload : dict
        Should include ``email``, ``password`` and ``fullName``.

    Returns
    -------
    dict
        Response body.
    int
        Status code. 201 (Created) if all goes well.
    dict
        Headers to add to the response.

    """
    form = RegistrationForm.from_payload(payload)
    if not form.validate():
        logger.debug('Registration form is not valid')
        raise BadRequest(_first_error(form))

    try:
        with store_errors('Registration failed'):
            user = accounts.register(
                form.email.data, form.password.data, form.full_name.data,
                rounds=current_app.config['BCRYPT_LOG_ROUNDS']
            )
    except DuplicateEmail as e:
        logger.debug('Registration refused: address in use')
        raise BadRequest('Email already registered') from e
    except RegistrationFailed as e:
        logger.error('Registration failed: %s', e)
        raise InternalServerError('Registration failed') from e

    logger.info('Registered user %s', user.user_id)
    data = envelope('Registration successful', {'user_id': user.user_id})
    return data, status.HTTP_201_CREATED, {}


def login(payload: Mapping[str, Any]) -> ResponseData:
    """
    Authenticate a user, and start a session.

    Parameters
    ----------
    payload : dict
        Should include ``email`` and ``password``.

    Returns
    -------
    dict
        Response body, including the session token.
    int
        Status code. 200 if all goes well.
    dict
        Headers to add to the response.

    """
    form = LoginForm.from_payload(payload)
    if not form.validate():
        logger.debug('Login form is not valid')
        raise BadRequest(_first_error(form))

    try:
        with store_errors('Login failed'):
            user = accounts.authenticate(
                form.email.data, form.password.data,
                rounds=current_app.config['BCRYPT_LOG_ROUNDS']
            )
    except AuthenticationFailed as e:
        logger.debug('Authentication failed: %s', e)
        raise Unauthorized('Invalid email or password') from e

    store = session_store.current_session()
    try:
        with store_errors('Cannot log in'):
            token = store.create(user.user_id)
    except SessionCreationFailed as e:
        logger.error('Could not create session: %s', e)
        raise InternalServerError('Cannot log in') from e

    logger.info('User %s logged in', user.user_id)
    data = envelope('Login successful',
                    {'token': token, 'expires_in': store.duration},
                    token=token)
    return data, status.HTTP_200_OK, {}
