"""
Controllers for the profile endpoint.

Every request to the profile endpoint carries a session token. The token is
exchanged for a user id via the session store on every request; that id is
the only owner used for the rest of the request.
"""

import logging
from typing import Any, Mapping, Optional

from werkzeug.exceptions import BadRequest, InternalServerError, \
    MethodNotAllowed, NotFound, Unauthorized

from .. import domain, status
from ..services import accounts, session_store
from ..services import sections as store
from ..services.exceptions import InvalidOrExpiredToken, NoSuchUser, \
    SessionDeletionFailed
from . import sections
from .util import ResponseData, envelope, store_errors

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'dob': 'dob',
    'designation': 'designation',
    'gender': 'gender',
    'country': 'country',
    'state': 'state',
    'city': 'city',
}
"""Request keys of the personal details, and the fields they populate."""


def authorize(token: Optional[str]) -> str:
    """
    Get the id of the user who owns the session ``token``.

    Raises
    ------
    :class:`werkzeug.exceptions.BadRequest`
        If no token was provided.
    :class:`werkzeug.exceptions.Unauthorized`
        If the token is unknown or its session has expired.
    :class:`werkzeug.exceptions.ServiceUnavailable`
        If the session store cannot be reached.

    """
    if not token:
        raise BadRequest('Token is required')
    try:
        with store_errors('Session service unavailable'):
            return session_store.load(token)
    except InvalidOrExpiredToken as e:
        logger.debug('Rejected token: %s', e)
        raise Unauthorized('Invalid or expired token') from e


def handle_request(payload: Mapping[str, Any],
                   token: Optional[str]) -> ResponseData:
    """
    Handle a POST to the profile endpoint.

    Requests that name a ``section`` are handed to
    :func:`.sections.handle_section`. Otherwise the ``action`` is one of
    ``fetch``, ``update`` or ``logout``.
    """
    if payload.get('section') is not None:
        return sections.handle_section(authorize(token), payload)

    action = payload.get('action')
    if action == 'logout':
        return logout(token)
    user_id = authorize(token)
    if action == 'fetch':
        return get_profile(user_id)
    if action == 'update':
        return update_profile(user_id, payload)
    raise MethodNotAllowed(description='Method not allowed')


def get_profile(user_id: str) -> ResponseData:
    """
    Get a user's personal details and every profile section.

    Until the user has saved their first and last names, these are derived
    from the full name given at registration.
    """
    with store_errors('Profile service unavailable'):
        try:
            user = accounts.get_user_by_id(user_id)
        except NoSuchUser as e:
            raise NotFound('User not found') from e
        core = store.get_profile(user_id) or domain.ProfileCore()
        all_sections = sections.fetch_all_sections(user_id)

    if not core.first_name and not core.last_name:
        first_name, last_name = user.name_parts
        core = core._replace(first_name=first_name, last_name=last_name)

    data = {'email': user.email}
    data.update({key: getattr(core, field)
                 for key, field in PROFILE_FIELDS.items()})
    data['sections'] = all_sections
    return envelope(data=data), status.HTTP_200_OK, {}


def update_profile(user_id: str, payload: Mapping[str, Any]) -> ResponseData:
    """
    Replace a user's personal details.

    All nine fields must be present, though any of them may be blank.
    """
    if any(payload.get(key) is None for key in PROFILE_FIELDS):
        raise BadRequest('Missing profile fields')
    core = domain.ProfileCore(**{
        field: str(payload[key]).strip()
        for key, field in PROFILE_FIELDS.items()
    })
    with store_errors('Profile update failed'):
        store.save_profile(user_id, core)
    logger.debug('Updated profile for user %s', user_id)
    return envelope('Profile updated successfully'), status.HTTP_200_OK, {}


def logout(token: Optional[str]) -> ResponseData:
    """
    End a session.

    Succeeds whether or not the session exists.
    """
    if not token:
        raise BadRequest('Token is required')
    try:
        with store_errors('Logout failed'):
            session_store.delete(token)
    except SessionDeletionFailed as e:
        logger.error('Could not delete session: %s', e)
        raise InternalServerError('Logout failed') from e
    return envelope('Logged out successfully'), status.HTTP_200_OK, {}
