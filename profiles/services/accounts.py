"""
Provide methods for working with user accounts.

Accounts live in the credential store. Registration also creates an empty
set of personal details in the profile document store; the two writes are
not covered by a single transaction, so a failure of the second write is
compensated by deleting the account created by the first.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from .. import domain
from . import passwords, sections, util
from .exceptions import AuthenticationFailed, DuplicateEmail, NoSuchUser, \
    OperationFailed, PasswordAuthenticationFailed, RegistrationFailed
from .models import DBUser


logger = logging.getLogger(__name__)


def _normalize(email: str) -> str:
    return email.strip().lower()


def _to_domain(db_user: DBUser) -> domain.User:
    return domain.User(
        user_id=db_user.id,
        full_name=db_user.full_name,
        email=db_user.email,
        created_at=db_user.created_at
    )


def email_exists(email: str) -> bool:
    """
    Determine whether a user with a particular address already exists.

    The comparison is case-insensitive.

    Parameters
    ----------
    email : str

    Returns
    -------
    bool

    """
    with util.transaction() as session:
        data = (
            session.query(DBUser)
            .filter(DBUser.email_normalized == _normalize(email))
            .first()
        )
        if data:
            return True
        return False


def register(email: str, password: str, full_name: str,
             rounds: int = 12) -> domain.User:
    """
    Create a new user, along with an empty profile.

    Parameters
    ----------
    email : str
    password : str
        Password (as entered). Never stored or logged.
    full_name : str
    rounds : int
        bcrypt work factor.

    Returns
    -------
    :class:`.domain.User`

    Raises
    ------
    :class:`.DuplicateEmail`
        If an account already exists for ``email``.
    :class:`.RegistrationFailed`
        If either store rejected the new account. Nothing is left behind in
        the credential store.

    """
    if email_exists(email):
        raise DuplicateEmail('Email already registered')

    db_user = DBUser(
        id=util.uuid7(),
        full_name=full_name.strip(),
        email=email.strip(),
        email_normalized=_normalize(email),
        password_hash=passwords.hash_password(password, rounds),
        created_at=util.now()
    )
    user = _to_domain(db_user)
    try:
        with util.transaction() as session:
            session.add(db_user)
    except OperationFailed as e:
        # Lost a race with a concurrent registration for the same address.
        if isinstance(e.__cause__, IntegrityError):
            raise DuplicateEmail('Email already registered') from e
        raise RegistrationFailed('Could not create user') from e
    logger.debug('Created user %s', user.user_id)

    try:
        sections.create_placeholder(user.user_id)
    except Exception as e:
        logger.error('Could not create profile for %s, rolling back: %s',
                     user.user_id, e)
        _compensate(user.user_id)
        raise RegistrationFailed('Could not create profile') from e
    return user


def _compensate(user_id: str) -> None:
    try:
        delete_user(user_id)
    except Exception as e:
        logger.error('Compensating delete failed for user %s: %s',
                     user_id, e)


def delete_user(user_id: str) -> None:
    """Remove an account from the credential store."""
    with util.transaction() as session:
        session.query(DBUser).filter(DBUser.id == user_id) \
            .delete(synchronize_session=False)


def authenticate(email: str, password: str, rounds: int = 12) -> domain.User:
    """
    Validate an e-mail address and password.

    Parameters
    ----------
    email : str
    password : str
        Password (as entered). Danger, Will Robinson!
    rounds : int
        Work factor used for the dummy check when there is no such user.

    Returns
    -------
    :class:`.domain.User`

    Raises
    ------
    :class:`.AuthenticationFailed`
        Failed to authenticate user with provided credentials. Raised
        whether the address or the password was wrong.

    """
    db_user = _get_user_by_email(email)
    if db_user is None:
        passwords.burn_check(password, rounds)
        logger.debug('No such user')
        raise AuthenticationFailed('Invalid email or password')
    try:
        passwords.check_password(password, db_user.password_hash)
    except PasswordAuthenticationFailed as e:
        logger.debug('Password check failed for user %s', db_user.id)
        raise AuthenticationFailed('Invalid email or password') from e
    return _to_domain(db_user)


def _get_user_by_email(email: str) -> Optional[DBUser]:
    with util.transaction() as session:
        db_user: Optional[DBUser] = (
            session.query(DBUser)
            .filter(DBUser.email_normalized == _normalize(email))
            .first()
        )
        if db_user is not None:
            session.expunge(db_user)
        return db_user


def get_user_by_id(user_id: str) -> domain.User:
    """
    Load user data from the credential store.

    Raises
    ------
    :class:`.NoSuchUser`

    """
    with util.transaction() as session:
        db_user: Optional[DBUser] = session.get(DBUser, user_id)
        if db_user is None:
            raise NoSuchUser('User does not exist')
        return _to_domain(db_user)
