"""Password hashing for the credential store."""

import logging
from typing import Dict

import bcrypt

from .exceptions import PasswordAuthenticationFailed

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72
"""bcrypt only considers the first 72 bytes of a password."""

_dummy_hashes: Dict[int, bytes] = {}


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Generate a salted bcrypt hash of a password.

    Raises
    ------
    ValueError
        If the UTF-8 encoded password is longer than
        :data:`MAX_PASSWORD_BYTES`.
    """
    secret = password.encode('utf-8')
    if len(secret) > MAX_PASSWORD_BYTES:
        raise ValueError('Password is too long')
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds)).decode('ascii')


def check_password(password: str, encrypted: str) -> None:
    """Check a password against a stored hash."""
    secret = password.encode('utf-8')
    if len(secret) > MAX_PASSWORD_BYTES:
        raise PasswordAuthenticationFailed('Password is too long')
    try:
        valid = bcrypt.checkpw(secret, encrypted.encode('ascii'))
    except ValueError as e:
        logger.error('Stored password hash is malformed')
        raise PasswordAuthenticationFailed('Malformed hash') from e
    if not valid:
        raise PasswordAuthenticationFailed('Incorrect password')


def burn_check(password: str, rounds: int = 12) -> None:
    """
    Spend the time of a password check without a stored hash.

    Used when the account does not exist, so that response times do not
    reveal which addresses are registered.
    """
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = bcrypt.hashpw(b'-', bcrypt.gensalt(rounds))
    secret = password.encode('utf-8').replace(b'\x00', b'')
    bcrypt.checkpw(secret[:MAX_PASSWORD_BYTES], _dummy_hashes[rounds])
