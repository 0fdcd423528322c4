"""Provides exceptions occurring with external services."""


class Unavailable(RuntimeError):
    """A backing store could not be reached."""


class SessionServiceUnavailable(Unavailable):
    """The session store could not be reached."""


class SessionCreationFailed(RuntimeError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(RuntimeError):
    """Failed to delete a session in the session store."""


class InvalidOrExpiredToken(RuntimeError):
    """
    No session exists for the presented token.

    Raised both for tokens that were never issued and for tokens whose
    session has expired or was deleted.
    """


class RegistrationFailed(RuntimeError):
    """Could not create a new account."""


class DuplicateEmail(RegistrationFailed):
    """An account with that e-mail address already exists."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class OperationFailed(RuntimeError):
    """A write against a backing store did not complete."""


class PasswordAuthenticationFailed(RuntimeError):
    """Password is not correct."""
