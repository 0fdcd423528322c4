"""Helpers for :mod:`profiles.controllers`."""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional, Tuple

from werkzeug.exceptions import InternalServerError, ServiceUnavailable

from ..services.exceptions import OperationFailed, \
    SessionServiceUnavailable, Unavailable

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]


def envelope(message: Optional[str] = None, data: Any = None,
             **extra: Any) -> dict:
    """Build a successful response body."""
    body: dict = {'success': True}
    if message is not None:
        body['message'] = message
    body.update(extra)
    if data is not None:
        body['data'] = data
    return body


@contextmanager
def store_errors(message: str) -> Generator[None, None, None]:
    """
    Translate backing store failures into HTTP exceptions.

    An unreachable session store is a 503. Any other store failure is a 500
    carrying ``message``; the driver error is logged, never returned.
    """
    try:
        yield
    except SessionServiceUnavailable as e:
        logger.error('Session store unavailable: %s', e)
        raise ServiceUnavailable('Session service unavailable') from e
    except (Unavailable, OperationFailed) as e:
        logger.error('%s: %s', message, e)
        raise InternalServerError(message) from e
