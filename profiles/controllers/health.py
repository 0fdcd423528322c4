"""Controller for the service health check."""

import logging

from .. import status
from ..services import session_store, util
from .util import ResponseData

logger = logging.getLogger(__name__)


def service_status() -> ResponseData:
    """Report whether the session store and the databases are reachable."""
    services = {
        'session_store': session_store.current_session().is_available(),
        'database': util.is_available()
    }
    available = all(services.values())
    if not available:
        logger.error('Service unavailable: %s', services)
    code = status.HTTP_200_OK if available \
        else status.HTTP_503_SERVICE_UNAVAILABLE
    return {'success': available, 'data': services}, code, {}
