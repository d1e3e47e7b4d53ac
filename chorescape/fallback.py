"""
Graceful degradation for dashboard list/aggregate endpoints.

Handlers decorated with degrade_on_error answer 200 with a zeroed payload when
the datastore fails instead of surfacing a 5xx. Only the admin booking list,
the admin stats and the admin worker list opt in.

Those routes gate on require_admin_or_degraded. When the role lookup itself
hits a datastore error the gate hands the handler a DatastoreUnavailable
marker, and the decorator answers with the default payload without running
the handler. Token failures and role denials still propagate.
"""

import logging
from functools import wraps
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from . import config
from .errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class DatastoreUnavailable:
    """Stands in for a dependency value the datastore could not produce"""

    def __init__(self, error: Exception):
        self.error = error


def degrade_on_error(default_factory: Callable[[], Any]):
    """
    Decorator for async route handlers.

    Args:
        default_factory: builds the payload returned when the handler fails

    Example:
        @router.get("/stats")
        @degrade_on_error(empty_stats)
        async def get_stats(_admin=Depends(require_admin_or_degraded), ...):
            ...
    """

    def degraded(name: str, error: Exception):
        logger.error(f"❌ {name} failed, serving default payload: {str(error)}")
        payload = default_factory()
        if isinstance(payload, dict) and not config.IS_PRODUCTION:
            payload["error"] = str(error)
        return payload

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            for value in kwargs.values():
                if isinstance(value, DatastoreUnavailable):
                    return degraded(func.__name__, value.error)
            try:
                return await func(*args, **kwargs)
            except (SQLAlchemyError, UpstreamUnavailableError) as e:
                return degraded(func.__name__, e)

        return wrapper

    return decorator
