"""Primary-then-fallback execution of persistence calls."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .models import StoreResult, SyncStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordNotFoundError(LookupError):
    """Raised when a record is missing from the local cache."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} with ID '{record_id}' not found")


async def resilient(
    operation: str,
    primary: Callable[[], Awaitable[T]] | None,
    fallback: Callable[[], T],
    default: T,
) -> StoreResult:
    """Run ``primary`` and fall back to ``fallback`` if it raises.

    Args:
        operation: Name used in log messages
        primary: Coroutine factory for the remote store, or None when no
                 remote store is configured
        fallback: Synchronous call against the local cache
        default: Value reported when both stores fail

    Returns:
        StoreResult tagged with the store that produced the value
    """
    if primary is not None:
        try:
            return StoreResult(status=SyncStatus.PRIMARY, value=await primary())
        except Exception as e:
            logger.warning("%s failed on remote store, using local cache: %s", operation, e)

    try:
        return StoreResult(status=SyncStatus.FALLBACK, value=fallback())
    except RecordNotFoundError as e:
        logger.info("%s: %s", operation, e)
        return StoreResult(status=SyncStatus.FAILED, value=default, error=str(e))
    except Exception as e:
        logger.error("%s failed on local cache: %s", operation, e)
        return StoreResult(status=SyncStatus.FAILED, value=default, error=str(e))
