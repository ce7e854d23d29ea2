import asyncio
import logging
from datetime import datetime
from uuid import UUID

from .errors import OperationTimeout, ValidationError

logger = logging.getLogger("shared.utils")


def serialize_row(row):
    """Serialize database row, converting datetime to ISO format"""
    d = dict(row)
    for k, v in d.items():
        if isinstance(v, datetime):
            d[k] = v.isoformat()
        elif isinstance(v, UUID):
            d[k] = str(v)
    return d


def ensure_uuid(value: str, label: str = "ID") -> str:
    """Return the canonical string form of a UUID or raise ValidationError."""
    try:
        return str(UUID(str(value)))
    except ValueError:
        logger.warning(f"Invalid {label} format: {value}")
        raise ValidationError(f"Invalid {label} format")


async def with_timeout(awaitable, seconds: float, label: str, data=None):
    """
    Race an awaitable against a timer.

    On timeout the call is abandoned locally; whatever the remote side was
    doing may still complete.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        logger.warning(f"{label} timed out after {seconds}s")
        raise OperationTimeout(f"{label} timed out. Please try again.", data)
