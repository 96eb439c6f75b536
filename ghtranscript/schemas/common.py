"""Field types shared by record and timeline event schemas."""

import logging
from datetime import datetime
from typing import Annotated, Any

from pydantic import BeforeValidator

logger = logging.getLogger(__name__)


def _coerce_timestamp(value: Any) -> Any:
    """Turn an empty or unparseable timestamp string into None."""
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        logger.debug(f"Ignoring non-string timestamp: {value!r}")
        return None
    if not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring malformed timestamp: {value!r}")
        return None


# GitHub timestamps are occasionally absent or malformed; those order at the epoch
OptionalTimestamp = Annotated[datetime | None, BeforeValidator(_coerce_timestamp)]
