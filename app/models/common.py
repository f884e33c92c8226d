"""Shared schema types."""
from datetime import datetime, timezone
from typing import Annotated

from pydantic import PlainSerializer


def iso_utc(dt: datetime) -> str:
    """ISO 8601 with a ``Z`` suffix; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# Stored datetimes are naive UTC; API responses mark them as such
UtcDateTime = Annotated[datetime, PlainSerializer(iso_utc, return_type=str, when_used="json")]
