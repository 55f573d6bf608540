from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Default for created/updated columns. Every stored timestamp is UTC."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for the counsel models; datetimes map to tz-aware columns."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
