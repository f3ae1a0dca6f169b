"""
Custom SQLAlchemy column types shared by the models.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, TypeDecorator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Stores instants as naive UTC and hands back timezone-aware UTC datetimes.

    SQLite keeps no offset, so every value is normalized on the way in and
    tagged as UTC on the way out. Naive input is rejected.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError('UTCDateTime requires a timezone-aware datetime.')
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
