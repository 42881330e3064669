"""DateTime Utilities Module"""

import datetime as _dt
from zoneinfo import ZoneInfo

from kink import di


class DateTimeUtils:
    @staticmethod
    def timezone() -> _dt.tzinfo:
        return di[ZoneInfo] if ZoneInfo in di else _dt.UTC

    @staticmethod
    def now() -> _dt.datetime:
        return _dt.datetime.now(tz=DateTimeUtils.timezone())

    @staticmethod
    def utcnow() -> _dt.datetime:
        return _dt.datetime.now(tz=_dt.UTC)

    @staticmethod
    def isoformat(dt: _dt.datetime | None = None) -> str:
        return (dt or DateTimeUtils.now()).isoformat()

    @staticmethod
    def to_unix_nanos(dt: _dt.datetime) -> int:
        return int(dt.timestamp() * 1_000_000_000)

    @staticmethod
    def format(dt: _dt.datetime, fmt: str = '%Y%m%dT%H%M%S') -> str:
        return dt.strftime(fmt)
