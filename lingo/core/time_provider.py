from __future__ import annotations

from datetime import date, datetime, timezone


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()

    def now_iso(self) -> str:
        # Same shape as JavaScript's Date.toISOString(): millisecond precision, Z suffix.
        current = ensure_aware(self.now()).astimezone(timezone.utc)
        return current.strftime('%Y-%m-%dT%H:%M:%S.') + f'{current.microsecond // 1000:03d}Z'

    def today_iso(self) -> str:
        return self.today().isoformat()


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError('Naive datetime not allowed for backend timestamps')
    return dt


default_time_provider = TimeProvider()
