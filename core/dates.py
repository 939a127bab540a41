# 기준 타임존(METRICS_TZ) 날짜 도우미. DB 저장값은 항상 UTC.
from __future__ import annotations
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo

from core.config import METRICS_TZ

TZ = ZoneInfo(METRICS_TZ)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    return datetime.now(TZ).date()


def to_utc(ts: datetime) -> datetime:
    # tz 없는 값은 UTC 로 간주 (SQLite 는 tz 정보를 버린다)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def to_local(ts: datetime) -> datetime:
    return to_utc(ts).astimezone(TZ)


def day_window(d: date) -> Tuple[datetime, datetime]:
    """[d 00:00:00, d 23:59:59.999] (기준 타임존) 을 UTC 로 돌려준다."""
    start = datetime.combine(d, time.min, tzinfo=TZ)
    end = datetime.combine(d, time(23, 59, 59, 999000), tzinfo=TZ)
    return to_utc(start), to_utc(end)


def iter_days(start: date, end: date):
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def hour_bucket(ts: datetime) -> datetime:
    # 기준 타임존 정시를 UTC 로 돌려준다. DST 되감기 구간의 같은 벽시계 시각도 fold 로 구분된다
    return to_utc(to_local(ts).replace(minute=0, second=0, microsecond=0))


def local_date(ts: datetime) -> date:
    return to_local(ts).date()
