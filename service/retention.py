# service/retention.py
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.orm import Session

from core.dates import now_utc
from core.errors import ValidationError, store_errors
from crud import performance_sample as crud_sample

log = logging.getLogger("retention")


def cleanup_old_metrics(db: Session, max_age_days: int, *, now: Optional[datetime] = None) -> int:
    """
    timestamp < now - max_age_days 인 성능 샘플만 삭제하고 삭제 건수를 돌려준다.
    conversation_metric / daily_analytics 는 보존 대상이 아니다.
    """
    if isinstance(max_age_days, bool) or not isinstance(max_age_days, int) or max_age_days < 1:
        raise ValidationError("max_age_days must be a positive integer")

    cutoff = (now or now_utc()) - timedelta(days=max_age_days)
    with store_errors(db, "cleanup performance samples"):
        deleted = crud_sample.delete_older_than(db, cutoff)
    log.info("retention sweep removed %d sample(s) older than %s", deleted, cutoff.isoformat())
    return deleted
