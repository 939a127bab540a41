# crud/performance_sample.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from core.dates import now_utc, to_utc
from models.metrics import PerformanceSample


def _range_filter(col, start: Optional[datetime], end: Optional[datetime]):
    conds = []
    if start:
        conds.append(col >= to_utc(start))
    if end:
        conds.append(col <= to_utc(end))
    return conds


# ===== 생성 (append-only) =====
def create(db: Session, data: Dict[str, Any]) -> PerformanceSample:
    obj = PerformanceSample(
        chatbot_id=data["chatbot_id"],
        timestamp=to_utc(data["timestamp"]) if data.get("timestamp") else now_utc(),
        response_time=data["response_time"],
        token_usage=data.get("token_usage") or 0,
        model_version=data.get("model_version"),
        endpoint=data.get("endpoint"),
        status_code=data.get("status_code") or 200,
        error_message=data.get("error_message"),
        extra=data.get("metadata") or {},
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


# ===== 조회 =====
def list_by_chatbot(
    db: Session,
    chatbot_id: UUID,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    min_response_time: Optional[float] = None,
    max_response_time: Optional[float] = None,
    status_code: Optional[int] = None,
    endpoint: Optional[str] = None,
    errors_only: bool = False,
    order_by: str = "timestamp",
) -> List[PerformanceSample]:
    stmt = select(PerformanceSample).where(
        PerformanceSample.chatbot_id == chatbot_id,
        *_range_filter(PerformanceSample.timestamp, start, end),
    )
    if min_response_time is not None:
        stmt = stmt.where(PerformanceSample.response_time >= min_response_time)
    if max_response_time is not None:
        stmt = stmt.where(PerformanceSample.response_time <= max_response_time)
    if status_code is not None:
        stmt = stmt.where(PerformanceSample.status_code == status_code)
    if endpoint:
        stmt = stmt.where(PerformanceSample.endpoint == endpoint)
    if errors_only:
        stmt = stmt.where(PerformanceSample.status_code >= 400)

    if order_by == "response_time":
        stmt = stmt.order_by(PerformanceSample.response_time.asc())
    else:
        stmt = stmt.order_by(PerformanceSample.timestamp.asc(), PerformanceSample.created_at.asc())
    return list(db.scalars(stmt).all())


# ===== 삭제 (보존기간) =====
def delete_older_than(db: Session, cutoff: datetime) -> int:
    res = db.execute(
        delete(PerformanceSample)
        .where(PerformanceSample.timestamp < to_utc(cutoff))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return int(res.rowcount or 0)
