# crud/daily_analytics.py
from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from core.dates import now_utc
from database.upsert import dialect_insert
from models.metrics import DailyAnalytics

ROLLUP_FIELDS = (
    "total_conversations",
    "total_messages",
    "unique_users",
    "avg_conversation_length",
    "avg_response_time",
    "user_satisfaction_score",
    "total_ratings",
    "popular_queries",
    "response_categories",
)


def get(db: Session, chatbot_id: UUID, d: date) -> Optional[DailyAnalytics]:
    return db.scalars(
        select(DailyAnalytics).where(DailyAnalytics.chatbot_id == chatbot_id, DailyAnalytics.date == d)
    ).one_or_none()


# 날짜 구간 조회 (오름차순)
def list_range(db: Session, chatbot_id: UUID, *, start: date, end: date) -> List[DailyAnalytics]:
    q = (
        select(DailyAnalytics)
        .where(and_(DailyAnalytics.chatbot_id == chatbot_id, DailyAnalytics.date >= start, DailyAnalytics.date <= end))
        .order_by(DailyAnalytics.date.asc())
    )
    return list(db.scalars(q).all())


# ===== 절대값 덮어쓰기 upsert: (chatbot_id, date) 충돌 시 전 필드 교체 =====
def upsert(db: Session, *, chatbot_id: UUID, d: date, rollup: Dict[str, Any]) -> DailyAnalytics:
    now = now_utc()
    values = {k: rollup[k] for k in ROLLUP_FIELDS}
    stmt = dialect_insert(db, DailyAnalytics).values(
        id=uuid4(), chatbot_id=chatbot_id, date=d, created_at=now, updated_at=now, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[DailyAnalytics.chatbot_id, DailyAnalytics.date],
        set_={**{k: stmt.excluded[k] for k in ROLLUP_FIELDS}, "updated_at": now},
    ).returning(DailyAnalytics)

    obj = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    db.commit()
    return obj
