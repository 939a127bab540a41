# crud/conversation_metric.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.dates import now_utc, to_utc
from database.upsert import dialect_insert
from models.metrics import ConversationMetric

# upsert 시 병합 대상 컬럼
MERGEABLE = (
    "message_count",
    "duration_seconds",
    "avg_response_time",
    "user_satisfaction",
    "user_intent",
    "goal_achieved",
    "topics_discussed",
    "sentiment_timeline",
)
_INSERT_DEFAULTS = {"message_count": 0, "topics_discussed": [], "sentiment_timeline": []}


def list_by_chatbot(
    db: Session,
    chatbot_id: UUID,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    rated_only: bool = False,
) -> List[ConversationMetric]:
    stmt = select(ConversationMetric).where(ConversationMetric.chatbot_id == chatbot_id)
    if start:
        stmt = stmt.where(ConversationMetric.created_at >= to_utc(start))
    if end:
        stmt = stmt.where(ConversationMetric.created_at <= to_utc(end))
    if rated_only:
        stmt = stmt.where(ConversationMetric.user_satisfaction.isnot(None))
    return list(db.scalars(stmt.order_by(ConversationMetric.created_at.asc())).all())


def list_for_conversations(db: Session, conversation_ids: Iterable[UUID]) -> List[ConversationMetric]:
    ids = list(conversation_ids)
    if not ids:
        return []
    return list(db.scalars(
        select(ConversationMetric).where(ConversationMetric.conversation_id.in_(ids))
    ).all())


# ===== upsert: INSERT ... ON CONFLICT (conversation_id) DO UPDATE =====
def upsert(
    db: Session,
    *,
    conversation_id: UUID,
    chatbot_id: UUID,
    fields: Dict[str, Any],
) -> ConversationMetric:
    # None 은 "생략" 과 동일 → 기존 값 유지
    supplied = {k: v for k, v in fields.items() if k in MERGEABLE and v is not None}
    now = now_utc()

    values = {
        **_INSERT_DEFAULTS,
        **supplied,
        "id": uuid4(),
        "conversation_id": conversation_id,
        "chatbot_id": chatbot_id,
        "created_at": now,
        "updated_at": now,
    }
    stmt = dialect_insert(db, ConversationMetric).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[ConversationMetric.conversation_id],
        set_={**{k: stmt.excluded[k] for k in supplied}, "updated_at": now},
    ).returning(ConversationMetric)

    obj = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    db.commit()
    return obj
