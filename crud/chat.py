# 챗 플랫폼 테이블 읽기 전용 접근 (chatbot / conversation / message)

from __future__ import annotations
from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.dates import to_utc
from models.chat import Chatbot, Conversation, Message

Role = Literal["user", "assistant"]


# ========== Chatbot ==========
def chatbot_exists(db: Session, chatbot_id: UUID) -> bool:
    return db.scalar(select(func.count()).select_from(Chatbot).where(Chatbot.id == chatbot_id)) > 0


# ========== Conversation ==========
def get_conversation(db: Session, conversation_id: UUID) -> Optional[Conversation]:
    return db.get(Conversation, conversation_id)


def list_conversations(db: Session, chatbot_id: UUID, *, start: datetime, end: datetime) -> List[Conversation]:
    stmt = (
        select(Conversation)
        .where(
            Conversation.chatbot_id == chatbot_id,
            Conversation.started_at >= to_utc(start),
            Conversation.started_at <= to_utc(end),
        )
        .order_by(Conversation.started_at.asc())
    )
    return list(db.scalars(stmt).all())


def list_active_chatbot_ids(db: Session, *, start: datetime, end: datetime) -> List[UUID]:
    stmt = (
        select(Conversation.chatbot_id)
        .where(Conversation.started_at >= to_utc(start), Conversation.started_at <= to_utc(end))
        .distinct()
    )
    return list(db.scalars(stmt).all())


# ========== Message ==========
def count_messages(db: Session, conversation_ids: Iterable[UUID]) -> Dict[UUID, int]:
    ids = list(conversation_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(Message.conversation_id, func.count().label("cnt"))
        .where(Message.conversation_id.in_(ids))
        .group_by(Message.conversation_id)
    ).all()
    return {r.conversation_id: int(r.cnt) for r in rows}


def list_message_contents(db: Session, conversation_ids: Iterable[UUID], *, role: Role) -> List[str]:
    ids = list(conversation_ids)
    if not ids:
        return []
    stmt = (
        select(Message.content)
        .where(Message.conversation_id.in_(ids), Message.role == role)
        .order_by(Message.created_at.asc())
    )
    return list(db.scalars(stmt).all())
