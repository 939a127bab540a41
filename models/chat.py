# SQLAlchemy ORM: chatbot, conversation, message
# 챗 플랫폼 소유 테이블. 이 서비스는 읽기만 한다.
from __future__ import annotations
import uuid

from sqlalchemy import Column, String, Text, DateTime, Uuid, ForeignKey, CheckConstraint, Index, func

from database.base import Base


class Chatbot(Base):
    __tablename__ = "chatbot"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Conversation(Base):
    __tablename__ = "conversation"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chatbot_id = Column(Uuid, ForeignKey("chatbot.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(String(255), nullable=False)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ended_at = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("ended_at IS NULL OR ended_at >= started_at", name="chk_conversation_time"),
        Index("idx_conversation_chatbot_started", "chatbot_id", "started_at"),
    )


class Message(Base):
    __tablename__ = "message"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(16), nullable=False)                 # 'user' | 'assistant'
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('user','assistant')", name="chk_message_role"),
        Index("idx_message_conversation_created", "conversation_id", "created_at"),
        Index("idx_message_role", "role"),
    )


__all__ = ["Chatbot", "Conversation", "Message"]
