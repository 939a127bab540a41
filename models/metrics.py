# SQLAlchemy ORM: performance_sample, conversation_metric, daily_analytics
from __future__ import annotations
import uuid

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, Numeric, Uuid, JSON,
    ForeignKey, CheckConstraint, Index, UniqueConstraint, func,
)
from sqlalchemy.dialects.postgresql import JSONB

from core.dates import now_utc
from database.base import Base

# PostgreSQL 은 JSONB, 그 외(SQLite 테스트)는 JSON
JsonType = JSON().with_variant(JSONB(), "postgresql")


class PerformanceSample(Base):
    """추론/요청 1건의 성능 관측치. append-only, 보존기간 스위퍼만 삭제."""
    __tablename__ = "performance_sample"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chatbot_id = Column(Uuid, ForeignKey("chatbot.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=now_utc)

    response_time = Column(Numeric(10, 3, asdecimal=False), nullable=False)   # 초
    token_usage = Column(Integer, nullable=False, default=0)
    model_version = Column(String(128))
    endpoint = Column(String(255))
    status_code = Column(Integer, nullable=False, default=200)
    error_message = Column(Text)
    # 'metadata' 는 Declarative 예약어
    extra = Column("metadata", JsonType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now())

    __table_args__ = (
        CheckConstraint("response_time >= 0", name="chk_sample_response_time_nonneg"),
        CheckConstraint("token_usage >= 0", name="chk_sample_token_usage_nonneg"),
        CheckConstraint("status_code BETWEEN 100 AND 599", name="chk_sample_status_code"),
        Index("idx_sample_chatbot_ts", "chatbot_id", "timestamp"),
        Index("idx_sample_ts", "timestamp"),
        Index("idx_sample_status_code", "status_code"),
    )


class ConversationMetric(Base):
    """대화 1건당 결과 요약. conversation_id 당 1행, 쓰기는 항상 upsert."""
    __tablename__ = "conversation_metric"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(Uuid, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False)
    chatbot_id = Column(Uuid, ForeignKey("chatbot.id", ondelete="CASCADE"), nullable=False)

    message_count = Column(Integer, nullable=False, default=0)
    duration_seconds = Column(Numeric(10, 2, asdecimal=False))
    avg_response_time = Column(Numeric(10, 3, asdecimal=False))
    user_satisfaction = Column(Integer)          # 1..5
    user_intent = Column(String(255))
    goal_achieved = Column(Boolean)
    topics_discussed = Column(JsonType, nullable=False, default=list)     # ["billing", ...]
    sentiment_timeline = Column(JsonType, nullable=False, default=list)   # [{timestamp, score, confidence}]

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc,
                        server_default=func.now(), onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint("conversation_id", name="uq_conversation_metric_conversation"),
        CheckConstraint("message_count >= 0", name="chk_cm_message_count_nonneg"),
        CheckConstraint("user_satisfaction IS NULL OR user_satisfaction BETWEEN 1 AND 5",
                        name="chk_cm_satisfaction_range"),
        Index("idx_cm_chatbot_created", "chatbot_id", "created_at"),
        Index("idx_cm_satisfaction", "user_satisfaction"),
    )


class DailyAnalytics(Base):
    """(chatbot, 날짜) 단위 일일 롤업. 집계 엔진만 생성/갱신한다."""
    __tablename__ = "daily_analytics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chatbot_id = Column(Uuid, ForeignKey("chatbot.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, comment="METRICS_TZ 기준 날짜")

    total_conversations = Column(Integer, nullable=False, default=0)
    total_messages = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)
    avg_conversation_length = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    avg_response_time = Column(Numeric(10, 3, asdecimal=False), nullable=False, default=0)
    user_satisfaction_score = Column(Numeric(4, 2, asdecimal=False), nullable=False, default=0)
    total_ratings = Column(Integer, nullable=False, default=0)

    popular_queries = Column(JsonType, nullable=False, default=list)       # [{query, count}]
    response_categories = Column(JsonType, nullable=False, default=list)   # [{category, count, percentage}]

    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc,
                        server_default=func.now(), onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint("chatbot_id", "date", name="uq_daily_analytics_chatbot_date"),
        Index("idx_daily_analytics_chatbot_date", "chatbot_id", date.desc()),
    )


__all__ = ["PerformanceSample", "ConversationMetric", "DailyAnalytics"]
