# service/aggregation.py
from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from core.dates import day_window, iter_days
from core.errors import MetricsError, ValidationError, store_errors
from core.stats import mean
from crud import conversation_metric as crud_metric
from crud import daily_analytics as crud_daily
from models.metrics import DailyAnalytics
from service.conversation_source import ConversationSource, SqlConversationSource

log = logging.getLogger("analytics")


def compute_daily_rollup(db: Session, chatbot_id: UUID, day: date, source: ConversationSource) -> Dict[str, Any]:
    """(chatbot, day) 하루치 롤업 값을 계산한다. 데이터가 없으면 전부 0."""
    start, end = day_window(day)

    conversations = source.list_conversations(chatbot_id, start, end)
    conv_ids = [c.id for c in conversations]
    message_counts = source.count_messages(conv_ids) if conv_ids else {}
    metrics = crud_metric.list_for_conversations(db, conv_ids)

    total_conversations = len(conversations)
    total_messages = sum(message_counts.get(cid, 0) for cid in conv_ids)
    unique_users = len({c.session_id for c in conversations})

    response_times = [m.avg_response_time for m in metrics if m.avg_response_time is not None]
    ratings = [m.user_satisfaction for m in metrics if m.user_satisfaction is not None]

    return {
        "total_conversations": total_conversations,
        "total_messages": total_messages,
        "unique_users": unique_users,
        "avg_conversation_length": total_messages / total_conversations if total_conversations else 0.0,
        "avg_response_time": mean(response_times),
        "user_satisfaction_score": mean(ratings),
        "total_ratings": len(ratings),
        "popular_queries": source.popular_queries(conv_ids) if conv_ids else [],
        "response_categories": source.response_categories(conv_ids) if conv_ids else [],
    }


def generate_daily_analytics(
    db: Session,
    chatbot_id: UUID,
    day: date,
    source: Optional[ConversationSource] = None,
) -> DailyAnalytics:
    source = source or SqlConversationSource(db)
    with store_errors(db, f"daily analytics {chatbot_id} {day.isoformat()}"):
        rollup = compute_daily_rollup(db, chatbot_id, day, source)
        obj = crud_daily.upsert(db, chatbot_id=chatbot_id, d=day, rollup=rollup)
    log.info(
        "daily_analytics upserted chatbot=%s date=%s conversations=%d messages=%d",
        chatbot_id, day.isoformat(), rollup["total_conversations"], rollup["total_messages"],
    )
    return obj


def batch_generate_analytics(
    db: Session,
    chatbot_id: UUID,
    start_date: date,
    end_date: date,
    source: Optional[ConversationSource] = None,
) -> List[DailyAnalytics]:
    """
    start_date ~ end_date (포함) 을 하루씩 순차 집계.
    저장 실패 시 남은 날짜는 중단하고 예외를 그대로 올린다. 이미 쓴 날짜는 커밋된 상태로 남는다.
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be earlier than start_date")
    source = source or SqlConversationSource(db)
    results: List[DailyAnalytics] = []
    for day in iter_days(start_date, end_date):
        try:
            results.append(generate_daily_analytics(db, chatbot_id, day, source))
        except Exception:
            log.error("batch aborted at %s (chatbot=%s, %d day(s) committed)", day.isoformat(), chatbot_id, len(results))
            raise
    return results


def generate_for_active_chatbots(db: Session, day: date, source: Optional[ConversationSource] = None) -> int:
    """
    해당 날짜에 대화가 있었던 챗봇 전체 롤업. 챗봇별로 독립 실행하며,
    실패한 챗봇은 로그만 남기고 건너뛴다. 성공한 챗봇 수 반환.
    """
    source = source or SqlConversationSource(db)
    start, end = day_window(day)
    with store_errors(db, "list active chatbots"):
        chatbot_ids = source.list_active_chatbots(start, end)
    done = 0
    for chatbot_id in chatbot_ids:
        try:
            generate_daily_analytics(db, chatbot_id, day, source)
        except MetricsError:
            log.exception("rollup skipped chatbot=%s date=%s", chatbot_id, day.isoformat())
            continue
        done += 1
    return done
