# service/ingestion.py
"""
성능 샘플 / 대화 지표 수집.
- record_sample              : 추론 호출 종료 시점에 1건 append
- upsert_conversation_metric : 대화 턴마다 부분 갱신 (단일 INSERT ... ON CONFLICT)
- track_conversation_metrics : 대화/메시지 원천에서 메시지 수·대화 시간을 계산해 upsert
"""
from __future__ import annotations
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from core.dates import to_utc
from core.errors import NotFoundError, ValidationError, store_errors
from crud import conversation_metric as crud_metric
from crud import performance_sample as crud_sample
from models.metrics import ConversationMetric, PerformanceSample
from schemas.metrics import validate_conversation_metric, validate_sample
from service.conversation_source import ConversationSource, SqlConversationSource

log = logging.getLogger("ingestion")


def record_sample(db: Session, chatbot_id: UUID | str, response_time: float, **options: Any) -> PerformanceSample:
    result = validate_sample({"chatbot_id": chatbot_id, "response_time": response_time, **options})
    if not result.ok:
        raise ValidationError(f"invalid performance sample: {result.summary()}", details=result.errors)

    payload = result.value
    with store_errors(db, "record sample"):
        obj = crud_sample.create(db, payload.model_dump())
    log.debug("sample recorded chatbot=%s rt=%.3fs status=%s", payload.chatbot_id, payload.response_time, payload.status_code)
    return obj


def upsert_conversation_metric(db: Session, data: Dict[str, Any]) -> ConversationMetric:
    result = validate_conversation_metric(data)
    if not result.ok:
        raise ValidationError(f"invalid conversation metric: {result.summary()}", details=result.errors)

    payload = result.value
    # JSON 컬럼에 들어갈 값(sentiment timestamp 등)은 json 모드로 직렬화
    fields = payload.model_dump(mode="json", exclude_none=True, include=set(crud_metric.MERGEABLE))
    with store_errors(db, "upsert conversation metric"):
        obj = crud_metric.upsert(
            db,
            conversation_id=payload.conversation_id,
            chatbot_id=payload.chatbot_id,
            fields=fields,
        )
    log.debug("conversation metric upserted conversation=%s fields=%s", payload.conversation_id, sorted(fields))
    return obj


def track_conversation_metrics(
    db: Session,
    conversation_id: UUID,
    chatbot_id: UUID,
    source: Optional[ConversationSource] = None,
    **extra: Any,
) -> ConversationMetric:
    source = source or SqlConversationSource(db)
    with store_errors(db, "load conversation"):
        conv = source.get_conversation(conversation_id)
        if conv is None:
            raise NotFoundError(f"conversation {conversation_id} not found")
        message_count = source.count_messages([conversation_id]).get(conversation_id, 0)

    duration: Optional[float] = None
    if conv.ended_at is not None:
        duration = (to_utc(conv.ended_at) - to_utc(conv.started_at)).total_seconds()

    data = {
        "conversation_id": conversation_id,
        "chatbot_id": chatbot_id,
        "message_count": message_count,
        "duration_seconds": duration,
        **extra,
    }
    return upsert_conversation_metric(db, data)
