# app/endpoints/metrics.py
from __future__ import annotations
from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from core.errors import NotFoundError
from crud import chat as crud_chat
from database.session import get_db
from schemas.metrics import (
    CleanupPayload,
    ConversationMetricOut,
    PerformanceSampleCreate,
    PerformanceSampleOut,
)
from service import ingestion, retention

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.post("/samples", response_model=PerformanceSampleOut, status_code=status.HTTP_201_CREATED)
def create_sample(payload: PerformanceSampleCreate, db: Session = Depends(get_db)):
    if not crud_chat.chatbot_exists(db, payload.chatbot_id):
        raise NotFoundError("chatbot not found")
    return ingestion.record_sample(db, **payload.model_dump())


# 부분 갱신: 본문에 없는(또는 null) 필드는 기존 값 유지
@router.put("/conversations/{conversation_id}", response_model=ConversationMetricOut)
def upsert_conversation_metric(
    conversation_id: UUID,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    return ingestion.upsert_conversation_metric(db, {**body, "conversation_id": conversation_id})


@router.post("/cleanup")
def cleanup_samples(payload: Optional[CleanupPayload] = None, db: Session = Depends(get_db)):
    payload = payload or CleanupPayload()
    deleted = retention.cleanup_old_metrics(db, payload.max_age_days)
    return {"deleted": deleted}
