# app/endpoints/analytics.py
from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from core.errors import NotFoundError, ValidationError
from crud import chat as crud_chat
from database.session import get_db
from schemas.analytics import (
    ConversationInsightsResponse,
    ConversationLengthStats,
    DashboardMetricsResponse,
    ErrorStats,
    HourlyPoint,
    PerformanceInsightsResponse,
    SatisfactionStats,
)
from schemas.metrics import DailyAnalyticsOut, GeneratePayload
from service import aggregation, reporting, statistics
from service.reporting import TimeRange

router = APIRouter(prefix="/analytics/chatbots/{chatbot_id}", tags=["Analytics"])

Period = Literal["7d", "30d", "90d", "1y"]


# 챗봇 존재 확인 (소유권/인가는 상위 계층 책임)
def _require_chatbot(db: Session, chatbot_id: UUID) -> None:
    if not crud_chat.chatbot_exists(db, chatbot_id):
        raise NotFoundError("chatbot not found")


# start/end 둘 다 있으면 그대로, 둘 다 없으면 period 기준 최근 구간. 한쪽만 오면 거부
def _time_range(start: Optional[datetime], end: Optional[datetime], period: str) -> TimeRange:
    if (start is None) != (end is None):
        raise ValidationError("start and end must be supplied together")
    if start is not None:
        return TimeRange(start=start, end=end)
    return TimeRange.from_period(period)


@router.get("/dashboard", response_model=DashboardMetricsResponse)
def dashboard_metrics(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None, description="ISO8601:2025-09-26T00:00:00"),
    end: Optional[datetime] = Query(None, description="ISO8601"),
    period: Period = Query("30d"),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    return reporting.get_dashboard_metrics(db, chatbot_id, _time_range(start, end, period))


@router.get("/insights", response_model=ConversationInsightsResponse)
def conversation_insights(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    period: Period = Query("30d"),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    return reporting.get_conversation_insights(db, chatbot_id, _time_range(start, end, period))


@router.get("/performance", response_model=PerformanceInsightsResponse)
def performance_insights(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    period: Period = Query("30d"),
    min_response_time: Optional[float] = Query(None, ge=0),
    max_response_time: Optional[float] = Query(None, ge=0),
    status_code: Optional[int] = Query(None, ge=100, le=599),
    endpoint: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    tr = _time_range(start, end, period)
    stats = statistics.get_performance_stats(
        db, chatbot_id,
        start=tr.start, end=tr.end,
        min_response_time=min_response_time, max_response_time=max_response_time,
        status_code=status_code, endpoint=endpoint,
    )
    trends = statistics.get_performance_trends(db, chatbot_id, tr.start, tr.end)
    return {"performance_stats": stats, "performance_trends": trends}


@router.get("/satisfaction", response_model=SatisfactionStats)
def satisfaction_stats(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    return statistics.get_satisfaction_stats(db, chatbot_id, start=start, end=end)


@router.get("/conversation-length", response_model=ConversationLengthStats)
def conversation_length_stats(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    return statistics.get_conversation_length_stats(db, chatbot_id, start=start, end=end)


@router.get("/errors", response_model=ErrorStats)
def error_stats(
    chatbot_id: UUID,
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    return statistics.get_error_stats(db, chatbot_id, start=start, end=end)


@router.get("/hourly", response_model=List[HourlyPoint])
def hourly_trends(
    chatbot_id: UUID,
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    tr = TimeRange(start=start, end=end)
    return statistics.get_hourly_trends(db, chatbot_id, tr.start, tr.end)


@router.get("/export")
def export_analytics(
    chatbot_id: UUID,
    start: datetime = Query(...),
    end: datetime = Query(...),
    format: Literal["json", "csv"] = Query("json"),
    db: Session = Depends(get_db),
):
    _require_chatbot(db, chatbot_id)
    body = reporting.export_analytics_data(db, chatbot_id, TimeRange(start=start, end=end), format)
    filename = f"analytics-{chatbot_id}-{start.date().isoformat()}-{end.date().isoformat()}.{format}"
    return Response(
        content=body,
        media_type="text/csv" if format == "csv" else "application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# 구간 재집계(백필). 날짜별 순차 실행, 실패 시 중단
@router.post("/generate", response_model=List[DailyAnalyticsOut])
def generate_analytics(chatbot_id: UUID, payload: GeneratePayload, db: Session = Depends(get_db)):
    _require_chatbot(db, chatbot_id)
    return aggregation.batch_generate_analytics(db, chatbot_id, payload.start, payload.end)
