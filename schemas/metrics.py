# 수집(ingestion) 스키마 + 검증. 수집 서비스와 API 경계가 같은 규칙을 공유한다.
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, confloat, conint, constr
from pydantic import ValidationError as PydanticValidationError


# ===== 필드 규칙 =====
ResponseTimeSec = confloat(ge=0)
TokenCount = conint(ge=0)
StatusCode = conint(ge=100, le=599)
Satisfaction = conint(ge=1, le=5)
MessageCount = conint(ge=0)
Seconds = confloat(ge=0)
SentimentScore = confloat(ge=-1, le=1)
Confidence = confloat(ge=0, le=1)
ShortStr = constr(strip_whitespace=True, min_length=1, max_length=255)


class SentimentPoint(BaseModel):
    timestamp: datetime
    score: SentimentScore
    confidence: Confidence


class PerformanceSampleCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    chatbot_id: UUID
    response_time: ResponseTimeSec = Field(..., description="응답 시간(초)")
    token_usage: TokenCount = 0
    model_version: Optional[ShortStr] = None
    endpoint: Optional[ShortStr] = None
    status_code: StatusCode = 200
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class ConversationMetricUpsert(BaseModel):
    """None/생략 필드는 기존 값을 유지한다 (clear 의미 없음)."""
    model_config = ConfigDict(extra="forbid")

    conversation_id: UUID
    chatbot_id: UUID
    message_count: Optional[MessageCount] = None
    duration_seconds: Optional[Seconds] = None
    avg_response_time: Optional[ResponseTimeSec] = None
    user_satisfaction: Optional[Satisfaction] = None
    user_intent: Optional[ShortStr] = None
    goal_achieved: Optional[bool] = None
    topics_discussed: Optional[List[str]] = None
    sentiment_timeline: Optional[List[SentimentPoint]] = None


# ===== 검증 결과 =====
T = TypeVar("T", bound=BaseModel)


@dataclass
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.errors

    def summary(self) -> str:
        return "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in self.errors)


def validate(schema: Type[T], data: Dict[str, Any]) -> ValidationResult[T]:
    try:
        return ValidationResult(value=schema.model_validate(data))
    except PydanticValidationError as exc:
        errors = [{"loc": e["loc"], "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
        return ValidationResult(errors=errors)


def validate_sample(data: Dict[str, Any]) -> ValidationResult[PerformanceSampleCreate]:
    return validate(PerformanceSampleCreate, data)


def validate_conversation_metric(data: Dict[str, Any]) -> ValidationResult[ConversationMetricUpsert]:
    return validate(ConversationMetricUpsert, data)


# ===== 응답 =====
class PerformanceSampleOut(BaseModel):
    id: UUID
    chatbot_id: UUID
    timestamp: datetime
    response_time: float
    token_usage: int
    model_version: Optional[str] = None
    endpoint: Optional[str] = None
    status_code: int
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="extra")
    model_config = ConfigDict(from_attributes=True)


class ConversationMetricOut(BaseModel):
    id: UUID
    conversation_id: UUID
    chatbot_id: UUID
    message_count: int
    duration_seconds: Optional[float] = None
    avg_response_time: Optional[float] = None
    user_satisfaction: Optional[int] = None
    user_intent: Optional[str] = None
    goal_achieved: Optional[bool] = None
    topics_discussed: List[str] = Field(default_factory=list)
    sentiment_timeline: List[SentimentPoint] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PopularQuery(BaseModel):
    query: str
    count: int


class ResponseCategory(BaseModel):
    category: str
    count: int
    percentage: float


class DailyAnalyticsOut(BaseModel):
    chatbot_id: UUID
    date: date
    total_conversations: int
    total_messages: int
    unique_users: int
    avg_conversation_length: float
    avg_response_time: float
    user_satisfaction_score: float
    total_ratings: int
    popular_queries: List[PopularQuery] = Field(default_factory=list)
    response_categories: List[ResponseCategory] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class CleanupPayload(BaseModel):
    max_age_days: conint(ge=1) = 90


class GeneratePayload(BaseModel):
    start: date
    end: date
