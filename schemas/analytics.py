from __future__ import annotations
from datetime import date, datetime
from typing import Dict, List
from pydantic import BaseModel

from schemas.metrics import PopularQuery, ResponseCategory


class PerformanceStats(BaseModel):
    average_response_time: float
    median_response_time: float
    p95_response_time: float
    p99_response_time: float
    total_requests: int
    error_rate: float          # 0~100 (%)
    total_token_usage: int
    average_token_usage: float

class SatisfactionStats(BaseModel):
    average_satisfaction: float
    total_ratings: int
    satisfaction_distribution: Dict[int, int]   # 1~5 키 항상 존재

class ConversationLengthStats(BaseModel):
    average_length: float
    median_length: float
    total_conversations: int

class CommonError(BaseModel):
    message: str
    count: int

class ErrorStats(BaseModel):
    total_errors: int
    errors_by_status_code: Dict[int, int]
    errors_by_endpoint: Dict[str, int]
    common_errors: List[CommonError]

# hour 는 METRICS_TZ 기준 정시. 샘플 없는 시간대는 생략
class HourlyPoint(BaseModel):
    hour: datetime
    average_response_time: float
    request_count: int
    error_rate: float

class DailyPerformancePoint(BaseModel):
    date: date
    average_response_time: float
    request_count: int
    error_rate: float
    token_usage: int

class PerformanceInsightsResponse(BaseModel):
    performance_stats: PerformanceStats
    performance_trends: List[DailyPerformancePoint]

class ConversationTrendPoint(BaseModel):
    date: date
    conversations: int
    messages: int

class SatisfactionTrendPoint(BaseModel):
    date: date
    satisfaction: float

class DashboardPerformance(BaseModel):
    average_response_time: float
    p95_response_time: float
    error_rate: float
    total_requests: int

class DashboardMetricsResponse(BaseModel):
    total_conversations: int
    total_messages: int
    unique_users: int
    average_conversation_length: float
    average_response_time: float
    user_satisfaction_score: float
    total_ratings: int
    popular_queries: List[PopularQuery]
    response_categories: List[ResponseCategory]
    conversation_trends: List[ConversationTrendPoint]
    satisfaction_trends: List[SatisfactionTrendPoint]
    performance_metrics: DashboardPerformance

class InsightSatisfaction(BaseModel):
    average: float
    distribution: Dict[int, int]
    total_ratings: int

class IntentCount(BaseModel):
    intent: str
    count: int

class TopicCount(BaseModel):
    topic: str
    count: int

class ConversationInsightsResponse(BaseModel):
    total_conversations: int
    average_length: float
    median_length: float
    satisfaction_stats: InsightSatisfaction
    top_intents: List[IntentCount]
    top_topics: List[TopicCount]
    goal_achievement_rate: float   # 0~1
