# service/reporting.py
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID
import csv
import io
import json

from sqlalchemy.orm import Session

from core.config import ANALYTICS_TOP_N
from core.dates import local_date, now_utc, to_utc
from core.errors import ValidationError, store_errors
from core.stats import rank_by_frequency
from crud import conversation_metric as crud_metric
from crud import daily_analytics as crud_daily
from models.metrics import DailyAnalytics
from schemas.metrics import DailyAnalyticsOut
from service import statistics

ExportFormat = Literal["json", "csv"]

CSV_HEADER = (
    "Date",
    "Total Conversations",
    "Total Messages",
    "Avg Conversation Length",
    "Avg Response Time",
    "Satisfaction Score",
    "Total Ratings",
)

# 대시보드 기본 기간
PERIODS = {"7d": timedelta(days=7), "30d": timedelta(days=30), "90d": timedelta(days=90), "1y": timedelta(days=365)}


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self):
        if to_utc(self.end) < to_utc(self.start):
            raise ValidationError("time range end must not be earlier than start")

    @classmethod
    def from_period(cls, period: str = "30d", *, now: Optional[datetime] = None) -> "TimeRange":
        end = now or now_utc()
        return cls(start=end - PERIODS.get(period, PERIODS["30d"]), end=end)

    @property
    def first_day(self):
        return local_date(self.start)

    @property
    def last_day(self):
        return local_date(self.end)


def _daily_rows(db: Session, chatbot_id: UUID, time_range: TimeRange) -> List[DailyAnalytics]:
    with store_errors(db, "load daily analytics"):
        return crud_daily.list_range(db, chatbot_id, start=time_range.first_day, end=time_range.last_day)


def _merge_popular_queries(rows: List[DailyAnalytics]) -> List[dict]:
    counts: Counter = Counter()
    for r in rows:
        for q in r.popular_queries or []:
            counts[q["query"]] += int(q["count"])
    return [{"query": q, "count": c} for q, c in counts.most_common(ANALYTICS_TOP_N)]


def _merge_response_categories(rows: List[DailyAnalytics]) -> List[dict]:
    counts: Counter = Counter()
    for r in rows:
        for cat in r.response_categories or []:
            counts[cat["category"]] += int(cat["count"])
    total = sum(counts.values())
    return [
        {"category": k, "count": c, "percentage": round(c / total * 100, 2)}
        for k, c in counts.most_common()
    ]


def get_dashboard_metrics(db: Session, chatbot_id: UUID, time_range: TimeRange) -> Dict[str, Any]:
    rows = _daily_rows(db, chatbot_id, time_range)

    total_conversations = sum(r.total_conversations for r in rows)
    total_messages = sum(r.total_messages for r in rows)
    total_ratings = sum(r.total_ratings for r in rows)
    # 일별 평균은 일별 가중치(대화 수 / 평가 수)로 다시 평균
    rt_weight = sum(r.total_conversations for r in rows if r.avg_response_time)
    avg_response_time = (
        sum(float(r.avg_response_time) * r.total_conversations for r in rows if r.avg_response_time) / rt_weight
        if rt_weight else 0.0
    )
    satisfaction = (
        sum(float(r.user_satisfaction_score) * r.total_ratings for r in rows) / total_ratings
        if total_ratings else 0.0
    )

    perf = statistics.get_performance_stats(db, chatbot_id, start=time_range.start, end=time_range.end)

    return {
        "total_conversations": total_conversations,
        "total_messages": total_messages,
        "unique_users": sum(r.unique_users for r in rows),
        "average_conversation_length": total_messages / total_conversations if total_conversations else 0.0,
        "average_response_time": avg_response_time,
        "user_satisfaction_score": satisfaction,
        "total_ratings": total_ratings,
        "popular_queries": _merge_popular_queries(rows),
        "response_categories": _merge_response_categories(rows),
        "conversation_trends": [
            {"date": r.date, "conversations": r.total_conversations, "messages": r.total_messages} for r in rows
        ],
        "satisfaction_trends": [
            {"date": r.date, "satisfaction": float(r.user_satisfaction_score)} for r in rows if r.total_ratings
        ],
        "performance_metrics": {
            "average_response_time": perf["average_response_time"],
            "p95_response_time": perf["p95_response_time"],
            "error_rate": perf["error_rate"],
            "total_requests": perf["total_requests"],
        },
    }


def get_conversation_insights(db: Session, chatbot_id: UUID, time_range: TimeRange) -> Dict[str, Any]:
    with store_errors(db, "load conversation metrics"):
        rows = crud_metric.list_by_chatbot(db, chatbot_id, start=time_range.start, end=time_range.end)

    lengths = statistics.length_summary([r.message_count for r in rows])
    satisfaction = statistics.satisfaction_summary([r.user_satisfaction for r in rows if r.user_satisfaction is not None])
    intents = rank_by_frequency((r.user_intent for r in rows if r.user_intent), ANALYTICS_TOP_N)
    topics = rank_by_frequency((t for r in rows for t in (r.topics_discussed or [])), ANALYTICS_TOP_N)
    achieved = sum(1 for r in rows if r.goal_achieved)
    total = len(rows)

    return {
        "total_conversations": lengths["total_conversations"],
        "average_length": lengths["average_length"],
        "median_length": lengths["median_length"],
        "satisfaction_stats": {
            "average": satisfaction["average_satisfaction"],
            "distribution": satisfaction["satisfaction_distribution"],
            "total_ratings": satisfaction["total_ratings"],
        },
        "top_intents": [{"intent": i, "count": c} for i, c in intents],
        "top_topics": [{"topic": t, "count": c} for t, c in topics],
        "goal_achievement_rate": achieved / total if total else 0.0,
    }


def _csv_row(r: DailyAnalytics) -> list:
    return [
        r.date.isoformat(),
        r.total_conversations,
        r.total_messages,
        f"{float(r.avg_conversation_length):.2f}",
        f"{float(r.avg_response_time):.2f}",
        f"{float(r.user_satisfaction_score):.2f}",
        r.total_ratings,
    ]


def export_analytics_data(db: Session, chatbot_id: UUID, time_range: TimeRange, fmt: ExportFormat = "json") -> str:
    if fmt not in ("json", "csv"):
        raise ValidationError(f"unsupported export format '{fmt}'")
    rows = _daily_rows(db, chatbot_id, time_range)

    if fmt == "csv":
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")   # 콤마/따옴표 포함 필드는 자동 quote
        writer.writerow(CSV_HEADER)
        writer.writerows(_csv_row(r) for r in rows)
        return buf.getvalue().rstrip("\n")

    records = [DailyAnalyticsOut.model_validate(r).model_dump(mode="json") for r in rows]
    return json.dumps(records, ensure_ascii=False, indent=2)
