# service/statistics.py
"""
샘플/대화 지표 읽기 전용 통계. 데이터가 없으면 예외 없이 0으로 채운 구조를 돌려준다.

백분위: 오름차순 정렬 후 round(p * (n - 1)) 번째 값 (nearest-rank).
중앙값: 홀수 n 은 가운데 값, 짝수 n 은 가운데 두 값의 평균.
"""
from __future__ import annotations
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import ANALYTICS_TOP_N
from core.dates import hour_bucket, local_date, to_local
from core.errors import store_errors
from core.stats import mean, median, percentile, rank_by_frequency
from crud import conversation_metric as crud_metric
from crud import performance_sample as crud_sample

SATISFACTION_SCALE = (1, 2, 3, 4, 5)


def _is_error(status_code: int) -> bool:
    return status_code >= 400


def _error_rate(errors: int, total: int) -> float:
    return errors / total * 100 if total else 0.0


def get_performance_stats(
    db: Session,
    chatbot_id: UUID,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    min_response_time: Optional[float] = None,
    max_response_time: Optional[float] = None,
    status_code: Optional[int] = None,
    endpoint: Optional[str] = None,
) -> Dict[str, Any]:
    with store_errors(db, "performance stats"):
        samples = crud_sample.list_by_chatbot(
            db, chatbot_id,
            start=start, end=end,
            min_response_time=min_response_time, max_response_time=max_response_time,
            status_code=status_code, endpoint=endpoint,
            order_by="response_time",
        )

    times = sorted(float(s.response_time) for s in samples)
    tokens = [int(s.token_usage or 0) for s in samples]
    total = len(samples)
    total_tokens = sum(tokens)

    return {
        "average_response_time": mean(times),
        "median_response_time": median(times),
        "p95_response_time": percentile(times, 0.95),
        "p99_response_time": percentile(times, 0.99),
        "total_requests": total,
        "error_rate": _error_rate(sum(1 for s in samples if _is_error(s.status_code)), total),
        "total_token_usage": total_tokens,
        "average_token_usage": total_tokens / total if total else 0.0,
    }


def get_satisfaction_stats(
    db: Session, chatbot_id: UUID, *, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> Dict[str, Any]:
    with store_errors(db, "satisfaction stats"):
        rows = crud_metric.list_by_chatbot(db, chatbot_id, start=start, end=end, rated_only=True)
    return satisfaction_summary([r.user_satisfaction for r in rows])


def satisfaction_summary(ratings: List[int]) -> Dict[str, Any]:
    distribution = {k: 0 for k in SATISFACTION_SCALE}
    for r in ratings:
        distribution[r] = distribution.get(r, 0) + 1
    return {
        "average_satisfaction": mean(ratings),
        "total_ratings": len(ratings),
        "satisfaction_distribution": distribution,
    }


def get_conversation_length_stats(
    db: Session, chatbot_id: UUID, *, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> Dict[str, Any]:
    with store_errors(db, "conversation length stats"):
        rows = crud_metric.list_by_chatbot(db, chatbot_id, start=start, end=end)
    return length_summary([r.message_count for r in rows])


def length_summary(message_counts: List[int]) -> Dict[str, Any]:
    counts = sorted(message_counts)
    return {
        "average_length": mean(counts),
        "median_length": median(counts),
        "total_conversations": len(counts),
    }


def get_error_stats(
    db: Session, chatbot_id: UUID, *, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> Dict[str, Any]:
    with store_errors(db, "error stats"):
        # timestamp 오름차순 → 동률 메시지는 먼저 발생한 쪽이 앞
        errors = crud_sample.list_by_chatbot(db, chatbot_id, start=start, end=end, errors_only=True)

    by_status: Dict[int, int] = defaultdict(int)
    by_endpoint: Dict[str, int] = defaultdict(int)
    for e in errors:
        by_status[e.status_code] += 1
        if e.endpoint:
            by_endpoint[e.endpoint] += 1

    common = rank_by_frequency((e.error_message for e in errors if e.error_message), ANALYTICS_TOP_N)
    return {
        "total_errors": len(errors),
        "errors_by_status_code": dict(by_status),
        "errors_by_endpoint": dict(by_endpoint),
        "common_errors": [{"message": m, "count": c} for m, c in common],
    }


def _bucketed_trends(samples, key: Callable[[datetime], Any]) -> List[Dict[str, Any]]:
    buckets: Dict[Any, list] = defaultdict(list)
    for s in samples:
        buckets[key(s.timestamp)].append(s)

    out = []
    for k in sorted(buckets):
        items = buckets[k]
        n = len(items)
        out.append({
            "bucket": k,
            "average_response_time": mean([float(s.response_time) for s in items]),
            "request_count": n,
            "error_rate": _error_rate(sum(1 for s in items if _is_error(s.status_code)), n),
            "token_usage": sum(int(s.token_usage or 0) for s in items),
        })
    return out


def get_hourly_trends(db: Session, chatbot_id: UUID, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """샘플이 1건 이상 있는 시간대만 (0 채움 없음). hour 는 METRICS_TZ 기준 정시."""
    with store_errors(db, "hourly trends"):
        samples = crud_sample.list_by_chatbot(db, chatbot_id, start=start, end=end)
    return [
        {
            "hour": to_local(p["bucket"]),
            "average_response_time": p["average_response_time"],
            "request_count": p["request_count"],
            "error_rate": p["error_rate"],
        }
        for p in _bucketed_trends(samples, hour_bucket)
    ]


def get_performance_trends(db: Session, chatbot_id: UUID, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    with store_errors(db, "performance trends"):
        samples = crud_sample.list_by_chatbot(db, chatbot_id, start=start, end=end)
    return [
        {
            "date": p["bucket"],
            "average_response_time": p["average_response_time"],
            "request_count": p["request_count"],
            "error_rate": p["error_rate"],
            "token_usage": p["token_usage"],
        }
        for p in _bucketed_trends(samples, local_date)
    ]
