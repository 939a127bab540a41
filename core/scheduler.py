from __future__ import annotations
from datetime import date, datetime, timedelta
from uuid import UUID
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.orm import Session
import logging

from core.config import METRICS_RETENTION_DAYS
from core.dates import TZ, today
from database.session import SessionLocal
from service import aggregation, retention

### 전일: 매일 00:05 활성 챗봇 전체 집계.
### 당일: 매시간 05분 갱신.
### 보존기간: 매일 03:30 오래된 성능 샘플 삭제.

log = logging.getLogger("scheduler")

_SCHED: AsyncIOScheduler | None = None  # <<< 전역 스케줄러 참조

def _now() -> datetime:
    return datetime.now(TZ)

def _run_rollup_for(day: date):
    db: Session = SessionLocal()
    try:
        n = aggregation.generate_for_active_chatbots(db, day)
        log.info("daily_analytics upserted for %s (%d chatbot(s))", day.isoformat(), n)
    except Exception:
        log.exception("rollup failed for %s", day)
    finally:
        db.close()

def _run_rollup_one(chatbot_id: UUID, day: date):
    db: Session = SessionLocal()
    try:
        aggregation.generate_daily_analytics(db, chatbot_id, day)
    except Exception:
        log.exception("rollup failed for %s / %s", chatbot_id, day)
    finally:
        db.close()

def job_prev_day():
    # 매일 00:05 → 전일 집계
    _run_rollup_for(today() - timedelta(days=1))

def job_today_hourly():
    # 매시간 05분 → 당일 갱신(준실시간)
    _run_rollup_for(today())

def job_retention():
    db: Session = SessionLocal()
    try:
        retention.cleanup_old_metrics(db, METRICS_RETENTION_DAYS)
    except Exception:
        log.exception("retention sweep failed")
    finally:
        db.close()

def init_scheduler(start_immediately: bool = True) -> AsyncIOScheduler:
    global _SCHED
    sched = AsyncIOScheduler(
        timezone=TZ,
        job_defaults={"coalesce": True, "max_instances": 1},
    )
    # 전일 집계: 매일 00:05
    sched.add_job(job_prev_day, trigger="cron", hour=0, minute=5,
                  id="daily_analytics_prev_day", replace_existing=True, misfire_grace_time=600)
    # 당일 갱신: 매시간 05분
    sched.add_job(job_today_hourly, trigger="cron", minute=5,
                  id="daily_analytics_today_hourly", replace_existing=True, misfire_grace_time=300)
    # 보존기간 스윕: 매일 03:30 (겹쳐 실행돼도 안전한 술어 기반 삭제)
    sched.add_job(job_retention, trigger="cron", hour=3, minute=30,
                  id="performance_sample_retention", replace_existing=True, misfire_grace_time=3600)

    if start_immediately:
        # 부팅 직후 보정: 전일/당일 한 번씩 빠르게 실행
        run_at = _now() + timedelta(seconds=5)
        sched.add_job(job_prev_day, trigger="date", run_date=run_at,
                      id="boot_prev_day", replace_existing=True)
        sched.add_job(job_today_hourly, trigger="date", run_date=run_at + timedelta(seconds=5),
                      id="boot_today", replace_existing=True)

    _SCHED = sched
    return sched

# ========= 외부에서 호출하는 "이벤트 트리거"들 =========

def trigger_generate_for(chatbot_id: UUID, day: date):
    """대화 종료 직후 등, 챗봇 하루치만 재집계."""
    if _SCHED and _SCHED.running:
        _SCHED.add_job(_run_rollup_one, trigger="date", run_date=_now(),
                       args=[chatbot_id, day],
                       id=f"adhoc_{chatbot_id}_{day.isoformat()}_{_now().timestamp()}")
    else:
        # 스케줄러가 아직 없으면 동기로 실행 (fallback)
        _run_rollup_one(chatbot_id, day)
