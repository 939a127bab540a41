# config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# 0) .env 로드
load_dotenv()

# 1) 경로
BASE_DIR = Path(__file__).resolve().parent.parent

# 2) DB
DB = os.getenv("DB", "postgresql")
DB_USER = os.getenv("DB_USER", "")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_SERVER = os.getenv("DB_SERVER", "")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME", "")
DB_ECHO = bool(int(os.getenv("DB_ECHO", "0")))

# 3) 저장소 호출 타임아웃 (초과 시 재시도 가능 오류로 노출)
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "10"))

# 4) 집계 기준
METRICS_TZ = os.getenv("METRICS_TZ", "UTC")             # 일/시간 버킷 기준 타임존
METRICS_RETENTION_DAYS = int(os.getenv("METRICS_RETENTION_DAYS", "90"))
ANALYTICS_TOP_N = int(os.getenv("ANALYTICS_TOP_N", "10"))

# 5) 스케줄러·서버
SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "1")))
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5002"))
RELOAD = bool(int(os.getenv("RELOAD", "0")))
