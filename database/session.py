from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
import core.config as config
import database.base as base


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": config.DB_ECHO, "pool_pre_ping": True}
    backend = make_url(url).get_backend_name()
    if backend == "postgresql":
        # 문장 단위 타임아웃: 초과 시 QueryCanceled → StoreTimeoutError 로 변환됨
        kwargs["pool_timeout"] = config.DB_POOL_TIMEOUT
        kwargs["connect_args"] = {"options": f"-c statement_timeout={config.DB_STATEMENT_TIMEOUT_MS}"}
    elif backend == "sqlite":
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": config.DB_STATEMENT_TIMEOUT_MS / 1000,
        }
    return kwargs


engine = create_engine(base.DATABASE_URL, **_engine_kwargs(base.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
