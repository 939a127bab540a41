# 지표 서비스 공통 예외
from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Iterator, Optional
import logging

from sqlalchemy.exc import DBAPIError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

log = logging.getLogger("analytics")


class MetricsError(Exception):
    """HTTP 계층에서 code/status_code 로 그대로 매핑된다."""
    code = "METRICS_ERROR"
    status_code = 500
    retryable = False

    def __init__(self, message: str, *, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(MetricsError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(MetricsError):
    code = "NOT_FOUND"
    status_code = 404


class InternalError(MetricsError):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, *, retryable: bool = False, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.retryable = retryable


class StoreTimeoutError(InternalError):
    code = "STORE_TIMEOUT"
    status_code = 503

    def __init__(self, message: str = "store call timed out", *, details: Optional[Any] = None):
        super().__init__(message, retryable=True, details=details)


# PostgreSQL statement_timeout / lock_timeout, SQLite busy timeout
_TIMEOUT_MARKERS = ("statement timeout", "canceling statement", "lock timeout", "database is locked")


def is_timeout(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, DBAPIError):
        text = str(exc.orig).lower()
        return any(m in text for m in _TIMEOUT_MARKERS)
    return False


@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """저장소 예외를 InternalError / StoreTimeoutError 로 바꾸고 세션을 롤백한다."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        if is_timeout(exc):
            log.warning("%s timed out: %s", action, exc)
            raise StoreTimeoutError(f"{action} timed out") from exc
        log.error("%s failed: %s", action, exc)
        raise InternalError(f"{action} failed") from exc
