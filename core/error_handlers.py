from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

from core.errors import MetricsError, StoreTimeoutError, is_timeout

logger = logging.getLogger("analytics")


def _error_body(code: str, message: str, retry_allowed: bool) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message},
        "retry_allowed": retry_allowed,
    }


async def metrics_error_handler(request: Request, exc: MetricsError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, exc.retryable))


# 요청 본문/쿼리 검증 실패도 서비스 검증과 같은 400 형식으로
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())
    logger.info("%s %s -> VALIDATION_ERROR: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", message, False),
    )


# store_errors 밖에서 올라온 DB 예외. 타임아웃만 재시도 허용
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    if is_timeout(exc):
        return JSONResponse(
            status_code=StoreTimeoutError.status_code,
            content=_error_body(StoreTimeoutError.code, "A database call timed out. Please try again.", True),
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "A database error occurred.", False),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MetricsError, metrics_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
