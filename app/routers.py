from fastapi import APIRouter, FastAPI
from app.endpoints import analytics, metrics

router = APIRouter()

router.include_router(metrics.router)
router.include_router(analytics.router)

def register_routers(app: FastAPI) -> None:
    app.include_router(router)
