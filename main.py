import logging, uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers import register_routers
from core.config import HOST, PORT, RELOAD, SCHEDULER_ENABLED
from core.error_handlers import register_error_handlers
from core.scheduler import init_scheduler  # APScheduler 초기화

log = logging.getLogger("uvicorn")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    sched = None
    if SCHEDULER_ENABLED:
        sched = init_scheduler()
        sched.start()
        log.info("APScheduler started")
    app.state.scheduler = sched
    try:
        yield
    finally:
        # shutdown
        if sched is not None:
            sched.shutdown(wait=False)
            log.info("APScheduler stopped")

app = FastAPI(title="Chatbot Metrics & Analytics", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
register_routers(app)

if __name__ == "__main__":
    uvicorn.run("main:app", host=HOST, port=PORT, reload=RELOAD)
