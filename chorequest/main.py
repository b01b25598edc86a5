import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from chorequest import models  # noqa: F401
from chorequest.api.routes.chores import router as chores_router
from chorequest.api.routes.kids import router as kids_router
from chorequest.api.routes.notifications import router as notifications_router
from chorequest.api.routes.rewards import router as rewards_router
from chorequest.core.config import settings
from chorequest.core.exceptions import register_exception_handlers
from chorequest.core.logging import setup_json_logging
from chorequest.core.request_logging import RequestLoggingMiddleware
from chorequest.jobs.enqueue import enqueue_recurring_chores
from chorequest.services.notifications import LevelUpNotifier

setup_json_logging()
logger = logging.getLogger("chorequest.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    notifier = LevelUpNotifier()
    app.state.level_up_notifier = notifier
    if settings.recurring_check_on_startup:
        try:
            enqueue_recurring_chores()
        except RedisError:
            logger.exception("startup.recurring_check.enqueue_failed")
    try:
        yield
    finally:
        notifier.close()


app = FastAPI(title="chorequest api", lifespan=lifespan)
register_exception_handlers(app)
app.add_middleware(RequestLoggingMiddleware)
allowed_origins = [item.strip() for item in settings.cors_allowed_origins.split(",") if item.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-Id"],
)
app.include_router(kids_router)
app.include_router(chores_router)
app.include_router(rewards_router)
app.include_router(notifications_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}
