# taxengine/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from taxengine.api.errors import register_exception_handlers
from taxengine.api.v1 import v1_router
from taxengine.core.config import settings
from taxengine.core.db import engine
from taxengine.core.logging_config import setup_logging
from taxengine.infrastructure.cache.redis_client import close_redis_client

logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting (env=%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    await close_redis_client()
    await engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(v1_router)
    return app


app = create_app()
