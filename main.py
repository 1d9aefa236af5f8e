from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from core.config import settings
from core.exceptions import BaseAPIException, generic_exception_handler, unified_api_exception_handler
from core.logger import get_logger, setup_logging
from dependencies.providers import close_brain_persistence, init_brain_persistence
from routers import health as health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan.
    Code before yield runs on startup, code after yield on shutdown.
    """

    setup_logging(include_timestamp=True)
    logger.info("[%s] Application startup", settings.APP_NAME)

    # Connect to redis and load the stored brain
    await init_brain_persistence()

    yield

    logger.info("[%s] Application shutdown", settings.APP_NAME)

    # Closing the brain releases the redis connection
    await close_brain_persistence()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Chat bot brain persisted to redis.",
    lifespan=lifespan,
)

app.exception_handler(BaseAPIException)(unified_api_exception_handler)
app.exception_handler(Exception)(generic_exception_handler)

app.include_router(health_router.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
