from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from app.api.routers import api_router
from app.core.errors import setup_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import setup_middleware
from app.database import Base, async_engine
from app import models  # noqa: F401  регистрирует модели в Base.metadata


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Для локальной разработки; в проде схему создают миграции alembic
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Application started")
    yield
    await async_engine.dispose()
    logger.info("Application stopped")


app = FastAPI(
    title="Friends API",
    version="0.1.0",
    lifespan=lifespan,
)

setup_middleware(app)
setup_exception_handlers(app)
app.include_router(api_router)


# Корневой эндпоинт для проверки
@app.get("/")
async def root():
    """
    Корневой маршрут, подтверждающий, что API работает.
    """
    return {"message": "Friends API is running"}
