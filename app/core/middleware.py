import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from loguru import logger

from app.core import config


class TimingMiddleware:
    """Middleware для измерения времени выполнения запросов."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        start_time = time.time()
        await self.app(scope, receive, send)
        duration = time.time() - start_time
        logger.debug(f"{scope['method']} {scope['path']} took {duration:.4f} seconds")


def setup_middleware(app: FastAPI) -> None:
    """Настройка всех middleware для приложения."""

    # Timing middleware
    app.add_middleware(TimingMiddleware)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)
