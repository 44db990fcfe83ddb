from fastapi import APIRouter
from loguru import logger


router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check():
    """Проверка здоровья сервиса."""
    logger.debug("Health check requested")
    return {"status": "healthy"}
