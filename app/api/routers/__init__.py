from fastapi import APIRouter
from app.api.routers import (
    friends,
    health,
    users,
)

# Основной роутер API
api_router = APIRouter(prefix="/api")

# Регистрация всех роутеров
api_router.include_router(users.router, tags=["users"])
api_router.include_router(friends.router, tags=["friends"])
api_router.include_router(health.router, tags=["health"])

__all__ = ["api_router"]
