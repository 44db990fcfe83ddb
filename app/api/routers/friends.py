from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_async_db
from app.core.auth import get_current_user
from app.models.users import User as UserModel
from app.schemas.friends import (
    FriendRequestCreate,
    FriendRequestResponseCreate,
    FriendRequestResource,
)
from app.services.friendships import FriendRequestService

router = APIRouter(tags=["friends"])


@router.post("/friend-request", response_model=FriendRequestResource)
async def send_friend_request(
    payload: FriendRequestCreate,
    request: Request,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Отправляет заявку в друзья пользователю friend_id.
    Если пара уже связана, возвращается существующая заявка.
    """
    friendship = await FriendRequestService(db).send_request(current_user.id, payload.friend_id)
    return FriendRequestResource.from_model(friendship, str(request.base_url))


@router.post("/friend-request-response", response_model=FriendRequestResource)
async def respond_to_friend_request(
    payload: FriendRequestResponseCreate,
    request: Request,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Принимает (status=1) или отклоняет (status=0) заявку от user_id.
    """
    friendship = await FriendRequestService(db).respond(current_user.id, payload.user_id, payload.status)
    return FriendRequestResource.from_model(friendship, str(request.base_url))
