from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_async_db
from app.core.auth import create_access_token, get_current_user
from app.core.errors import UserNotFound
from app.models.users import User as UserModel
from app.schemas.friends import MAX_ID
from app.schemas.users import UserCreate, User as UserSchema, Token, UserResource
from app.services import users as user_service
from app.services.friendships import FriendRequestService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, db: AsyncSession = Depends(get_async_db)):
    """
    Регистрирует нового пользователя.
    """
    return await user_service.create_user(db, user)


@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(),
                db: AsyncSession = Depends(get_async_db)):
    """
    Аутентифицирует пользователя и возвращает JWT с email и id.
    """
    user = await user_service.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.email, "id": user.id})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserSchema)
async def get_me(current_user: UserModel = Depends(get_current_user)):
    return current_user


@router.get("/{user_id}", response_model=UserResource)
async def get_user_profile(
    request: Request,
    user_id: int = Path(gt=0, le=MAX_ID),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Возвращает профиль пользователя вместе с заявкой в друзья между ним
    и текущим пользователем, в какую бы сторону она ни была отправлена.
    """
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise UserNotFound()

    friendship = await FriendRequestService(db).friendship_between(current_user.id, user.id)
    return UserResource.from_model(user, friendship, str(request.base_url))
