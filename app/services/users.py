from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.auth import hash_password, verify_password
from app.core.errors import EmailAlreadyRegistered
from app.models.users import User as UserModel
from app.schemas.users import UserCreate


async def get_user(db: AsyncSession, user_id: int) -> UserModel | None:
    """Возвращает активного пользователя по id или None."""
    result = await db.scalars(
        select(UserModel).where(UserModel.id == user_id, UserModel.is_active == True))
    return result.first()


async def user_exists(db: AsyncSession, user_id: int) -> bool:
    return await get_user(db, user_id) is not None


async def create_user(db: AsyncSession, user: UserCreate) -> UserModel:
    """
    Регистрирует нового пользователя.
    Email должен быть уникальным.
    """
    result = await db.execute(select(UserModel.id).where(UserModel.email == user.email))
    if result.scalar_one_or_none() is not None:
        raise EmailAlreadyRegistered(user.email)

    db_user = UserModel(
        email=user.email,
        hashed_password=hash_password(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=True,
    )
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)
    logger.info(f"User {db_user.id} registered")
    return db_user


async def authenticate(db: AsyncSession, email: str, password: str) -> UserModel | None:
    result = await db.scalars(
        select(UserModel).where(UserModel.email == email, UserModel.is_active == True))
    user = result.first()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user
