"""
Заявки в друзья: хранилище, поиск связи по неупорядоченной паре и переходы
состояний PENDING -> CONFIRMED.

Между двумя пользователями существует не более одной строки friendships,
кто бы из них ни отправил заявку.
"""
from datetime import datetime

from loguru import logger
from sqlalchemy import select, update, or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    FriendRequestNotFound,
    FriendshipAlreadyConfirmed,
    UserNotFound,
    ValidationFailed,
)
from app.models.users import Friendship as FriendshipModel, FriendshipStatus, FriendRequestDecision
from app.services.users import user_exists
from app.utils.dates import utcnow_seconds


class FriendshipStore:
    """Операции над отдельными строками таблицы friendships."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, friendship_id: int) -> FriendshipModel | None:
        return await self.db.get(FriendshipModel, friendship_id)

    async def insert(self, requester_id: int, recipient_id: int) -> FriendshipModel:
        """
        Создаёт заявку в статусе PENDING.
        Если для пары уже есть строка, база отклонит вставку (IntegrityError).
        """
        low, high = FriendshipModel.canonical_pair(requester_id, recipient_id)
        friendship = FriendshipModel(
            user_id=requester_id,
            friend_id=recipient_id,
            status=FriendshipStatus.PENDING,
            confirmed_at=None,
            user_low_id=low,
            user_high_id=high,
        )
        self.db.add(friendship)
        await self.db.commit()
        await self.db.refresh(friendship)
        return friendship

    async def confirm(self, friendship_id: int, at: datetime) -> FriendshipModel:
        # Условный UPDATE: подтвердить можно только строку, которая ещё PENDING
        result = await self.db.execute(
            update(FriendshipModel)
            .where(
                FriendshipModel.id == friendship_id,
                FriendshipModel.status == FriendshipStatus.PENDING,
            )
            .values(status=FriendshipStatus.CONFIRMED, confirmed_at=at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            if await self.find_by_id(friendship_id) is None:
                raise FriendRequestNotFound()
            raise FriendshipAlreadyConfirmed(friendship_id)

        await self.db.commit()
        return await self.db.get(FriendshipModel, friendship_id, populate_existing=True)


async def find_connection(db: AsyncSession, a: int, b: int) -> FriendshipModel | None:
    """
    Ищет строку, связывающую пользователей a и b, в любом направлении.
    """
    result = await db.execute(
        select(FriendshipModel).where(
            or_(
                and_(FriendshipModel.user_id == a, FriendshipModel.friend_id == b),
                and_(FriendshipModel.user_id == b, FriendshipModel.friend_id == a)
            )
        )
    )
    return result.scalar_one_or_none()


class FriendRequestService:
    """
    Отправка заявок, ответ на них и получение статуса дружбы.
    Текущий пользователь передаётся в каждый вызов явно.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = FriendshipStore(db)

    async def send_request(self, current_user_id: int, target_user_id: int) -> FriendshipModel:
        if current_user_id == target_user_id:
            raise ValidationFailed("friend_id", "You cannot send a friend request to yourself.")

        if not await user_exists(self.db, target_user_id):
            logger.warning(f"User {current_user_id} requested unknown user {target_user_id}")
            raise UserNotFound()

        existing = await find_connection(self.db, current_user_id, target_user_id)
        if existing is not None:
            logger.info(f"Friendship {existing.id} already connects {current_user_id} and {target_user_id}")
            return existing

        try:
            friendship = await self.store.insert(current_user_id, target_user_id)
        except IntegrityError:
            # Параллельный запрос успел создать строку для этой пары
            await self.db.rollback()
            existing = await find_connection(self.db, current_user_id, target_user_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Friend request {friendship.id} sent by {current_user_id} to {target_user_id}")
        return friendship

    async def respond(
        self,
        current_user_id: int,
        other_user_id: int,
        decision: FriendRequestDecision,
    ) -> FriendshipModel:
        """
        Отвечает на заявку от other_user_id.

        Ответить может только получатель ожидающей заявки. Во всех остальных
        случаях ошибка одна и та же, чтобы не раскрывать наличие связи.
        """
        friendship = await find_connection(self.db, current_user_id, other_user_id)
        if (
            friendship is None
            or friendship.friend_id != current_user_id
            or friendship.status != FriendshipStatus.PENDING
        ):
            logger.warning(f"User {current_user_id} cannot respond to a request from {other_user_id}")
            raise FriendRequestNotFound()

        if decision == FriendRequestDecision.DECLINE:
            logger.info(f"Friend request {friendship.id} declined by {current_user_id}, left pending")
            return friendship

        try:
            friendship = await self.store.confirm(friendship.id, utcnow_seconds())
        except FriendshipAlreadyConfirmed:
            raise FriendRequestNotFound()

        logger.info(f"Friend request {friendship.id} confirmed by {current_user_id}")
        return friendship

    async def friendship_between(self, a: int, b: int) -> FriendshipModel | None:
        if a == b:
            return None
        return await find_connection(self.db, a, b)
