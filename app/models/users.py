from datetime import datetime
from enum import IntEnum

from sqlalchemy import Boolean, Integer, String, ForeignKey, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class FriendshipStatus(IntEnum):
    PENDING = 0
    CONFIRMED = 1


class FriendRequestDecision(IntEnum):
    DECLINE = 0
    ACCEPT = 1


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.email


class Friendship(Base):
    """
    Одна строка на неупорядоченную пару пользователей.
    user_id отправил заявку, friend_id должен её подтвердить.
    """
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_friendships_pair"),
        CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    friend_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[int] = mapped_column(Integer, default=FriendshipStatus.PENDING, nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Каноническая пара (min, max) для уникальности независимо от направления
    user_low_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_high_id: Mapped[int] = mapped_column(Integer, nullable=False)

    @staticmethod
    def canonical_pair(a: int, b: int) -> tuple[int, int]:
        return (a, b) if a < b else (b, a)

    @property
    def is_confirmed(self) -> bool:
        return self.status == FriendshipStatus.CONFIRMED
