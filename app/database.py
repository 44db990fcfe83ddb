# --------------- Асинхронное подключение к базе данных -------------------------

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.core.config import DATABASE_URL, SQL_ECHO

# Создаём Engine
async_engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO)

# Настраиваем фабрику сеансов
async_session_maker = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)


class Base(DeclarativeBase):
    pass
