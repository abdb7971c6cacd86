# isovault/infra/db/session.py
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from isovault.core.config import Settings
from isovault.infra.db.base import Base

# registra la tabla en Base.metadata
from isovault.infra.db.models import iso_message  # noqa: F401


def build_engine(settings: Settings) -> AsyncEngine:
    options = {
        "echo": settings.ENVIRONMENT == "development",
        "future": True,
    }
    if settings.DATABASE_URL.startswith("sqlite"):
        # una sola conexión compartida para que ":memory:" sobreviva entre sesiones
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    return create_async_engine(settings.DATABASE_URL, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependencia FastAPI para obtener una sesión async."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """Crea las tablas (en dev). En prod usa migraciones."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
