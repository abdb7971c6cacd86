# isovault/infra/db/repositories/iso_message_repository.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from isovault.domain.exceptions import StoreError
from isovault.infra.db.models.iso_message import IsoMessage

logger = logging.getLogger(__name__)


class IsoMessageRepository:
    """
    Acceso a la tabla iso_messages.

    Los registros son inmutables: no hay operación de update. Cada método es
    atómico por sí mismo (commit o rollback completo).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, message: IsoMessage) -> int:
        message.created_at = datetime.now(timezone.utc)
        self.db.add(message)
        try:
            await self.db.commit()
        except Exception as e:
            # SQLAlchemyError o errores crudos del driver (p.ej. OverflowError al bindear)
            await self.db.rollback()
            logger.error(f"Error insertando mensaje ISO: {e.__class__.__name__}")
            raise StoreError("Unable to create message.") from e
        # expire_on_commit=False: el id ya está cargado tras el flush
        return message.id

    async def get_by_id(self, message_id: int) -> Optional[IsoMessage]:
        try:
            return await self.db.get(IsoMessage, message_id)
        except SQLAlchemyError as e:
            raise StoreError("Unable to read message.") from e

    async def list_page(self, page: int = 1, limit: int = 10) -> List[IsoMessage]:
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit < 1:
            raise ValueError("limit must be > 0")

        stmt = (
            select(IsoMessage)
            .order_by(desc(IsoMessage.created_at), desc(IsoMessage.id))
            .limit(limit)
            .offset((page - 1) * limit)
        )
        try:
            res = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("Unable to list messages.") from e
        return list(res.scalars().all())

    async def count(self) -> int:
        try:
            res = await self.db.execute(select(func.count()).select_from(IsoMessage))
        except SQLAlchemyError as e:
            raise StoreError("Unable to count messages.") from e
        return int(res.scalar_one())

    async def delete(self, message_id: int) -> bool:
        """True si se borró; False si el id no existía."""
        try:
            res = await self.db.execute(delete(IsoMessage).where(IsoMessage.id == message_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Unable to delete message.") from e
        return res.rowcount > 0
