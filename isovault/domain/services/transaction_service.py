# isovault/domain/services/transaction_service.py
import logging
import math

from isovault.domain.exceptions import RecordNotFound
from isovault.domain.services.iso_xml_parser import parse_iso8583_xml
from isovault.domain.services.masking import mask_encrypted_pan, mask_pan
from isovault.infra.crypto.pan_cipher import PanCipher
from isovault.infra.db.models.iso_message import IsoMessage
from isovault.infra.db.repositories.iso_message_repository import IsoMessageRepository
from isovault.schemas.iso_message_schemas import (
    IsoMessageDetail,
    IsoMessageList,
    IsoMessageOut,
    Pagination,
)

logger = logging.getLogger(__name__)


class TransactionService:
    """
    Orquesta extracción, cifrado del PAN, persistencia y enmascarado.

    Es el único camino de escritura hacia IsoMessageRepository, así que la
    columna pan nunca recibe el número en claro.
    """

    def __init__(self, repository: IsoMessageRepository, cipher: PanCipher):
        self.repository = repository
        self.cipher = cipher

    async def ingest(self, xml_content: bytes) -> int:
        parsed = parse_iso8583_xml(xml_content)

        fields = parsed.as_dict()
        fields["pan"] = self.cipher.encrypt(parsed.pan)
        message_id = await self.repository.create(IsoMessage(**fields))

        logger.info(
            f"Mensaje ISO {message_id} almacenado: mti={parsed.mti} "
            f"rrn={parsed.rrn} pan={mask_pan(parsed.pan)}"
        )
        return message_id

    async def get(self, message_id: int, reveal_pan: bool = False) -> IsoMessageDetail:
        message = await self.repository.get_by_id(message_id)
        if message is None:
            raise RecordNotFound(message_id)

        pan_full = self.cipher.decrypt(message.pan)
        detail = self._to_out(message, mask_pan(pan_full)).model_dump()
        if reveal_pan:
            detail["pan_full"] = pan_full
        return IsoMessageDetail(**detail)

    async def list(self, page: int = 1, limit: int = 10) -> IsoMessageList:
        messages = await self.repository.list_page(page, limit)
        total = await self.repository.count()

        return IsoMessageList(
            data=[self._to_out(m, mask_encrypted_pan(m.pan, self.cipher)) for m in messages],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    async def remove(self, message_id: int) -> None:
        if not await self.repository.delete(message_id):
            raise RecordNotFound(message_id)
        logger.info(f"Mensaje ISO {message_id} eliminado")

    @staticmethod
    def _to_out(message: IsoMessage, masked_pan: str) -> IsoMessageOut:
        return IsoMessageOut(
            id=message.id,
            mti=message.mti,
            pan=masked_pan,
            processing_code=message.processing_code,
            amount=int(message.amount),
            transaction_time=message.transaction_time,
            transaction_date=message.transaction_date,
            rrn=message.rrn,
            response_code=message.response_code,
            terminal_id=message.terminal_id,
            currency=message.currency,
            created_at=message.created_at,
        )
