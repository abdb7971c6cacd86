# isovault/infra/db/models/iso_message.py
from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text

from isovault.infra.db.base import Base


class IsoMessage(Base):
    __tablename__ = "iso_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)

    mti = Column(String(4), nullable=False, index=True)

    # --- DE 2: siempre cifrado (ver PanCipher), nunca en claro
    pan = Column(Text, nullable=False)

    # --- DE 3, 4, 12, 13
    processing_code = Column(String(6), nullable=False)
    amount = Column(BigInteger, nullable=False)  # unidades menores
    transaction_time = Column(String(6), nullable=False)  # HHMMSS
    transaction_date = Column(String(4), nullable=False, index=True)  # MMDD

    # --- DE 37, 39, 41, 49
    rrn = Column(String(12), nullable=False, index=True)
    response_code = Column(String(2), nullable=True)
    terminal_id = Column(String(16), nullable=False, index=True)
    currency = Column(String(3), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # SQLite reutiliza rowids borrados si no se pide AUTOINCREMENT
    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        return f"IsoMessage(id={self.id!r}, mti={self.mti!r}, rrn={self.rrn!r})"
