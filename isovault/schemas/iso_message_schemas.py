# isovault/schemas/iso_message_schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class IsoMessageOut(BaseModel):
    """Registro con el PAN enmascarado (4 + **** + 4)."""

    id: int
    mti: str = Field(..., examples=["0200"])
    pan: str = Field(..., description="PAN enmascarado", examples=["4000****5678"])
    processing_code: str = Field(..., examples=["000000"])
    amount: int = Field(..., description="Monto en unidades menores", examples=[1500])
    transaction_time: str = Field(..., description="hhmmss", examples=["153045"])
    transaction_date: str = Field(..., description="MMDD", examples=["1124"])
    rrn: str = Field(..., examples=["123456789012"])
    response_code: Optional[str] = Field(None, examples=["00"])
    terminal_id: str = Field(..., examples=["TERM0001"])
    currency: str = Field(..., description="ISO 4217 numérico", examples=["840"])
    created_at: datetime


class IsoMessageDetail(IsoMessageOut):
    pan_full: Optional[str] = Field(
        None,
        description="PAN completo; solo presente si el cliente puede verlo",
    )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class IsoMessageList(BaseModel):
    data: List[IsoMessageOut]
    pagination: Pagination


class IngestResponse(BaseModel):
    message: str
    id: int


class MessageResponse(BaseModel):
    message: str
