# isovault/domain/entities/parsed_transaction.py
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ParsedTransaction:
    mti: str
    pan: str
    processing_code: str
    amount: int  # unidades menores de la moneda
    transaction_time: str  # HHMMSS
    transaction_date: str  # MMDD, sin año
    rrn: str
    response_code: str
    terminal_id: str
    currency: str  # ISO 4217 numérico

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __repr__(self) -> str:
        # el PAN nunca sale en claro por repr/logs
        return (
            f"ParsedTransaction(mti={self.mti!r}, rrn={self.rrn!r}, "
            f"terminal_id={self.terminal_id!r}, amount={self.amount})"
        )
