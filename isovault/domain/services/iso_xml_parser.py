# isovault/domain/services/iso_xml_parser.py
"""
Extracción de campos ISO 8583 desde su proyección XML simplificada.

    <isomsg direction="incoming">
      <header>0200</header>
      <field id="0" value="0200"/>
      <field id="2" value="4000510010065678"/>
      ...
    </isomsg>

El nombre del elemento raíz y sus atributos no se validan.
"""
import re
from typing import Dict, Tuple

from lxml import etree

from isovault.domain.entities.parsed_transaction import ParsedTransaction
from isovault.domain.exceptions import (
    InvalidFieldError,
    MessageFormatError,
    MissingFieldError,
)

MTI_FIELD = "0"
PAN_FIELD = "2"
PROCESSING_CODE_FIELD = "3"
AMOUNT_FIELD = "4"
TIME_LOCAL_FIELD = "12"
DATE_LOCAL_FIELD = "13"
RRN_FIELD = "37"
RESPONSE_CODE_FIELD = "39"
TERMINAL_ID_FIELD = "41"
CURRENCY_FIELD = "49"

# El orden importa: se reporta el primer campo ausente
REQUIRED_FIELDS: Tuple[str, ...] = (
    PAN_FIELD,
    PROCESSING_CODE_FIELD,
    AMOUNT_FIELD,
    TIME_LOCAL_FIELD,
    DATE_LOCAL_FIELD,
    RRN_FIELD,
    TERMINAL_ID_FIELD,
    CURRENCY_FIELD,
)

# Anchos de columna de iso_messages
MAX_LENGTHS: Dict[str, int] = {
    MTI_FIELD: 4,
    PROCESSING_CODE_FIELD: 6,
    TIME_LOCAL_FIELD: 6,
    DATE_LOCAL_FIELD: 4,
    RRN_FIELD: 12,
    RESPONSE_CODE_FIELD: 2,
    TERMINAL_ID_FIELD: 16,
    CURRENCY_FIELD: 3,
}

_AMOUNT_RE = re.compile(r"^\s*(\d+)(?:\.\d*)?\s*$")
_MTI_RE = re.compile(r"^\d{4}$")

# DE 4 es n12
AMOUNT_MAX_DIGITS = 12


def collect_fields(root) -> Dict[str, str]:
    """id -> value de cada <field>; si un id se repite gana el último."""
    fields: Dict[str, str] = {}
    for field in root.findall("field"):
        fields[field.get("id", "")] = field.get("value", "")
    return fields


def resolve_mti(root, fields: Dict[str, str]) -> str:
    if MTI_FIELD in fields:
        return fields[MTI_FIELD]
    header = root.find("header")
    if header is not None and header.text:
        return header.text.strip()
    return ""


def coerce_amount(raw: str) -> int:
    """Monto en unidades menores; una parte decimal se trunca."""
    match = _AMOUNT_RE.match(raw)
    if not match:
        raise InvalidFieldError(AMOUNT_FIELD, "amount must be numeric")
    if len(match.group(1)) > AMOUNT_MAX_DIGITS:
        raise InvalidFieldError(AMOUNT_FIELD, f"longer than {AMOUNT_MAX_DIGITS} digits")
    return int(match.group(1))


def _check_lengths(values: Dict[str, str]) -> None:
    for field_id, max_length in MAX_LENGTHS.items():
        value = values.get(field_id, "")
        if len(value) > max_length:
            raise InvalidFieldError(field_id, f"longer than {max_length} characters")


def parse_iso8583_xml(xml_content: bytes) -> ParsedTransaction:
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")

    try:
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        root = etree.fromstring(xml_content, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MessageFormatError("invalid XML") from e

    fields = collect_fields(root)

    for required in REQUIRED_FIELDS:
        if not fields.get(required):
            raise MissingFieldError(required)

    mti = resolve_mti(root, fields)
    if not mti:
        raise MissingFieldError(MTI_FIELD)
    if not _MTI_RE.match(mti):
        raise InvalidFieldError(MTI_FIELD, "MTI must be 4 digits")

    _check_lengths({**fields, MTI_FIELD: mti})

    return ParsedTransaction(
        mti=mti,
        pan=fields[PAN_FIELD],
        processing_code=fields[PROCESSING_CODE_FIELD],
        amount=coerce_amount(fields[AMOUNT_FIELD]),
        transaction_time=fields[TIME_LOCAL_FIELD],
        transaction_date=fields[DATE_LOCAL_FIELD],
        rrn=fields[RRN_FIELD],
        response_code=fields.get(RESPONSE_CODE_FIELD, ""),
        terminal_id=fields[TERMINAL_ID_FIELD],
        currency=fields[CURRENCY_FIELD],
    )
