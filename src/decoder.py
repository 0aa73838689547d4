"""
Decoding of raw CSV records into validated Transaction values.

Every check on the shape of the input happens here, so the processor only
ever sees well-formed transactions: known type, in-range ids, and for
deposits and withdrawals a plain non-negative decimal below MAX_AMOUNT with
at most four fractional digits.

Ids and amounts are matched against ASCII-digit patterns before conversion,
so forms Python would otherwise accept (``1_000``, ``+5``, ``1e3``, ``NaN``,
non-ASCII digits) are rejected.
"""
import csv
import logging
import re
from decimal import Decimal
from typing import Callable, Dict, Iterator, Optional, TextIO

from errors import DecodeError
from models import (
    AMOUNT_PRECISION,
    MAX_AMOUNT,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")

_ID_PATTERN = re.compile(r"[0-9]+")
_AMOUNT_PATTERN = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def parse_amount(text: str) -> Decimal:
    """Parse an amount, rejecting signs, exotic notations, excess precision and oversized values."""
    if not _AMOUNT_PATTERN.fullmatch(text):
        raise DecodeError(f"invalid amount {text!r}")

    amount = Decimal(text)
    if amount.is_signed():
        raise DecodeError(f"negative amount {text!r}")
    if -amount.as_tuple().exponent > AMOUNT_PRECISION:
        raise DecodeError(f"amount {text!r} has more than {AMOUNT_PRECISION} decimal places")
    if amount >= MAX_AMOUNT:
        raise DecodeError(f"amount {text!r} too large")
    return amount


def _parse_id(text: Optional[str], field: str, upper: int) -> int:
    if not text:
        raise DecodeError(f"missing {field}")
    if not _ID_PATTERN.fullmatch(text):
        raise DecodeError(f"invalid {field} {text!r}")
    value = int(text)
    if value > upper:
        raise DecodeError(f"{field} {value} out of range")
    return value


def decode_record(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Decode one CSV row (header name -> raw value) into a Transaction.

    Missing trailing fields arrive as None and are fine for the dispute
    family; an amount given on one of those rows is ignored.
    """
    normalized = {
        k.strip().lower(): v.strip()
        for k, v in row.items()
        if k is not None and isinstance(v, str)
    }

    type_str = normalized.get("type", "").lower()
    if not type_str:
        raise DecodeError("missing transaction type", row)
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise DecodeError(f"unknown transaction type {type_str!r}", row) from None

    try:
        client_id = _parse_id(normalized.get("client"), "client", MAX_CLIENT_ID)
        transaction_id = _parse_id(normalized.get("tx"), "tx", MAX_TRANSACTION_ID)

        amount = None
        if transaction_type.carries_amount:
            amount_str = normalized.get("amount", "")
            if not amount_str:
                raise DecodeError(f"{transaction_type.value} without amount")
            amount = parse_amount(amount_str)
    except DecodeError as e:
        raise DecodeError(str(e), row) from None

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(
    stream: TextIO,
    on_error: Optional[Callable[[DecodeError], None]] = None,
) -> Iterator[Transaction]:
    """
    Lazily yield decoded transactions from a CSV stream with a header row.

    Malformed records are logged, handed to on_error and skipped.
    """
    reader = csv.DictReader(stream)
    if reader.fieldnames is None:
        return

    columns = {name.strip().lower() for name in reader.fieldnames if name}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise DecodeError(f"header is missing columns: {', '.join(missing)}")

    for row in reader:
        try:
            transaction = decode_record(row)
        except DecodeError as e:
            logger.warning(f"Dropping line {reader.line_num}: {e}")
            if on_error is not None:
                on_error(e)
            continue
        yield transaction
