import csv
import logging
import os
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Iterator, Optional, TextIO

from models import ClientAccount, Transaction, TransactionType

logger = logging.getLogger(__name__)

VALID_FILE_EXTENSION = ".csv"
AMOUNT_PRECISION = Decimal("0.0001")
# Keeps every balance within the 28 significant digits of the default decimal context
MAX_AMOUNT = Decimal("100000000000000")
MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


class InputFileError(Exception):
    """The input path cannot be used as a transaction source."""


def validate_input_path(filepath: str) -> None:
    """Raise InputFileError unless filepath names an existing .csv file."""
    if os.path.splitext(filepath)[1].lower() != VALID_FILE_EXTENSION:
        raise InputFileError(f"Input file must have a {VALID_FILE_EXTENSION} extension: {filepath}")
    if not os.path.isfile(filepath):
        raise InputFileError(f"Input file does not exist: {filepath}")


def parse_amount(raw: str) -> Decimal:
    """Parse a fixed-point amount, truncating to four fractional digits."""
    amount = Decimal(raw)
    if not amount.is_finite():
        raise ValueError(f"amount is not a finite number: {raw!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"amount {raw!r} exceeds {MAX_AMOUNT}")
    return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)


def _parse_id(raw: str, name: str, upper_bound: int) -> int:
    value = int(raw)
    if not 0 <= value <= upper_bound:
        raise ValueError(f"{name} {value} out of range 0..{upper_bound}")
    return value


def parse_csv_row(row: Dict[Optional[str], object]) -> Optional[Transaction]:
    """Parse CSV row into Transaction. Returns None for a malformed row."""
    try:
        if None in row:
            raise ValueError(f"unexpected extra columns {row[None]}")

        normalized = {k.strip(): (v or "").strip() for k, v in row.items()}

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID)
        transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID)

        amount = None
        amount_str = normalized.get("amount", "")
        if transaction_type.carries_amount:
            if not amount_str:
                raise ValueError(f"{transaction_type.value} requires an amount")
            amount = parse_amount(amount_str)
        elif amount_str:
            logger.debug(f"Ignoring amount {amount_str!r} on {transaction_type.value} tx {transaction_id}")

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None


def read_transactions(stream: TextIO) -> Iterator[Optional[Transaction]]:
    """
    Yield one entry per data row, in file order.
    Malformed rows yield None so callers can count them.
    """
    reader = csv.DictReader(stream)
    for row in reader:
        yield parse_csv_row(row)


def format_decimal(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(AMOUNT_PRECISION):f}"


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write one row per client, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
