import csv
from decimal import Decimal
from typing import Mapping, TextIO

from models import AMOUNT_PRECISION, MONEY_CONTEXT, AccountSnapshot

FIELDNAMES = ["client", "available", "held", "total", "locked"]
_QUANTUM = Decimal(1).scaleb(-AMOUNT_PRECISION)


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(_QUANTUM, context=MONEY_CONTEXT):f}"


def write_accounts(accounts: Mapping[int, AccountSnapshot], stream: TextIO) -> None:
    """Write one CSV row per client, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(FIELDNAMES)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])
