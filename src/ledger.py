import threading
from decimal import Decimal
from typing import Dict, Optional

from models import LedgerEntry


class TransactionLedger:
    """
    Deposits accepted so far, keyed by transaction id.

    Dispute, resolve and chargeback only carry a transaction id, so a single
    mapping is enough to find both the amount and the owning client.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}
        # Guards check-and-insert; entries themselves are only mutated under their client's lock.
        self._lock = threading.Lock()

    def record_deposit(self, transaction_id: int, client_id: int, amount: Decimal) -> bool:
        """Store a deposit. Returns False if the transaction id is already taken."""
        with self._lock:
            if transaction_id in self._entries:
                return False
            self._entries[transaction_id] = LedgerEntry(
                transaction_id=transaction_id,
                client_id=client_id,
                amount=amount,
            )
            return True

    def get(self, transaction_id: int) -> Optional[LedgerEntry]:
        return self._entries.get(transaction_id)

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def discard(self, transaction_id: int) -> None:
        """Forget a deposit whose funds were never credited."""
        with self._lock:
            self._entries.pop(transaction_id, None)
