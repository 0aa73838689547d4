import logging
from decimal import Decimal
from typing import Callable, Optional

from account_store import AccountStore
from errors import (
    AccountLockedError,
    BalanceOverflowError,
    InsufficientFundsError,
    InvalidDisputeTransition,
)
from ledger import TransactionLedger
from models import ClientAccount, LedgerEntry, ProcessingResult, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the account store and the ledger.
    Returns ProcessingResult to indicate whether the transaction took effect.
    Caller is responsible for holding the client's lock.
    """

    def __init__(self, accounts: AccountStore, ledger: TransactionLedger):
        self._accounts = accounts
        self._ledger = ledger

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: Account and/or ledger state changed
            IGNORED: Referenced transaction unknown, owned by another client,
                     in the wrong dispute state, or transaction id already used
            REJECTED: Account refused the movement (locked, insufficient funds,
                      balance out of range)
        """
        account = self._accounts.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.transaction_id in self._ledger:
            logger.debug(f"Deposit tx {transaction.transaction_id}: transaction id already used, skipping")
            return ProcessingResult.IGNORED

        if account.locked:
            logger.debug(f"Deposit tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.REJECTED

        # Another shard may have claimed the same id since the check above.
        if not self._ledger.record_deposit(transaction.transaction_id, transaction.client_id, transaction.amount):
            return ProcessingResult.IGNORED

        try:
            account.credit(transaction.amount)
        except BalanceOverflowError as e:
            self._ledger.discard(transaction.transaction_id)
            logger.warning(f"Deposit tx {transaction.transaction_id}: {e}")
            return ProcessingResult.REJECTED

        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.transaction_id in self._ledger:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: transaction id already used, skipping")
            return ProcessingResult.IGNORED

        try:
            account.debit(transaction.amount)
        except (AccountLockedError, InsufficientFundsError) as e:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: {e}")
            return ProcessingResult.REJECTED

        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._find_owned_entry(transaction)
        if entry is None:
            return ProcessingResult.IGNORED

        # No availability check: available goes negative if the deposit was already withdrawn.
        return self._apply_entry_event(transaction, entry, entry.open_dispute, account.hold)

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._find_owned_entry(transaction)
        if entry is None:
            return ProcessingResult.IGNORED

        return self._apply_entry_event(transaction, entry, entry.resolve, account.release_hold)

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        entry = self._find_owned_entry(transaction)
        if entry is None:
            return ProcessingResult.IGNORED

        result = self._apply_entry_event(transaction, entry, entry.charge_back, account.remove_held)
        if result == ProcessingResult.APPLIED:
            logger.info(f"Chargeback tx {transaction.transaction_id}: account {account.client_id} locked")
        return result

    def _apply_entry_event(
        self,
        transaction: Transaction,
        entry: LedgerEntry,
        transition: Callable[[], None],
        movement: Callable[[Decimal], None],
    ) -> ProcessingResult:
        """Move the entry through its lifecycle, then move the funds; undo the move if the account refuses."""
        kind = transaction.transaction_type.value.capitalize()
        previous = entry.state

        try:
            transition()
        except InvalidDisputeTransition as e:
            logger.debug(f"{kind}: {e}")
            return ProcessingResult.IGNORED

        try:
            movement(entry.amount)
        except BalanceOverflowError as e:
            entry.state = previous
            logger.warning(f"{kind} tx {transaction.transaction_id}: {e}")
            return ProcessingResult.REJECTED

        return ProcessingResult.APPLIED

    def _find_owned_entry(self, transaction: Transaction) -> Optional[LedgerEntry]:
        entry = self._ledger.get(transaction.transaction_id)
        kind = transaction.transaction_type.value.capitalize()

        if entry is None:
            logger.debug(f"{kind} for tx {transaction.transaction_id}: no such deposit")
            return None

        if entry.client_id != transaction.client_id:
            logger.debug(
                f"{kind} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {entry.client_id}, got {transaction.client_id})"
            )
            return None

        return entry
