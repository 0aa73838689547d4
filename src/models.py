import threading
from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow
from enum import Enum
from typing import Optional

from errors import (
    AccountLockedError,
    BalanceOverflowError,
    InsufficientFundsError,
    InvalidDisputeTransition,
)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
AMOUNT_PRECISION = 4

# Amounts carry at most 28 significant digits at 4 dp; balances stay below 10**30.
MAX_AMOUNT = Decimal("1E+24")
MAX_BALANCE = Decimal("1E+30")

# Wide enough that any sum of two in-range balances is exact; anything inexact raises.
MONEY_CONTEXT = Context(prec=40, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    REJECTED = "rejected"


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return MONEY_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        if self.locked:
            raise AccountLockedError(self.client_id)
        self.available = self._checked(MONEY_CONTEXT.add(self.available, amount))

    def debit(self, amount: Decimal) -> None:
        if self.locked:
            raise AccountLockedError(self.client_id)
        if self.available < amount:
            raise InsufficientFundsError(self.client_id, self.available, amount)
        self.available = self._checked(MONEY_CONTEXT.subtract(self.available, amount))

    # Dispute-family movements skip the lock check: they unwind deposits made before the lock.
    # Both balances are computed before either is assigned, so a refused movement changes nothing.
    def hold(self, amount: Decimal) -> None:
        available = self._checked(MONEY_CONTEXT.subtract(self.available, amount))
        held = self._checked(MONEY_CONTEXT.add(self.held, amount))
        self.available, self.held = available, held

    def release_hold(self, amount: Decimal) -> None:
        held = self._checked(MONEY_CONTEXT.subtract(self.held, amount))
        available = self._checked(MONEY_CONTEXT.add(self.available, amount))
        self.available, self.held = available, held

    def remove_held(self, amount: Decimal) -> None:
        self.held = self._checked(MONEY_CONTEXT.subtract(self.held, amount))
        self.locked = True

    def _checked(self, balance: Decimal) -> Decimal:
        if MONEY_CONTEXT.abs(balance) >= MAX_BALANCE:
            raise BalanceOverflowError(self.client_id, balance)
        return balance

    def snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            locked=self.locked,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    """Read-only view of a client account at the time it was taken."""

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return MONEY_CONTEXT.add(self.available, self.held)


@dataclass
class LedgerEntry:
    """
    A deposit kept for later dispute lookups.

    Lifecycle: NORMAL -> DISPUTED -> NORMAL (resolve) or CHARGED_BACK (terminal).
    """

    transaction_id: int
    client_id: int
    amount: Decimal
    state: DisputeState = DisputeState.NORMAL

    @property
    def disputed(self) -> bool:
        return self.state is DisputeState.DISPUTED

    def open_dispute(self) -> None:
        self._transition(DisputeState.NORMAL, DisputeState.DISPUTED, "dispute")

    def resolve(self) -> None:
        self._transition(DisputeState.DISPUTED, DisputeState.NORMAL, "resolve")

    def charge_back(self) -> None:
        self._transition(DisputeState.DISPUTED, DisputeState.CHARGED_BACK, "charge back")

    def _transition(self, expected: DisputeState, target: DisputeState, event: str) -> None:
        if self.state is not expected:
            raise InvalidDisputeTransition(self.transaction_id, self.state, event)
        self.state = target


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.applied = 0
        self.ignored = 0
        self.rejected = 0
        self.malformed = 0

    def record(self, result: ProcessingResult) -> None:
        with self._lock:
            if result == ProcessingResult.APPLIED:
                self.applied += 1
            elif result == ProcessingResult.IGNORED:
                self.ignored += 1
            else:
                self.rejected += 1

    def record_malformed(self) -> None:
        with self._lock:
            self.malformed += 1

    @property
    def processed(self) -> int:
        return self.applied + self.ignored + self.rejected

    def __repr__(self) -> str:
        return (
            f"ProcessingStats(applied={self.applied}, ignored={self.ignored}, "
            f"rejected={self.rejected}, malformed={self.malformed})"
        )
